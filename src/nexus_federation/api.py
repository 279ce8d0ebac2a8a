"""
Client for the REST API of an upstream Nexus instance.

The wire models in this module mirror the JSON documents returned by the
upstream system. They are kept separate from the local data model in
:mod:`nexus_federation.datamodel`; see :mod:`nexus_federation.conversion`
for the mapping between both.

All HTTP traffic goes through an fsspec ``HTTPFileSystem``. JSON endpoints
are read with ``cat_file`` and data is streamed with ``open``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

from .utils import create_fsspec_fs, format_datetime, format_timespan, parse_datetime

logger = logging.getLogger(__name__)


@dataclass
class CatalogInfo:
    """Summary of a child catalog as returned by the upstream system."""

    id: str
    title: Optional[str] = None
    contact: Optional[str] = None
    readme: Optional[str] = None
    license: Optional[str] = None
    is_readable: bool = False
    is_writable: bool = False
    is_released: bool = False
    is_visible: bool = False
    is_owner: bool = False

    @classmethod
    def from_json(cls, document: Dict[str, Any]) -> "CatalogInfo":
        return cls(
            id=document["id"],
            title=document.get("title"),
            contact=document.get("contact"),
            readme=document.get("readme"),
            license=document.get("license"),
            is_readable=bool(document.get("isReadable", False)),
            is_writable=bool(document.get("isWritable", False)),
            is_released=bool(document.get("isReleased", False)),
            is_visible=bool(document.get("isVisible", False)),
            is_owner=bool(document.get("isOwner", False)),
        )


@dataclass
class Representation:
    data_type: str
    sample_period: str
    kind: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None

    @classmethod
    def from_json(cls, document: Dict[str, Any]) -> "Representation":
        return cls(
            data_type=document["dataType"],
            sample_period=document["samplePeriod"],
            kind=document.get("kind"),
            parameters=document.get("parameters"),
        )


@dataclass
class Resource:
    id: str
    properties: Optional[Dict[str, Any]] = None
    representations: Optional[List[Representation]] = None

    @classmethod
    def from_json(cls, document: Dict[str, Any]) -> "Resource":
        representations = document.get("representations")

        return cls(
            id=document["id"],
            properties=document.get("properties"),
            representations=None
            if representations is None
            else [Representation.from_json(item) for item in representations],
        )


@dataclass
class ResourceCatalog:
    id: str
    properties: Optional[Dict[str, Any]] = None
    resources: Optional[List[Resource]] = None

    @classmethod
    def from_json(cls, document: Dict[str, Any]) -> "ResourceCatalog":
        resources = document.get("resources")

        return cls(
            id=document["id"],
            properties=document.get("properties"),
            resources=None
            if resources is None
            else [Resource.from_json(item) for item in resources],
        )


@dataclass
class CatalogAvailability:
    data: List[float]

    @classmethod
    def from_json(cls, document: Dict[str, Any]) -> "CatalogAvailability":
        return cls(data=[float(value) for value in document["data"]])


@dataclass
class CatalogTimeRange:
    begin: datetime
    end: datetime

    @classmethod
    def from_json(cls, document: Dict[str, Any]) -> "CatalogTimeRange":
        return cls(
            begin=parse_datetime(document["begin"]),
            end=parse_datetime(document["end"]),
        )


class NexusClient:
    """
    Client for the version 1 REST API of a Nexus instance.

    Parameters
    ----------
    base_url : str
        Base address of the upstream instance, e.g. ``https://example.com``
    fs : fsspec.AbstractFileSystem, optional
        HTTP filesystem to use. If None, an fsspec ``HTTPFileSystem`` is
        created which takes URLs verbatim.
    """

    def __init__(self, base_url, fs=None):
        self.base_url = base_url.rstrip("/") + "/"
        self._fs = (
            fs
            if fs is not None
            else create_fsspec_fs("http", encoded=True, skip_instance_cache=True)
        )
        self._headers = {}

    def sign_in(self, access_token: str) -> None:
        """Attach the access token as a bearer credential to all further requests."""
        self._headers["Authorization"] = f"Bearer {access_token}"

    def get_child_catalog_infos(self, catalog_id: str) -> List[CatalogInfo]:
        """Get the infos of all child catalogs of the given catalog."""
        document = self._get_json(
            f"api/v1/catalogs/{self._escape(catalog_id)}/child-catalog-infos"
        )
        return [CatalogInfo.from_json(item) for item in document]

    def get_catalog(self, catalog_id: str) -> ResourceCatalog:
        """Get the full description of the given catalog."""
        document = self._get_json(f"api/v1/catalogs/{self._escape(catalog_id)}")
        return ResourceCatalog.from_json(document)

    def get_availability(
        self, catalog_id: str, begin: datetime, end: datetime, step: timedelta
    ) -> CatalogAvailability:
        """Get the fraction of available data for each ``step`` sized bucket of the window."""
        query = urlencode(
            {
                "begin": format_datetime(begin),
                "end": format_datetime(end),
                "step": format_timespan(step),
            }
        )
        document = self._get_json(
            f"api/v1/catalogs/{self._escape(catalog_id)}/availability?{query}"
        )
        return CatalogAvailability.from_json(document)

    def get_time_range(self, catalog_id: str) -> CatalogTimeRange:
        """Get the time range covered by the given catalog."""
        document = self._get_json(
            f"api/v1/catalogs/{self._escape(catalog_id)}/timerange"
        )
        return CatalogTimeRange.from_json(document)

    def get_stream(self, resource_path: str, begin: datetime, end: datetime, size: int):
        """
        Open the raw data of a resource as a binary stream.

        Parameters
        ----------
        resource_path : str
            Path of the form ``<catalog id>/<resource id>/<representation id>``
        begin, end : datetime
            The time window to read
        size : int
            Number of bytes expected from the stream, must be positive. With a
            known size fsspec opens the stream with a single GET.

        Returns
        -------
        file-like object
            A stream file; close it (or use it as a context manager) when done
        """
        if size <= 0:
            raise ValueError("The stream size must be positive.")

        query = urlencode(
            {
                "resourcePath": resource_path,
                "begin": format_datetime(begin),
                "end": format_datetime(end),
            }
        )
        url = self._url(f"api/v1/data?{query}")
        logger.debug("GET %s (stream)", url)

        return self._fs.open(
            url, mode="rb", block_size=0, size=size, headers=dict(self._headers)
        )

    def _get_json(self, relative_url):
        url = self._url(relative_url)
        logger.debug("GET %s", url)

        content = self._fs.cat_file(url, headers=dict(self._headers))
        return json.loads(content)

    def _url(self, relative_url):
        return self.base_url + relative_url

    @staticmethod
    def _escape(catalog_id):
        return quote(catalog_id, safe="")
