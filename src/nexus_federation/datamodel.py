"""
Local catalog data model.

These are the types handed to the host framework: resource catalogs with
their resources and representations, catalog registrations and read
requests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from .utils import to_unit_string

VALID_CATALOG_ID = re.compile(r"^(?:/[a-zA-Z_][a-zA-Z_0-9]*)+$")
VALID_RESOURCE_ID = re.compile(r"^[a-zA-Z_][a-zA-Z_0-9]*$")


class NexusDataType(Enum):
    """Element data type. The low byte holds the size in bits."""

    UINT8 = 0x108
    INT8 = 0x208
    UINT16 = 0x110
    INT16 = 0x210
    UINT32 = 0x120
    INT32 = 0x220
    UINT64 = 0x140
    INT64 = 0x240
    FLOAT32 = 0x320
    FLOAT64 = 0x340

    @property
    def element_size(self) -> int:
        return (self.value & 0xFF) >> 3


class RepresentationKind(Enum):
    ORIGINAL = "Original"
    RESAMPLED = "Resampled"
    MEAN = "Mean"
    MEAN_POLAR_DEG = "MeanPolarDeg"
    MIN = "Min"
    MAX = "Max"
    STD = "Std"
    RMS = "Rms"
    MIN_BITWISE = "MinBitwise"
    MAX_BITWISE = "MaxBitwise"
    SUM = "Sum"


@dataclass(frozen=True)
class Representation:
    """One sampled form of a resource."""

    data_type: NexusDataType
    sample_period: timedelta
    kind: RepresentationKind = RepresentationKind.ORIGINAL
    parameters: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.sample_period <= timedelta(0):
            raise ValueError("The sample period must be positive.")

    @property
    def id(self) -> str:
        """The unit string of the sample period plus the kind suffix, e.g. ``1_s_mean``."""
        unit_string = to_unit_string(self.sample_period)

        if self.kind is RepresentationKind.ORIGINAL:
            return unit_string

        kind = self.kind.name.lower()
        return f"{unit_string}_{kind}"

    @property
    def element_size(self) -> int:
        return self.data_type.element_size


@dataclass(frozen=True)
class Resource:
    id: str
    properties: Optional[Dict[str, Any]] = None
    representations: Optional[List[Representation]] = None

    def __post_init__(self):
        if not VALID_RESOURCE_ID.match(self.id):
            raise ValueError(f"The resource id '{self.id}' is not valid.")


@dataclass(frozen=True)
class ResourceCatalog:
    """A catalog together with its resources."""

    id: str
    properties: Optional[Dict[str, Any]] = None
    resources: Optional[List[Resource]] = None

    def __post_init__(self):
        if not VALID_CATALOG_ID.match(self.id):
            raise ValueError(f"The catalog id '{self.id}' is not valid.")


@dataclass(frozen=True)
class CatalogRegistration:
    """A child catalog offered to the host. Federated catalogs are always transient."""

    path: str
    title: Optional[str] = None
    is_transient: bool = True


@dataclass(frozen=True)
class CatalogItem:
    catalog: ResourceCatalog
    resource: Resource
    representation: Representation

    def to_path(self) -> str:
        return f"{self.catalog.id}/{self.resource.id}/{self.representation.id}"


@dataclass
class ReadRequest:
    """
    A single resource to read.

    ``data`` and ``status`` are writable buffers owned by the caller.
    ``status`` holds one byte per element of ``data``.
    """

    catalog_item: CatalogItem
    data: Any
    status: Any = field(default=None)

    def __post_init__(self):
        if self.status is None:
            element_size = self.catalog_item.representation.element_size
            self.status = bytearray(len(memoryview(self.data).cast("B")) // element_size)


def merge_catalogs(base: ResourceCatalog, fetched: ResourceCatalog) -> ResourceCatalog:
    """
    Merge a freshly fetched catalog into an existing one.

    Properties of both catalogs are combined with the fetched values winning.
    Resources are combined by id, keeping the order of ``base`` and appending
    resources only known to ``fetched``. For resources present on both sides
    the properties are combined (fetched wins) and the representations are
    combined by id (fetched wins).

    Neither input is modified.

    Parameters
    ----------
    base : ResourceCatalog
        The catalog already known to the host
    fetched : ResourceCatalog
        The catalog just retrieved from upstream

    Returns
    -------
    ResourceCatalog
        The merged catalog

    Raises
    ------
    ValueError
        If the catalogs have different ids
    """
    if base.id != fetched.id:
        raise ValueError(
            f"Cannot merge catalog '{fetched.id}' into catalog '{base.id}'."
        )

    if base.resources is None and fetched.resources is None:
        resources = None
    else:
        merged = {resource.id: resource for resource in base.resources or []}

        for resource in fetched.resources or []:
            existing = merged.get(resource.id)
            merged[resource.id] = (
                resource if existing is None else _merge_resources(existing, resource)
            )

        resources = list(merged.values())

    return ResourceCatalog(
        id=base.id,
        properties=_merge_properties(base.properties, fetched.properties),
        resources=resources,
    )


def _merge_resources(base: Resource, fetched: Resource) -> Resource:
    if base.representations is None and fetched.representations is None:
        representations = None
    else:
        merged = {
            representation.id: representation
            for representation in base.representations or []
        }

        for representation in fetched.representations or []:
            merged[representation.id] = representation

        representations = list(merged.values())

    return replace(
        base,
        properties=_merge_properties(base.properties, fetched.properties),
        representations=representations,
    )


def _merge_properties(base, fetched):
    if base is None:
        return None if fetched is None else dict(fetched)

    return {**base, **(fetched or {})}
