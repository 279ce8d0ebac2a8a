"""
Mapping between the external and the source catalog namespace.

This module provides the core mapping functionality that translates catalog
ids seen by the local system (below the mount point) into catalog ids of the
upstream system (below the source path) and back.
"""

import logging
from typing import Optional

from .errors import CatalogIdMappingError
from .utils import is_below, join_catalog_path, normalize_catalog_path

logger = logging.getLogger(__name__)


class CatalogPathMapper:
    """
    Maps catalog ids between the mounted and the upstream namespace.

    Both prefixes are normalized once on construction and never change
    afterwards, so a single instance may be shared freely between threads.
    """

    __slots__ = ("_mount_point", "_source_path")

    def __init__(self, source_path=None, mount_point=None):
        """
        Initialize the mapper.

        Parameters
        ----------
        source_path : str or None
            Prefix on the upstream system. Defaults to ``/``.
        mount_point : str or None
            Externally visible prefix the upstream tree is mounted at.
            Defaults to ``/``.
        """
        self._source_path = normalize_catalog_path(source_path)
        self._mount_point = normalize_catalog_path(mount_point)

    @property
    def source_path(self) -> str:
        return self._source_path

    @property
    def mount_point(self) -> str:
        return self._mount_point

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(source_path={self._source_path!r}, "
            f"mount_point={self._mount_point!r})"
        )

    def resolve_browse_path(self, path: str) -> str:
        """
        Resolve the path the host asks child catalogs for.

        The root ``/`` is the mount point itself. Any other path loses a
        single trailing slash.

        Parameters
        ----------
        path : str
            The externally visible path being browsed

        Returns
        -------
        str
            The external catalog id to map
        """
        if path == "/":
            return self._mount_point

        if len(path) > 1 and path.endswith("/"):
            return path[:-1]

        return path

    def to_source(self, catalog_id: str) -> str:
        """
        Translate an external catalog id into the upstream namespace.

        Parameters
        ----------
        catalog_id : str
            Catalog id below the mount point

        Returns
        -------
        str
            The same catalog below the source path

        Raises
        ------
        CatalogIdMappingError
            If the id is not located below the mount point
        """
        source_id = self._swap_prefix(catalog_id, self._mount_point, self._source_path)
        logger.debug("Mapped catalog id %s to source id %s", catalog_id, source_id)
        return source_id

    def to_external(self, catalog_id: str) -> str:
        """
        Translate an upstream catalog id into the external namespace.

        Parameters
        ----------
        catalog_id : str
            Catalog id below the source path

        Returns
        -------
        str
            The same catalog below the mount point

        Raises
        ------
        CatalogIdMappingError
            If the id is not located below the source path
        """
        external_id = self._swap_prefix(catalog_id, self._source_path, self._mount_point)
        logger.debug("Mapped source id %s to catalog id %s", catalog_id, external_id)
        return external_id

    @staticmethod
    def _swap_prefix(catalog_id, old_prefix, new_prefix):
        if len(catalog_id) > 1 and catalog_id.endswith("/"):
            catalog_id = catalog_id[:-1]

        if not is_below(catalog_id, old_prefix):
            raise CatalogIdMappingError(catalog_id, old_prefix)

        relative = catalog_id[len(old_prefix) :]
        return join_catalog_path(new_prefix, relative)


def create_path_mapper(
    source_path: Optional[str] = None, mount_point: Optional[str] = None
) -> CatalogPathMapper:
    """
    Create a catalog path mapper.

    Parameters
    ----------
    source_path : str or None
        Prefix on the upstream system, normalized before use
    mount_point : str or None
        Externally visible prefix, normalized before use

    Returns
    -------
    CatalogPathMapper
        The mapper
    """
    return CatalogPathMapper(source_path=source_path, mount_point=mount_point)
