"""
Exception hierarchy for nexus_federation.

Errors raised by the upstream transport (fsspec/aiohttp) are not wrapped;
they reach the caller unchanged.
"""


class FederationError(Exception):
    """Base exception for all federation errors."""


class ConfigurationError(FederationError, ValueError):
    """The data source context is incomplete or invalid."""


class CatalogIdMappingError(FederationError, ValueError):
    """
    A catalog id lies outside the namespace it is being mapped from.

    This indicates that the caller handed in an id which does not belong to
    the mounted subtree.
    """

    def __init__(self, catalog_id, prefix):
        super().__init__(
            f"The catalog id '{catalog_id}' is not located below '{prefix}'."
        )
        self.catalog_id = catalog_id
        self.prefix = prefix


class UpstreamError(FederationError):
    """The upstream system returned something unusable."""


class OperationCancelled(FederationError):
    """The operation was cancelled by the caller."""
