"""
nexus_federation: Mount the catalogs of a remote Nexus instance locally
======================================================================

A data source that exposes the catalog tree of an upstream Nexus instance
below a local mount point, translating catalog ids between both namespaces
and streaming data through unchanged.
"""

from .api import NexusClient
from .datamodel import (
    CatalogItem,
    CatalogRegistration,
    NexusDataType,
    ReadRequest,
    Representation,
    RepresentationKind,
    Resource,
    ResourceCatalog,
    merge_catalogs,
)
from .errors import (
    CatalogIdMappingError,
    ConfigurationError,
    FederationError,
    OperationCancelled,
    UpstreamError,
)
from .federation import Federation, create_federation
from .mapping import CatalogPathMapper, create_path_mapper
from .settings import DataSourceContext, FederationSettings

__version__ = "0.1.0"

__all__ = [
    "CatalogIdMappingError",
    "CatalogItem",
    "CatalogPathMapper",
    "CatalogRegistration",
    "ConfigurationError",
    "DataSourceContext",
    "Federation",
    "FederationError",
    "FederationSettings",
    "NexusClient",
    "NexusDataType",
    "OperationCancelled",
    "ReadRequest",
    "Representation",
    "RepresentationKind",
    "Resource",
    "ResourceCatalog",
    "UpstreamError",
    "create_federation",
    "create_path_mapper",
    "merge_catalogs",
]
