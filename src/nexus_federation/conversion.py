"""
Conversion of upstream catalog descriptions into the local data model.

The upstream and the local schema are structurally compatible. Each field is
still constructed explicitly so that enum values and time spans are checked
while converting instead of being trusted blindly.
"""

from typing import Optional

from . import api, datamodel
from .utils import parse_timespan


def to_data_type(name: str) -> datamodel.NexusDataType:
    try:
        return datamodel.NexusDataType[name.upper()]
    except KeyError:
        raise ValueError(f"Unknown data type '{name}'.") from None


def to_representation_kind(name: Optional[str]) -> datamodel.RepresentationKind:
    if name is None:
        return datamodel.RepresentationKind.ORIGINAL

    for kind in datamodel.RepresentationKind:
        if kind.value.lower() == name.lower():
            return kind

    raise ValueError(f"Unknown representation kind '{name}'.")


def to_representation(representation: api.Representation) -> datamodel.Representation:
    return datamodel.Representation(
        data_type=to_data_type(representation.data_type),
        sample_period=parse_timespan(representation.sample_period),
        kind=to_representation_kind(representation.kind),
        parameters=None
        if representation.parameters is None
        else dict(representation.parameters),
    )


def to_resource(resource: api.Resource) -> datamodel.Resource:
    return datamodel.Resource(
        id=resource.id,
        properties=None if resource.properties is None else dict(resource.properties),
        representations=None
        if resource.representations is None
        else [to_representation(item) for item in resource.representations],
    )


def to_resource_catalog(
    catalog: api.ResourceCatalog, catalog_id: Optional[str] = None
) -> datamodel.ResourceCatalog:
    """
    Convert an upstream catalog description into a local resource catalog.

    Parameters
    ----------
    catalog : api.ResourceCatalog
        The description as returned by the upstream system
    catalog_id : str, optional
        Id for the local catalog. Defaults to the upstream id.

    Returns
    -------
    datamodel.ResourceCatalog
        The converted catalog. Resources and properties are carried over
        unchanged.
    """
    return datamodel.ResourceCatalog(
        id=catalog.id if catalog_id is None else catalog_id,
        properties=None if catalog.properties is None else dict(catalog.properties),
        resources=None
        if catalog.resources is None
        else [to_resource(item) for item in catalog.resources],
    )
