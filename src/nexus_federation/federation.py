"""
Federation data source.

This module provides the data source that exposes the catalogs of an
upstream Nexus instance below a local mount point. Catalog ids are translated
with a :class:`~nexus_federation.mapping.CatalogPathMapper` and all calls are
forwarded to a :class:`~nexus_federation.api.NexusClient`.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from .api import NexusClient
from .conversion import to_resource_catalog
from .datamodel import CatalogRegistration, ResourceCatalog, merge_catalogs
from .errors import ConfigurationError, OperationCancelled, UpstreamError
from .mapping import CatalogPathMapper
from .settings import DataSourceContext, FederationSettings
from .utils import check_cancelled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _FederationState:
    mapper: CatalogPathMapper
    include_pattern: re.Pattern
    client: Any


class Federation:
    """
    Data source which provides access to the catalogs of another Nexus instance.

    The data source is configured exactly once with :meth:`set_context`. All
    state captured there is read-only afterwards, so one instance may serve
    any number of concurrent calls.
    """

    def __init__(self, create_client: Callable[[str], Any] = NexusClient):
        """
        Initialize the data source.

        Parameters
        ----------
        create_client : callable, default NexusClient
            Factory taking the upstream base address and returning a client
            with the operations of :class:`~nexus_federation.api.NexusClient`
        """
        self.create_client = create_client
        self._state = None

    @property
    def mapper(self) -> CatalogPathMapper:
        return self._get_state().mapper

    def set_context(self, context: DataSourceContext) -> None:
        """
        Set up the data source.

        Parameters
        ----------
        context : DataSourceContext
            The resource locator is the base address of the upstream
            instance. The source configuration must contain ``access-token``
            and may contain ``source-path``, ``mount-point`` and
            ``include-pattern``.

        Raises
        ------
        ConfigurationError
            If the resource locator or the access token is missing or the
            include pattern is invalid
        RuntimeError
            If the data source has already been set up
        """
        if self._state is not None:
            raise RuntimeError("The context has already been set.")

        if context.resource_locator is None:
            raise ConfigurationError("The resource locator must be set.")

        settings = FederationSettings.from_configuration(context.source_configuration)
        include_pattern = settings.compile_include_pattern()

        client = self.create_client(str(context.resource_locator))
        client.sign_in(settings.access_token)

        self._state = _FederationState(
            mapper=CatalogPathMapper(
                source_path=settings.source_path, mount_point=settings.mount_point
            ),
            include_pattern=include_pattern,
            client=client,
        )

        logger.info(
            "Mounted %s%s at %s",
            context.resource_locator,
            self._state.mapper.source_path,
            self._state.mapper.mount_point,
        )

    def get_catalog_registrations(
        self, path: str, cancel_event=None
    ) -> List[CatalogRegistration]:
        """
        Get the child catalogs below the given path.

        Parameters
        ----------
        path : str
            Externally visible path; ``/`` stands for the mount point
        cancel_event : threading.Event, optional
            Cancels the operation when set

        Returns
        -------
        list of CatalogRegistration
            Transient registrations in the order returned by upstream,
            restricted to catalogs whose upstream id matches the include
            pattern
        """
        state = self._get_state()
        catalog_id = state.mapper.resolve_browse_path(path)
        source_id = state.mapper.to_source(catalog_id)

        check_cancelled(cancel_event)
        catalog_infos = state.client.get_child_catalog_infos(source_id)
        check_cancelled(cancel_event)

        registrations = [
            CatalogRegistration(
                state.mapper.to_external(catalog_info.id),
                catalog_info.title,
                is_transient=True,
            )
            for catalog_info in catalog_infos
            if state.include_pattern.search(catalog_info.id)
        ]

        logger.debug(
            "Found %d of %d child catalogs below %s",
            len(registrations),
            len(catalog_infos),
            source_id,
        )

        return registrations

    def get_catalog(self, catalog_id: str, cancel_event=None) -> ResourceCatalog:
        """
        Get the description of a catalog.

        The upstream description is converted into the local data model and
        given the external id it was requested with.
        """
        state = self._get_state()
        source_id = state.mapper.to_source(catalog_id)

        check_cancelled(cancel_event)
        catalog = state.client.get_catalog(source_id)
        check_cancelled(cancel_event)

        return to_resource_catalog(catalog, catalog_id=catalog_id)

    def enrich_catalog(self, catalog: ResourceCatalog, cancel_event=None) -> ResourceCatalog:
        """
        Merge the upstream description of a catalog into the given one.

        Values from upstream win where both define the same property or
        representation.
        """
        fetched = self.get_catalog(catalog.id, cancel_event=cancel_event)
        return merge_catalogs(catalog, fetched)

    def get_availability(self, catalog_id, begin, end, cancel_event=None) -> float:
        """Get the fraction of the window ``[begin, end)`` for which data exist."""
        state = self._get_state()
        source_id = state.mapper.to_source(catalog_id)

        check_cancelled(cancel_event)
        availability = state.client.get_availability(source_id, begin, end, end - begin)

        return availability.data[0]

    def get_time_range(self, catalog_id, cancel_event=None) -> Tuple[Any, Any]:
        """Get the ``(begin, end)`` time range covered by a catalog."""
        state = self._get_state()
        source_id = state.mapper.to_source(catalog_id)

        check_cancelled(cancel_event)
        time_range = state.client.get_time_range(source_id)

        return time_range.begin, time_range.end

    def read(
        self,
        begin,
        end,
        requests,
        progress: Optional[Callable[[float], None]] = None,
        cancel_event=None,
        continue_on_error: bool = False,
    ) -> list:
        """
        Fill the buffers of the given read requests with upstream data.

        The requests are processed one after another. The data buffer of each
        request is filled completely from the upstream stream, after which
        every element of its status buffer is set to 1.

        Parameters
        ----------
        begin, end : datetime
            The time window to read
        requests : sequence of ReadRequest
            The requests whose buffers are to be filled
        progress : callable, optional
            Called with the completed fraction after each request
        cancel_event : threading.Event, optional
            Cancels the operation when set
        continue_on_error : bool, default False
            If False, the first failing request aborts the batch and its
            exception propagates. If True, failures are logged and the
            remaining requests are still processed.

        Returns
        -------
        list of tuple
            ``(request, exception)`` pairs for failed requests; only ever
            non-empty when ``continue_on_error`` is True
        """
        state = self._get_state()
        failures = []

        for index, request in enumerate(requests):
            try:
                self._read_single(state, begin, end, request, cancel_event)
            except Exception as error:
                if not continue_on_error or isinstance(error, OperationCancelled):
                    raise

                logger.warning(
                    "Unable to read %s: %s", request.catalog_item.to_path(), error
                )
                failures.append((request, error))

            if progress is not None:
                progress((index + 1) / len(requests))

        return failures

    def _read_single(self, state, begin, end, request, cancel_event):
        resource_path = state.mapper.to_source(request.catalog_item.to_path())
        logger.debug("Reading %s", resource_path)

        check_cancelled(cancel_event)
        target = memoryview(request.data).cast("B")

        if len(target) > 0:
            with state.client.get_stream(
                resource_path, begin, end, size=len(target)
            ) as stream:
                while len(target) > 0:
                    check_cancelled(cancel_event)
                    chunk = stream.read(len(target))

                    if not chunk:
                        raise UpstreamError(
                            f"The data stream of {resource_path} ended "
                            f"{len(target)} bytes before the buffer was filled."
                        )

                    target[: len(chunk)] = chunk
                    target = target[len(chunk) :]

        status = memoryview(request.status).cast("B")
        status[:] = b"\x01" * len(status)

    def _get_state(self) -> _FederationState:
        if self._state is None:
            raise RuntimeError("The context has not been set.")

        return self._state


def create_federation(
    url,
    access_token,
    source_path=None,
    mount_point=None,
    include_pattern=None,
    create_client=NexusClient,
):
    """
    Create a federation data source that is ready to use.

    Parameters
    ----------
    url : str
        Base address of the upstream instance
    access_token : str
        Token attached as a bearer credential to every upstream call
    source_path : str, optional
        Prefix on the upstream system. Defaults to ``/``.
    mount_point : str, optional
        Prefix the upstream catalogs are exposed at. Defaults to ``/``.
    include_pattern : str, optional
        Regular expression the upstream id of a child catalog must match to be
        exposed. Defaults to matching everything.
    create_client : callable, default NexusClient
        Factory for the upstream client

    Returns
    -------
    Federation
        The configured data source

    Examples
    --------
    >>> federation = create_federation("https://nexus.example.com", token,
    ...                                source_path="/src", mount_point="/remote")
    >>> federation.get_catalog_registrations("/")
    """
    configuration = {"access-token": access_token}

    for key, value in (
        ("source-path", source_path),
        ("mount-point", mount_point),
        ("include-pattern", include_pattern),
    ):
        if value is not None:
            configuration[key] = value

    federation = Federation(create_client=create_client)
    federation.set_context(
        DataSourceContext(resource_locator=url, source_configuration=configuration)
    )

    return federation
