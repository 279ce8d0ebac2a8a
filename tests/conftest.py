"""
Pytest fixtures for nexus_federation tests.
"""

import io
import threading
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from nexus_federation import api
from nexus_federation.datamodel import (
    CatalogItem,
    NexusDataType,
    Representation,
    Resource,
    ResourceCatalog,
)
from nexus_federation.federation import Federation
from nexus_federation.settings import DataSourceContext


class ChunkedStream(io.RawIOBase):
    """A binary stream that never returns more than ``chunk_size`` bytes per read."""

    def __init__(self, content, chunk_size):
        self._buffer = io.BytesIO(content)
        self.chunk_size = chunk_size
        self.read_calls = 0

    def readable(self):
        return True

    def read(self, size=-1):
        self.read_calls += 1
        if size < 0 or size > self.chunk_size:
            size = self.chunk_size
        return self._buffer.read(size)


class FakeNexusClient:
    """In-memory stand-in for NexusClient that records what it is asked for."""

    def __init__(self, base_url):
        self.base_url = base_url
        self.access_token = None
        self.child_catalog_infos = {}
        self.catalogs = {}
        self.streams = {}
        self.availability = 1.0
        self.time_range = (
            datetime(2020, 1, 1, tzinfo=timezone.utc),
            datetime(2020, 1, 2, tzinfo=timezone.utc),
        )
        self.calls = []

    def sign_in(self, access_token):
        self.access_token = access_token

    def get_child_catalog_infos(self, catalog_id):
        self.calls.append(("get_child_catalog_infos", catalog_id))
        return self.child_catalog_infos.get(catalog_id, [])

    def get_catalog(self, catalog_id):
        self.calls.append(("get_catalog", catalog_id))
        return self.catalogs[catalog_id]

    def get_availability(self, catalog_id, begin, end, step):
        self.calls.append(("get_availability", catalog_id, begin, end, step))
        return api.CatalogAvailability(data=[self.availability])

    def get_time_range(self, catalog_id):
        self.calls.append(("get_time_range", catalog_id))
        return api.CatalogTimeRange(*self.time_range)

    def get_stream(self, resource_path, begin, end, size):
        self.calls.append(("get_stream", resource_path, begin, end, size))
        stream = self.streams[resource_path]
        if isinstance(stream, Exception):
            raise stream
        return stream


class UpstreamHandler(BaseHTTPRequestHandler):
    """Answers HEAD with 405 and every GET with the server's configured response."""

    def do_HEAD(self):
        self.server.requests.append(("HEAD", self.path, self.headers.get("Authorization")))
        self.send_response(405)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self):
        self.server.requests.append(("GET", self.path, self.headers.get("Authorization")))
        status, body = self.server.response
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def client_holder():
    """Collects the fake clients created by a federation."""
    return []


@pytest.fixture
def make_federation(client_holder):
    """Create a configured federation backed by a FakeNexusClient."""

    def factory(source_path=None, mount_point=None, include_pattern=None, setup=None):
        def create_client(base_url):
            client = FakeNexusClient(base_url)
            if setup is not None:
                setup(client)
            client_holder.append(client)
            return client

        configuration = {"access-token": "secret"}
        if source_path is not None:
            configuration["source-path"] = source_path
        if mount_point is not None:
            configuration["mount-point"] = mount_point
        if include_pattern is not None:
            configuration["include-pattern"] = include_pattern

        federation = Federation(create_client=create_client)
        federation.set_context(
            DataSourceContext(
                resource_locator="https://example.com",
                source_configuration=configuration,
            )
        )
        return federation

    return factory


@pytest.fixture
def time_window():
    begin = datetime(2020, 1, 1, tzinfo=timezone.utc)
    return begin, begin + timedelta(seconds=4)


@pytest.fixture
def catalog_item():
    """A float64 resource sampled once per second in catalog /mnt/TEST."""
    representation = Representation(NexusDataType.FLOAT64, timedelta(seconds=1))
    resource = Resource("T1", representations=[representation])
    catalog = ResourceCatalog("/mnt/TEST", resources=[resource])
    return CatalogItem(catalog, resource, representation)


@pytest.fixture
def upstream_server():
    """Run an in-process HTTP server that records the requests it receives."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), UpstreamHandler)
    server.requests = []
    server.response = (200, b"")
    server.url = "http://{}:{}".format(*server.server_address)

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
