import pytest_asyncio
from status_server import StatusServer

BASE_URL_TEMPLATE = "http://localhost:{}"


@pytest_asyncio.fixture
async def start_server(unused_tcp_port_factory):
    """Start StatusServer instances on random ports; yields (server, base_url)."""
    servers = []

    async def start(**kwargs):
        port = unused_tcp_port_factory()
        server = StatusServer(**kwargs)
        await server.start(port=port)
        servers.append(server)
        return server, BASE_URL_TEMPLATE.format(port)

    try:
        yield start
    finally:
        for server in servers:
            await server.stop()
