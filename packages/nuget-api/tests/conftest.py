# SPDX-License-Identifier: MIT
"""Pytest fixtures for feed tests."""

import io
import zipfile
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio
from fastapi.responses import Response
from httpx import ASGITransport, AsyncClient

from nuget_api import APIConfig, InMemoryStorage, NuGet, create_app

NUSPEC_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">
  <metadata>
    <id>{id}</id>
    <version>{version}</version>
    <authors>James Newton-King</authors>
    <description>Json.NET is a popular high-performance JSON framework for .NET</description>
  </metadata>
</package>
"""


def make_nuspec(package_id: str = "Newtonsoft.Json", version: str = "12.0.3") -> bytes:
    """Render a minimal nuspec document."""
    return NUSPEC_TEMPLATE.format(id=package_id, version=version).encode("utf-8")


def make_nupkg(
    package_id: str = "Newtonsoft.Json",
    version: str = "12.0.3",
    nuspec: bytes | None = None,
) -> bytes:
    """Build an in-memory .nupkg archive with a root-level nuspec."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(f"{package_id}.nuspec", nuspec or make_nuspec(package_id, version))
        zf.writestr("lib/netstandard2.0/Newtonsoft.Json.dll", b"\x4d\x5a" + b"\x00" * 64)
        zf.writestr("[Content_Types].xml", "<Types />")
    return buffer.getvalue()


async def body_of(response: Response) -> bytes:
    """Read the complete body of a plain or streaming response."""
    if hasattr(response, "body_iterator"):
        chunks = []
        async for chunk in response.body_iterator:
            chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
        return b"".join(chunks)
    return response.body


async def stream(*chunks: bytes) -> AsyncIterator[bytes]:
    """Async byte stream standing in for a request body."""
    for chunk in chunks:
        yield chunk


@pytest.fixture
def nupkg_factory() -> Callable[..., bytes]:
    """Factory building .nupkg archives."""
    return make_nupkg


@pytest.fixture
def nuspec_factory() -> Callable[..., bytes]:
    """Factory rendering nuspec documents."""
    return make_nuspec


@pytest.fixture
def body_stream() -> Callable[..., AsyncIterator[bytes]]:
    """Factory for async request body streams."""
    return stream


@pytest.fixture
def read_response() -> Callable[[Response], Awaitable[bytes]]:
    """Reader for the complete body of a feed response."""
    return body_of


@pytest.fixture
def test_config() -> APIConfig:
    """Create test configuration with in-memory storage."""
    config = APIConfig()
    config.base_path = "/base"
    config.storage.backend = "memory"
    config.docs_url = None
    config.openapi_url = None
    return config


@pytest.fixture
def storage() -> InMemoryStorage:
    """Create empty in-memory storage."""
    return InMemoryStorage(chunk_size=4)


@pytest.fixture
def nuget(storage: InMemoryStorage) -> NuGet:
    """Create a feed mounted under /base."""
    return NuGet("/base", storage)


@pytest.fixture
def app(test_config: APIConfig, storage: InMemoryStorage):
    """Create test FastAPI application sharing the test storage."""
    return create_app(test_config, storage=storage)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
