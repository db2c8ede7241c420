# SPDX-License-Identifier: MIT
"""Resources served by the feed.

Each resource is one addressable endpoint. The set is closed: publishing,
package content, version listings and the service index. Every variant
answers ``get`` and ``put``; a method the endpoint does not support yields a
fixed 405 response.

Failures are raised as ``APIError`` subclasses and turned into responses by
the router.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Optional, Union

from fastapi.responses import Response, StreamingResponse
from pydantic import ValidationError

from .checksum import compute_sha512
from .headers import Headers
from .identity import PackageId
from .middleware.errors import (
    MethodNotAllowedError,
    NotFoundError,
    PackageExistsError,
    StorageError,
    error_response,
)
from .models import ServiceIndex, VersionsIndex
from .nuspec import extract_nuspec_from_nupkg
from .storage import Key, KeyNotFoundError, Storage, read_all

logger = logging.getLogger(__name__)

Body = AsyncIterator[bytes]


def method_not_allowed(method: str, allowed: tuple[str, ...]) -> Response:
    """Return the fixed response for a method a resource does not support."""
    return error_response(MethodNotAllowedError(method, allowed))


async def read_body(body: Body) -> bytes:
    """Read a request body stream to completion."""
    return b"".join([chunk async for chunk in body])


async def stream_key(storage: Storage, key: Key, media_type: str) -> StreamingResponse:
    """Stream the value stored under key, or raise NotFoundError."""
    try:
        stream = await storage.load(key)
    except KeyNotFoundError:
        raise NotFoundError(key.string) from None
    return StreamingResponse(stream, status_code=200, media_type=media_type)


@dataclass(frozen=True)
class PackagePublish:
    """Push endpoint: ``PUT {base}/package``.

    The request body is the raw ``.nupkg`` archive. The package identity is
    read from the archive's nuspec and decides every storage key written.

    See https://learn.microsoft.com/en-us/nuget/api/package-publish-resource
    """

    storage: Storage

    async def get(self, headers: Headers) -> Response:
        return method_not_allowed("GET", ("PUT",))

    async def put(self, headers: Headers, body: Body) -> Response:
        archive = await read_body(body)
        nuspec = extract_nuspec_from_nupkg(archive)
        identity = nuspec.identity

        # Package versions are immutable once published
        if await self.storage.exists(identity.nupkg_key):
            raise PackageExistsError(identity.id.lower, identity.version.value)

        index = await self._versions(identity.id)
        index = index.with_version(identity.version.value)

        # Archive last: its key is what marks the version as published
        await self.storage.save(identity.hash_key, compute_sha512(archive).encode("ascii"))
        await self.storage.save(identity.nuspec_key, nuspec.content)
        await self.storage.save(identity.id.versions_key, index.model_dump_json().encode("utf-8"))
        await self.storage.save(identity.nupkg_key, archive)

        logger.info("Published %s (%d bytes)", identity, len(archive))
        return Response(status_code=201)

    async def _versions(self, package_id: PackageId) -> VersionsIndex:
        key = package_id.versions_key
        try:
            content = await read_all(self.storage, key)
        except KeyNotFoundError:
            return VersionsIndex()
        try:
            return VersionsIndex.model_validate_json(content)
        except ValidationError as e:
            raise StorageError(f"Corrupt versions index '{key}': {e}") from e


@dataclass(frozen=True)
class PackageContent:
    """Artifact download: ``GET {base}/content/{id}/{version}/{filename}``.

    Path segments map verbatim onto the storage key ``{id}/{version}/{filename}``,
    so the archive, its hash file and the nuspec are all served the same way.
    """

    storage: Storage
    id: str
    version: str
    filename: str

    async def get(self, headers: Headers) -> Response:
        try:
            key = Key.of(self.id, self.version, self.filename)
        except ValueError:
            raise NotFoundError(f"{self.id}/{self.version}/{self.filename}") from None
        return await stream_key(self.storage, key, "application/octet-stream")

    async def put(self, headers: Headers, body: Body) -> Response:
        return method_not_allowed("PUT", ("GET",))


@dataclass(frozen=True)
class PackageVersions:
    """Version listing: ``GET {base}/content/{id}/index.json``."""

    storage: Storage
    id: str

    async def get(self, headers: Headers) -> Response:
        try:
            key = PackageId(self.id).versions_key
        except ValueError:
            raise NotFoundError(f"{self.id}/index.json") from None
        return await stream_key(self.storage, key, "application/json")

    async def put(self, headers: Headers, body: Body) -> Response:
        return method_not_allowed("PUT", ("GET",))


@dataclass(frozen=True)
class FeedIndex:
    """Service index: ``GET {base}/index.json``.

    Resource URLs use the configured public URL when there is one, otherwise
    they are built from the request's Host header.
    """

    base: str
    url: Optional[str] = None

    async def get(self, headers: Headers) -> Response:
        url = self.url or f"http://{headers.get('host', 'localhost')}{self.base}"
        index = ServiceIndex.for_url(url)
        return Response(
            content=index.model_dump_json(by_alias=True, exclude_none=True),
            status_code=200,
            media_type="application/json",
        )

    async def put(self, headers: Headers, body: Body) -> Response:
        return method_not_allowed("PUT", ("GET",))


Resource = Union[PackagePublish, PackageContent, PackageVersions, FeedIndex]
