# SPDX-License-Identifier: MIT
"""The NuGet feed as a single request/response entry point."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from typing import Optional

from fastapi.responses import Response

from .headers import Headers
from .resources import FeedIndex, PackageContent, PackagePublish, PackageVersions
from .routing import Route, Router, Subtree, normalize_base
from .storage import Storage


async def _empty_body() -> AsyncIterator[bytes]:
    return
    yield


class NuGet:
    """NuGet feed mounted under a base path.

    Routes:
        GET {base}/index.json                             service index
        PUT {base}/package                                publish a package
        GET {base}/content/{id}/index.json                package versions
        GET {base}/content/{id}/{version}/{filename}      package content

    Any other method below {base}/content/ is answered 405, even for paths
    no route matches.

    Args:
        base: Base path the feed is mounted under, e.g. "/base"
        storage: Storage holding package artifacts
        url: Public URL of the feed, used in the service index
    """

    def __init__(self, base: str, storage: Storage, url: Optional[str] = None):
        self.base = normalize_base(base)
        self.storage = storage
        self.router = Router(
            self.base,
            [
                Route.of(["GET"], "index.json", lambda v: FeedIndex(self.base, url)),
                Route.of(["PUT"], "package", lambda v: PackagePublish(storage)),
                Route.of(
                    ["GET"],
                    "content/{id}/index.json",
                    lambda v: PackageVersions(storage, v["id"]),
                ),
                Route.of(
                    ["GET"],
                    "content/{id}/{version}/{filename}",
                    lambda v: PackageContent(storage, v["id"], v["version"], v["filename"]),
                ),
            ],
            # Content is read-only whatever the path shape
            subtrees=[Subtree.of("content", ["GET"])],
        )

    async def response(
        self,
        method: str,
        path: str,
        headers: Iterable[tuple[str, str]] = (),
        body: Optional[AsyncIterator[bytes]] = None,
    ) -> Response:
        """Answer one request.

        Args:
            method: HTTP method, e.g. "GET"
            path: Request path, without query string
            headers: Request headers as ``(name, value)`` pairs
            body: Request body chunks; empty when None

        Returns:
            The response; failures are already converted to error responses
        """
        if not isinstance(headers, Headers):
            headers = Headers(headers)
        return await self.router.dispatch(
            method,
            path,
            headers,
            body if body is not None else _empty_body(),
        )
