# SPDX-License-Identifier: MIT
"""Pydantic models for API documents."""

from .responses import ServiceIndex, ServiceResource, VersionsIndex

__all__ = [
    "ServiceIndex",
    "ServiceResource",
    "VersionsIndex",
]
