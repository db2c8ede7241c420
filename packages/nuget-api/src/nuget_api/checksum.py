# SPDX-License-Identifier: MIT
"""Checksum utilities for package hash files.

NuGet publishes the SHA-512 of every package archive next to it, base64
encoded, in a ``.nupkg.sha512`` file.
"""

import base64
import hashlib


def compute_sha512(data: bytes) -> str:
    """Compute the base64-encoded SHA512 hash of bytes data.

    Args:
        data: Bytes to hash

    Returns:
        Base64-encoded SHA512 digest
    """
    return base64.b64encode(hashlib.sha512(data).digest()).decode("ascii")


def verify_checksum(data: bytes, expected_hash: str) -> bool:
    """Verify that data matches an expected base64 SHA512 hash.

    Args:
        data: Bytes to verify
        expected_hash: Expected hash as stored in a ``.sha512`` file

    Returns:
        True if hash matches, False otherwise
    """
    return compute_sha512(data) == expected_hash.strip()
