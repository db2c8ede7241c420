# SPDX-License-Identifier: MIT
"""Reading package manifests out of ``.nupkg`` archives.

A ``.nupkg`` is a zip archive carrying a ``{id}.nuspec`` XML manifest at its
root. The manifest's ``<metadata>`` element names the package id and version;
those two values decide where the archive is stored.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
import zipfile
import zlib
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from .identity import PackageIdentity
from .middleware.errors import ErrorDetail, InvalidPackageError

REQUIRED_FIELDS = ("id", "version")


@dataclass(frozen=True)
class Nuspec:
    """Parsed package manifest.

    Attributes:
        id: Package id as written in the manifest
        version: Package version as written in the manifest
        content: Raw manifest bytes, stored unchanged next to the archive
        description: Optional package description
        authors: Optional comma-separated author list
    """

    id: str
    version: str
    content: bytes
    description: Optional[str] = None
    authors: Optional[str] = None

    @property
    def identity(self) -> PackageIdentity:
        """Return the identity this manifest describes.

        Raises:
            InvalidPackageError: If the id or version cannot form storage keys
        """
        try:
            identity = PackageIdentity.of(self.id, self.version)
            # Key construction rejects separators and dot segments
            _ = identity.root_key
        except ValueError as e:
            raise InvalidPackageError(f"Invalid package identity: {e}") from e
        return identity


def read_nuspec(content: bytes) -> Nuspec:
    """Parse a nuspec XML document.

    Namespaces are ignored: nuspec files exist with several schema
    namespaces and the element names are the same in all of them.

    Args:
        content: Raw nuspec bytes

    Returns:
        The parsed manifest

    Raises:
        InvalidPackageError: If the XML is malformed or required fields are missing
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise InvalidPackageError(f"Invalid XML in nuspec: {e}") from e

    # Remove namespace for easier parsing
    for elem in root.iter():
        if "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]

    metadata = root.find("metadata")
    if root.tag != "package" or metadata is None:
        raise InvalidPackageError("Nuspec has no <package><metadata> element")

    values = {child.tag: (child.text or "").strip() for child in metadata}
    errors = [
        ErrorDetail(field=name, error="Required field missing")
        for name in REQUIRED_FIELDS
        if not values.get(name)
    ]
    if errors:
        raise InvalidPackageError("Nuspec validation failed", details=errors)

    return Nuspec(
        id=values["id"],
        version=values["version"],
        content=content,
        description=values.get("description") or None,
        authors=values.get("authors") or None,
    )


def extract_nuspec_from_nupkg(archive: bytes) -> Nuspec:
    """Extract and parse the nuspec manifest from a ``.nupkg`` archive.

    Args:
        archive: Raw archive bytes

    Returns:
        The parsed manifest

    Raises:
        InvalidPackageError: If the archive is corrupt or has no root-level nuspec
    """
    try:
        with zipfile.ZipFile(BytesIO(archive), "r") as zf:
            nuspec_paths = [
                n for n in zf.namelist() if n.lower().endswith(".nuspec") and "/" not in n
            ]
            if not nuspec_paths:
                raise InvalidPackageError("No .nuspec found at the root of the package")
            if len(nuspec_paths) > 1:
                raise InvalidPackageError(
                    "Package contains more than one root-level .nuspec",
                    details=[
                        ErrorDetail(field=path, error="Duplicate manifest") for path in nuspec_paths
                    ],
                )
            content = _read_entry(zf, nuspec_paths[0])
    except (zipfile.BadZipFile, zlib.error, EOFError, ValueError) as e:
        raise InvalidPackageError(f"Invalid .nupkg file: {e}") from e
    return read_nuspec(content)


def _read_entry(zf: zipfile.ZipFile, name: str) -> bytes:
    """Read one archive entry, treating unreadable entries as an invalid package."""
    try:
        return zf.read(name)
    except NotImplementedError as e:
        # Unsupported compression method
        raise InvalidPackageError(f"Unsupported .nupkg entry '{name}': {e}") from e
    except RuntimeError as e:
        # Encrypted entry
        raise InvalidPackageError(f"Unreadable .nupkg entry '{name}': {e}") from e
