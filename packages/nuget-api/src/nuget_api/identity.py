# SPDX-License-Identifier: MIT
"""Package identity and storage key derivation.

Every package version occupies four related storage objects, all rooted at the
same prefix:

- ``{id}/{version}/{id}.{version}.nupkg``: the package archive
- ``{id}/{version}/{id}.{version}.nupkg.sha512``: base64 SHA-512 of the archive
- ``{id}/{version}/{id}.nuspec``: the package manifest
- ``{id}/index.json``: the versions index shared by all versions of a package

Package ids are case-insensitive and always appear lowercased in keys. Version
strings are used exactly as supplied.

References:
- https://learn.microsoft.com/en-us/nuget/api/package-base-address-resource
"""

from __future__ import annotations

from dataclasses import dataclass

from .storage import Key


@dataclass(frozen=True, slots=True)
class PackageId:
    """Case-insensitive package name.

    Attributes:
        original: The name as supplied, kept for display only
    """

    original: str

    def __post_init__(self) -> None:
        if not self.original:
            raise ValueError("Package id cannot be empty")

    @property
    def lower(self) -> str:
        """Return the canonical lowercase form of the id."""
        return self.original.lower()

    @property
    def versions_key(self) -> Key:
        """Return the key of the versions index for this package."""
        return Key.of(self.lower, "index.json")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageId):
            return NotImplemented
        return self.lower == other.lower

    def __hash__(self) -> int:
        return hash(self.lower)

    def __str__(self) -> str:
        return self.lower


@dataclass(frozen=True, slots=True)
class Version:
    """Package version string, compared and stored verbatim."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Package version cannot be empty")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class PackageIdentity:
    """Package id and version pair naming one publishable package release.

    All keys are pure functions of the pair.

    Examples:
        >>> identity = PackageIdentity(PackageId("Newtonsoft.Json"), Version("12.0.3"))
        >>> str(identity.nupkg_key)
        'newtonsoft.json/12.0.3/newtonsoft.json.12.0.3.nupkg'
    """

    id: PackageId
    version: Version

    @classmethod
    def of(cls, package_id: str, version: str) -> PackageIdentity:
        """Create an identity from plain strings."""
        return cls(PackageId(package_id), Version(version))

    @property
    def root_key(self) -> Key:
        """Return the prefix shared by all artifacts of this identity."""
        return Key.of(self.id.lower, self.version.value)

    @property
    def nupkg_key(self) -> Key:
        """Return the key of the package archive."""
        return self.root_key.child(f"{self.id.lower}.{self.version.value}.nupkg")

    @property
    def hash_key(self) -> Key:
        """Return the key of the archive hash file."""
        return self.root_key.child(f"{self.id.lower}.{self.version.value}.nupkg.sha512")

    @property
    def nuspec_key(self) -> Key:
        """Return the key of the package manifest."""
        return self.root_key.child(f"{self.id.lower}.nuspec")

    def __str__(self) -> str:
        return f"{self.id.lower} {self.version.value}"
