# SPDX-License-Identifier: MIT
"""Tests for package identity and key derivation."""

import pytest
from hypothesis import given, strategies as st

from nuget_api import PackageId, PackageIdentity, Version


# Strategies for generating valid data
valid_package_id = st.from_regex(r"[A-Za-z][A-Za-z0-9_\-.]{0,30}[A-Za-z0-9]", fullmatch=True)
valid_version = st.from_regex(r"[0-9]+\.[0-9]+\.[0-9]+(-[A-Za-z0-9]+)?", fullmatch=True)


class TestPackageIdentityKeys:
    """Tests for the four keys of Newtonsoft.Json 12.0.3."""

    identity = PackageIdentity(PackageId("Newtonsoft.Json"), Version("12.0.3"))

    def test_root_key(self):
        """Test root key is lowercase id and version."""
        assert str(self.identity.root_key) == "newtonsoft.json/12.0.3"

    def test_nupkg_key(self):
        """Test archive key."""
        assert (
            str(self.identity.nupkg_key)
            == "newtonsoft.json/12.0.3/newtonsoft.json.12.0.3.nupkg"
        )

    def test_hash_key(self):
        """Test hash file key."""
        assert (
            str(self.identity.hash_key)
            == "newtonsoft.json/12.0.3/newtonsoft.json.12.0.3.nupkg.sha512"
        )

    def test_nuspec_key(self):
        """Test manifest key."""
        assert str(self.identity.nuspec_key) == "newtonsoft.json/12.0.3/newtonsoft.json.nuspec"

    def test_versions_key(self):
        """Test versions index key depends on the id only."""
        assert str(self.identity.id.versions_key) == "newtonsoft.json/index.json"


class TestPackageIdentityInputs:
    """Tests for identity construction and canonical forms."""

    def test_empty_id_rejected(self):
        """Test an empty package id fails fast."""
        with pytest.raises(ValueError):
            PackageId("")

    def test_empty_version_rejected(self):
        """Test an empty version fails fast."""
        with pytest.raises(ValueError):
            Version("")

    def test_of_rejects_empty(self):
        """Test the string constructor validates both parts."""
        with pytest.raises(ValueError):
            PackageIdentity.of("Newtonsoft.Json", "")

    def test_version_case_preserved(self):
        """Test prerelease labels keep their case in keys."""
        identity = PackageIdentity.of("My.Package", "1.0.0-Beta")
        assert str(identity.root_key) == "my.package/1.0.0-Beta"
        assert str(identity.nupkg_key) == "my.package/1.0.0-Beta/my.package.1.0.0-Beta.nupkg"

    def test_package_id_equality_ignores_case(self):
        """Test ids compare by their lowercase form."""
        assert PackageId("Newtonsoft.Json") == PackageId("newtonsoft.json")
        assert hash(PackageId("Newtonsoft.Json")) == hash(PackageId("NEWTONSOFT.JSON"))

    def test_package_id_keeps_original(self):
        """Test the supplied spelling is retained for display."""
        package_id = PackageId("Newtonsoft.Json")
        assert package_id.original == "Newtonsoft.Json"
        assert package_id.lower == "newtonsoft.json"

    def test_identities_with_differently_cased_ids_are_equal(self):
        """Test identity equality follows id equality."""
        assert PackageIdentity.of("A.B", "1.0.0") == PackageIdentity.of("a.b", "1.0.0")
        assert PackageIdentity.of("a.b", "1.0.0-RC") != PackageIdentity.of("a.b", "1.0.0-rc")


class TestPackageIdentityProperties:
    """Property-based tests for key derivation."""

    @given(package_id=valid_package_id, version=valid_version)
    def test_keys_share_root(self, package_id: str, version: str):
        """All artifact keys live under the root key."""
        identity = PackageIdentity.of(package_id, version)
        root = str(identity.root_key) + "/"
        assert str(identity.nupkg_key).startswith(root)
        assert str(identity.hash_key).startswith(root)
        assert str(identity.nuspec_key).startswith(root)

    @given(package_id=valid_package_id, version=valid_version)
    def test_hash_key_extends_nupkg_key(self, package_id: str, version: str):
        """The hash file sits next to the archive with a .sha512 suffix."""
        identity = PackageIdentity.of(package_id, version)
        assert str(identity.hash_key) == str(identity.nupkg_key) + ".sha512"

    @given(package_id=valid_package_id, version=valid_version)
    def test_keys_are_deterministic(self, package_id: str, version: str):
        """Keys depend on nothing but the id and version."""
        first = PackageIdentity.of(package_id, version)
        second = PackageIdentity.of(package_id.upper(), version)
        assert first.root_key == second.root_key
        assert first.nupkg_key == second.nupkg_key
        assert first.hash_key == second.hash_key
        assert first.nuspec_key == second.nuspec_key
