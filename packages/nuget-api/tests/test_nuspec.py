# SPDX-License-Identifier: MIT
"""Tests for reading manifests out of .nupkg archives."""

import io
import struct
import zipfile

import pytest

from nuget_api import InvalidPackageError, PackageIdentity
from nuget_api.checksum import compute_sha512, verify_checksum
from nuget_api.nuspec import extract_nuspec_from_nupkg, read_nuspec


def patch_first_entry(archive: bytes, offset: int, value: int) -> bytes:
    """Overwrite a 2-byte field of the first central directory entry."""
    start = archive.index(b"PK\x01\x02") + offset
    return archive[:start] + struct.pack("<H", value) + archive[start + 2 :]


class TestReadNuspec:
    """Tests for nuspec XML parsing."""

    def test_read_with_namespace(self, nuspec_factory):
        """Test id and version are read from a namespaced document."""
        nuspec = read_nuspec(nuspec_factory("Newtonsoft.Json", "12.0.3"))
        assert nuspec.id == "Newtonsoft.Json"
        assert nuspec.version == "12.0.3"
        assert nuspec.authors == "James Newton-King"
        assert nuspec.identity == PackageIdentity.of("newtonsoft.json", "12.0.3")

    def test_read_without_namespace(self):
        """Test documents without a schema namespace are accepted."""
        content = b"<package><metadata><id>Foo</id><version>1.0.0</version></metadata></package>"
        nuspec = read_nuspec(content)
        assert (nuspec.id, nuspec.version) == ("Foo", "1.0.0")
        assert nuspec.description is None

    def test_whitespace_trimmed(self):
        """Test surrounding whitespace does not leak into keys."""
        content = (
            b"<package><metadata><id>\n  Foo\n</id><version> 2.0.0 </version></metadata></package>"
        )
        nuspec = read_nuspec(content)
        assert (nuspec.id, nuspec.version) == ("Foo", "2.0.0")

    def test_content_kept_verbatim(self, nuspec_factory):
        """Test the raw manifest bytes are retained for storage."""
        content = nuspec_factory()
        assert read_nuspec(content).content == content

    def test_invalid_xml(self):
        """Test malformed XML is an invalid package."""
        with pytest.raises(InvalidPackageError) as exc_info:
            read_nuspec(b"<package><metadata>")
        assert "Invalid XML" in str(exc_info.value)

    def test_missing_metadata(self):
        """Test a document without metadata is rejected."""
        with pytest.raises(InvalidPackageError):
            read_nuspec(b"<package><files /></package>")

    def test_missing_required_fields(self):
        """Test missing id and version are reported per field."""
        with pytest.raises(InvalidPackageError) as exc_info:
            read_nuspec(b"<package><metadata><id></id></metadata></package>")
        fields = [d.field for d in exc_info.value.details]
        assert fields == ["id", "version"]
        assert exc_info.value.status_code == 400

    def test_identity_rejects_path_separators(self):
        """Test ids that cannot form storage keys are rejected."""
        nuspec = read_nuspec(
            b"<package><metadata><id>../evil</id><version>1.0.0</version></metadata></package>"
        )
        with pytest.raises(InvalidPackageError):
            nuspec.identity


class TestExtractNuspec:
    """Tests for manifest extraction from archives."""

    def test_extract_success(self, nupkg_factory):
        """Test the root-level nuspec is found and parsed."""
        nuspec = extract_nuspec_from_nupkg(nupkg_factory("Serilog", "2.10.0"))
        assert (nuspec.id, nuspec.version) == ("Serilog", "2.10.0")

    def test_nested_nuspec_ignored(self, nuspec_factory):
        """Test only root-level manifests count."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("content/Other.nuspec", nuspec_factory("Other", "1.0.0"))
            zf.writestr("Serilog.nuspec", nuspec_factory("Serilog", "2.10.0"))

        assert extract_nuspec_from_nupkg(buffer.getvalue()).id == "Serilog"

    def test_no_nuspec(self):
        """Test an archive without a manifest is rejected."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("lib/net45/Foo.dll", b"binary")

        with pytest.raises(InvalidPackageError) as exc_info:
            extract_nuspec_from_nupkg(buffer.getvalue())
        assert "No .nuspec found" in str(exc_info.value)

    def test_multiple_nuspecs(self, nuspec_factory):
        """Test an archive with two root manifests is ambiguous."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("A.nuspec", nuspec_factory("A", "1.0.0"))
            zf.writestr("B.nuspec", nuspec_factory("B", "1.0.0"))

        with pytest.raises(InvalidPackageError):
            extract_nuspec_from_nupkg(buffer.getvalue())

    def test_invalid_zip(self):
        """Test bytes that are not a zip archive are rejected."""
        with pytest.raises(InvalidPackageError) as exc_info:
            extract_nuspec_from_nupkg(b"not a zip file")
        assert "Invalid .nupkg file" in str(exc_info.value)

    def test_truncated_zip(self, nupkg_factory):
        """Test an archive cut short is rejected."""
        with pytest.raises(InvalidPackageError):
            extract_nuspec_from_nupkg(nupkg_factory()[:-30])

    def test_unsupported_compression(self, nupkg_factory):
        """Test a manifest stored with an unknown compression method is rejected."""
        archive = patch_first_entry(nupkg_factory("Foo", "1.0.0"), 10, 99)
        with pytest.raises(InvalidPackageError) as exc_info:
            extract_nuspec_from_nupkg(archive)
        assert exc_info.value.status_code == 400
        assert "Foo.nuspec" in str(exc_info.value)

    def test_encrypted_entry(self, nupkg_factory):
        """Test a password-protected manifest is rejected."""
        archive = patch_first_entry(nupkg_factory("Foo", "1.0.0"), 8, 0x1)
        with pytest.raises(InvalidPackageError) as exc_info:
            extract_nuspec_from_nupkg(archive)
        assert exc_info.value.status_code == 400
        assert "Foo.nuspec" in str(exc_info.value)


class TestChecksum:
    """Tests for hash file content."""

    def test_compute_sha512(self):
        """Test SHA512 is base64 encoded."""
        result = compute_sha512(b"test data")
        assert len(result) == 88
        assert result.endswith("==")

    def test_verify_checksum(self):
        """Test verification against stored hash text."""
        data = b"package bytes"
        assert verify_checksum(data, compute_sha512(data)) is True
        assert verify_checksum(data, compute_sha512(data) + "\n") is True
        assert verify_checksum(b"other bytes", compute_sha512(data)) is False
