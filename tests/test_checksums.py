"""Tests for checksum manifest parsing and verification."""

import base64
import hashlib
import io

import pytest

from par_client.errors import ChecksumMismatchError, ParseError
from par_client.repository.checksums import file_digest, parse_checksums, verify_file


class TestParseChecksums:
    """Test parse_checksums."""

    def test_comments_and_blank_lines(self):
        """Test the documented example."""
        table = parse_checksums("a.par\tAAAA\n# comment\n\nb.par\tBBBB\n")
        assert table == {"a.par": "AAAA", "b.par": "BBBB"}

    def test_missing_digest_is_fatal(self):
        """Test that a name without a digest aborts the whole parse."""
        with pytest.raises(ParseError) as excinfo:
            parse_checksums("a.par\tAAAA\nb.par\n")
        assert excinfo.value.context == "checksums"
        assert "line 2" in str(excinfo.value)

    def test_empty_digest_is_fatal(self):
        """Test that a trailing tab with nothing after it is rejected."""
        with pytest.raises(ParseError):
            parse_checksums("a.par\t   \n")

    def test_trailing_whitespace_trimmed(self):
        """Test that digest whitespace and CRLF endings are removed."""
        assert parse_checksums("a.par\tAAAA  \r\n") == {"a.par": "AAAA"}

    def test_last_duplicate_wins(self):
        """Test duplicate names."""
        assert parse_checksums("a.par\tOLD\na.par\tNEW\n") == {"a.par": "NEW"}

    def test_indented_comment(self):
        """Test that comments may be indented."""
        assert parse_checksums("   # note\na.par\tAAAA\n") == {"a.par": "AAAA"}

    def test_streams_and_bytes(self):
        """Test text streams, binary streams and bytes."""
        expected = {"a.par": "AAAA"}
        assert parse_checksums(io.StringIO("a.par\tAAAA\n")) == expected
        assert parse_checksums(io.BytesIO(b"a.par\tAAAA\n")) == expected
        assert parse_checksums(b"a.par\tAAAA\n") == expected

    def test_empty_manifest(self):
        """Test that an empty manifest gives an empty table."""
        assert parse_checksums("") == {}


class TestVerifyFile:
    """Test digest computation and verification."""

    def test_digest_format(self, tmp_path):
        """Test base64 MD5 without padding."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"hello")
        expected = base64.b64encode(hashlib.md5(b"hello").digest()).decode().rstrip("=")
        assert file_digest(str(path)) == expected
        assert not expected.endswith("=")

    def test_match(self, tmp_path):
        """Test a matching file."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"payload")
        table = {"f.bin": file_digest(str(path))}
        assert verify_file(str(path), table, "f.bin") is True

    def test_padded_digest_matches(self, tmp_path):
        """Test that a published digest with padding still matches."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"payload")
        padded = base64.b64encode(hashlib.md5(b"payload").digest()).decode()
        assert verify_file(str(path), {"f.bin": padded}, "f.bin") is True

    def test_mismatch(self, tmp_path):
        """Test that a wrong digest raises."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"payload")
        with pytest.raises(ChecksumMismatchError) as excinfo:
            verify_file(str(path), {"f.bin": "WRONG"}, "f.bin")
        assert excinfo.value.expected == "WRONG"

    def test_no_entry(self, tmp_path):
        """Test that a missing entry is reported, not raised."""
        path = tmp_path / "f.bin"
        path.write_bytes(b"payload")
        assert verify_file(str(path), {}, "f.bin") is False
