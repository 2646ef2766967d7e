"""
Tests for layer source validation and filesystem predicates.
"""

import tarfile

import pytest

from scratchbuild.core.errors import SourceError, SourceFailure
from scratchbuild.core.validator import check_source, describe_failure, validate_source
from scratchbuild.domain.models import SourceKind
from scratchbuild.infra import fsutil


class TestFsutil:
    """Filesystem predicates."""

    def test_predicates(self, rootfs, layer_tar, tmp_path):
        assert fsutil.exists(str(rootfs))
        assert not fsutil.exists(str(tmp_path / "missing"))
        assert fsutil.is_dir(str(rootfs))
        assert not fsutil.is_dir(str(layer_tar))
        assert fsutil.is_regular_file(str(layer_tar))
        assert not fsutil.is_regular_file(str(rootfs))

    def test_is_tar_file(self, layer_tar, rootfs):
        assert fsutil.is_tar_file(str(layer_tar))
        assert not fsutil.is_tar_file(str(rootfs / "etc" / "motd"))

    def test_is_tar_file_empty(self, tmp_path):
        empty = tmp_path / "empty.tar"
        empty.write_bytes(b"")
        assert not fsutil.is_tar_file(str(empty))

    @pytest.mark.parametrize("mode, accepted", [("w:gz", True), ("w:bz2", False), ("w:xz", False)])
    def test_is_tar_file_compression(self, rootfs, tmp_path, mode, accepted):
        """Only plain and gzip tarballs count as layer archives."""
        path = tmp_path / "layer.tar.x"
        with tarfile.open(path, mode) as tar:
            tar.add(str(rootfs / "etc" / "motd"), arcname="etc/motd")
        assert fsutil.is_tar_file(str(path)) is accepted


class TestCheckSource:
    """Classified failures."""

    def test_valid_sources(self, rootfs, layer_tar):
        assert check_source(str(layer_tar), SourceKind.TAR) is None
        assert check_source(str(rootfs), SourceKind.DIR) is None

    @pytest.mark.parametrize("kind", [SourceKind.TAR, SourceKind.DIR])
    def test_empty(self, kind):
        assert check_source("", kind) == SourceFailure.EMPTY

    def test_not_found(self, tmp_path):
        assert check_source(str(tmp_path / "x"), SourceKind.DIR) == SourceFailure.NOT_FOUND

    def test_wrong_type(self, rootfs, layer_tar):
        assert check_source(str(rootfs), SourceKind.TAR) == SourceFailure.WRONG_TYPE
        assert check_source(str(layer_tar), SourceKind.DIR) == SourceFailure.WRONG_TYPE

    def test_not_an_archive(self, rootfs):
        motd = str(rootfs / "etc" / "motd")
        assert check_source(motd, SourceKind.TAR) == SourceFailure.NOT_AN_ARCHIVE

    def test_unknown_kind(self, rootfs):
        assert check_source(str(rootfs), "squashfs") == SourceFailure.UNKNOWN_KIND


class TestValidateSource:
    """validate_source raises SourceError naming the path."""

    def test_raises_with_path(self, tmp_path):
        missing = str(tmp_path / "missing.tar")
        with pytest.raises(SourceError) as exc_info:
            validate_source(missing, SourceKind.TAR, layer_index=3)
        assert missing in str(exc_info.value)
        assert exc_info.value.layer_index == 3

    def test_messages(self):
        assert "not a file" in describe_failure("/x", SourceKind.TAR, SourceFailure.WRONG_TYPE)
        assert "not a directory" in describe_failure("/x", SourceKind.DIR, SourceFailure.WRONG_TYPE)
