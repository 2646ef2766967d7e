"""
Tests for the in-memory image model.
"""

import gzip
import hashlib
import io
import json
import tarfile

import pytest

from scratchbuild.core.errors import ImageError
from scratchbuild.core.image import (
    ConfigFile,
    ContainerConfig,
    Layer,
    append_layers,
    config_bytes,
    empty_image,
    image_id,
    set_config,
    write_docker_archive,
)


def _tar_bytes(name: str, content: bytes) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        info = tarfile.TarInfo(name=name)
        info.size = len(content)
        tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


@pytest.fixture
def config_file():
    return ConfigFile(
        architecture="amd64",
        os="linux",
        author="scratchbuild",
        config=ContainerConfig(entrypoint=["/run"], env=["A=1"]),
    )


class TestLayer:
    """Tests for Layer blobs."""

    def test_from_bytes_round_trip(self):
        data = _tar_bytes("a", b"1")
        assert Layer.from_bytes(data).data() == data

    def test_digest_is_sha256(self):
        data = _tar_bytes("a", b"1")
        layer = Layer.from_bytes(data)
        assert layer.digest == f"sha256:{hashlib.sha256(data).hexdigest()}"
        assert layer.size == len(data)

    def test_gzip_diff_id_uses_uncompressed_stream(self):
        raw = _tar_bytes("a", b"hello")
        compressed = gzip.compress(raw)
        layer = Layer.from_bytes(compressed)

        assert layer.compressed is True
        assert layer.digest == f"sha256:{hashlib.sha256(compressed).hexdigest()}"
        assert layer.diff_id == f"sha256:{hashlib.sha256(raw).hexdigest()}"

    def test_truncated_gzip_raises_image_error(self):
        compressed = gzip.compress(_tar_bytes("a", b"x" * 4096))
        layer = Layer.from_bytes(compressed[:-12], source="half.tar.gz")
        with pytest.raises(ImageError, match="half.tar.gz"):
            layer.diff_id

    def test_from_file_is_verbatim(self, layer_tar):
        assert Layer.from_file(str(layer_tar)).data() == layer_tar.read_bytes()


class TestImageMutation:
    """Tests for set_config / append_layers."""

    def test_empty_image_has_no_layers(self):
        image = empty_image()
        assert image.layers == ()
        assert image.config_file.rootfs.diff_ids == []

    def test_set_config_returns_new_image(self, config_file):
        base = empty_image()
        configured = set_config(base, config_file)
        assert configured is not base
        assert configured.architecture == "amd64"
        assert base.config_file.architecture == ""

    def test_set_config_rejects_other_types(self):
        with pytest.raises(ImageError):
            set_config(empty_image(), {"architecture": "amd64"})

    def test_append_preserves_order(self, config_file):
        first = Layer.from_bytes(_tar_bytes("a", b"1"))
        second = Layer.from_bytes(_tar_bytes("b", b"2"))
        image = append_layers(set_config(empty_image(), config_file), first, second)

        assert image.layers == (first, second)
        assert image.config_file.rootfs.diff_ids == [first.diff_id, second.diff_id]
        assert len(image.config_file.history) == 2

    def test_append_rejects_non_layers(self, config_file):
        with pytest.raises(ImageError):
            append_layers(set_config(empty_image(), config_file), b"not a layer")


class TestSerialization:
    """Tests for config JSON and the docker archive."""

    def test_config_bytes_uses_docker_keys(self, config_file):
        payload = json.loads(config_bytes(set_config(empty_image(), config_file)))
        assert payload["config"]["Entrypoint"] == ["/run"]
        assert payload["config"]["Env"] == ["A=1"]
        assert payload["os"] == "linux"
        assert payload["rootfs"]["type"] == "layers"
        assert "Cmd" not in payload["config"]

    def test_image_id_is_stable(self, config_file):
        layer = Layer.from_bytes(_tar_bytes("a", b"1"))
        one = append_layers(set_config(empty_image(), config_file), layer)
        two = append_layers(set_config(empty_image(), config_file), layer)
        assert image_id(one) == image_id(two)
        assert image_id(one).startswith("sha256:")

    def test_docker_archive_layout(self, config_file):
        first = Layer.from_bytes(_tar_bytes("a", b"1"))
        second = Layer.from_bytes(_tar_bytes("b", b"2"))
        image = append_layers(set_config(empty_image(), config_file), first, second)

        archive = write_docker_archive(image, ["app:v1"])
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:") as tar:
            manifest = json.loads(tar.extractfile("manifest.json").read())
            entry = manifest[0]
            assert entry["RepoTags"] == ["app:v1"]
            assert entry["Config"] == f"{image_id(image).split(':')[1]}.json"
            assert entry["Layers"] == [
                f"{first.digest.split(':')[1]}.tar",
                f"{second.digest.split(':')[1]}.tar",
            ]
            assert tar.extractfile(entry["Layers"][0]).read() == first.data()
            assert tar.extractfile(entry["Config"]).read() == config_bytes(image)

    def test_duplicate_layers_written_once(self, config_file):
        layer = Layer.from_bytes(_tar_bytes("a", b"1"))
        image = append_layers(set_config(empty_image(), config_file), layer, layer)

        archive = write_docker_archive(image, ["app:v1"])
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:") as tar:
            manifest = json.loads(tar.extractfile("manifest.json").read())
            assert len(manifest[0]["Layers"]) == 2
            assert len(tar.getnames()) == 3  # config, one layer blob, manifest
