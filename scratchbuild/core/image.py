# Copyright 2026 Pramod Kumar Voola
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# -----------------------------------------------------------------------------
# IMAGE MODEL - LAYERS, CONFIG, ARCHIVE
# -----------------------------------------------------------------------------
# Responsibility: An immutable in-memory container image: an ordered list of
# layer blobs plus the image config JSON. Every mutation returns a new Image.
#
# Serialization is deterministic for deterministic inputs: config JSON uses
# sorted keys and the `docker save` archive uses zeroed tar header metadata.
# The archive is what gets handed to the Docker daemon's image load API.
# -----------------------------------------------------------------------------

import gzip
import hashlib
import io
import json
import tarfile
import zlib
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from typing import BinaryIO, Callable

from pydantic import BaseModel, Field

from scratchbuild.core.errors import ImageError

GZIP_MAGIC = b"\x1f\x8b"
CHUNK_SIZE = 1024 * 1024


class Layer:
    """
    An opaque layer blob (a tar archive, optionally gzip-compressed).

    The payload is never transformed: data() returns exactly the bytes the
    layer was created from.
    """

    def __init__(self, opener: Callable[[], BinaryIO], source: str = "<stream>") -> None:
        self._opener = opener
        self.source = source

    @classmethod
    def from_file(cls, path: str) -> "Layer":
        """Wrap an existing archive file. The file is opened lazily."""
        return cls(lambda: open(path, "rb"), source=path)

    @classmethod
    def from_bytes(cls, data: bytes, source: str = "<stream>") -> "Layer":
        """Wrap an archive byte stream that was produced in memory."""
        return cls(lambda: io.BytesIO(data), source=source)

    def open(self) -> BinaryIO:
        return self._opener()

    def data(self) -> bytes:
        with self.open() as f:
            return f.read()

    def _hash(self, uncompressed: bool) -> tuple[str, int]:
        sha = hashlib.sha256()
        size = 0
        try:
            with self.open() as raw:
                stream: BinaryIO = raw
                if uncompressed and raw.read(2) == GZIP_MAGIC:
                    raw.seek(0)
                    stream = gzip.GzipFile(fileobj=raw, mode="rb")
                else:
                    raw.seek(0)
                for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
                    sha.update(chunk)
                    size += len(chunk)
        except (OSError, EOFError, zlib.error) as e:
            raise ImageError(f"failed to read layer {self.source}: {e}") from e
        return f"sha256:{sha.hexdigest()}", size

    @cached_property
    def _raw_digest(self) -> tuple[str, int]:
        return self._hash(uncompressed=False)

    @property
    def digest(self) -> str:
        """sha256 of the blob as stored."""
        return self._raw_digest[0]

    @property
    def size(self) -> int:
        return self._raw_digest[1]

    @cached_property
    def diff_id(self) -> str:
        """sha256 of the uncompressed tar stream."""
        return self._hash(uncompressed=True)[0]

    @property
    def compressed(self) -> bool:
        with self.open() as f:
            return f.read(2) == GZIP_MAGIC

    def __repr__(self) -> str:
        return f"Layer(source={self.source!r})"


class ContainerConfig(BaseModel):
    """Runtime config of the image (the "config" object of the image JSON)."""

    entrypoint: list[str] | None = Field(None, alias="Entrypoint")
    cmd: list[str] | None = Field(None, alias="Cmd")
    working_dir: str | None = Field(None, alias="WorkingDir")
    stop_signal: str | None = Field(None, alias="StopSignal")
    on_build: list[str] | None = Field(None, alias="OnBuild")
    labels: dict[str, str] | None = Field(None, alias="Labels")
    env: list[str] | None = Field(None, alias="Env")
    user: str | None = Field(None, alias="User")
    volumes: dict[str, dict] | None = Field(None, alias="Volumes")
    exposed_ports: dict[str, dict] | None = Field(None, alias="ExposedPorts")

    class Config:
        populate_by_name = True
        frozen = True


class RootFS(BaseModel):
    type: str = "layers"
    diff_ids: list[str] = Field(default_factory=list)

    class Config:
        frozen = True


class HistoryEntry(BaseModel):
    created: datetime | None = None
    author: str | None = None
    created_by: str | None = None
    comment: str | None = None

    class Config:
        frozen = True


class ConfigFile(BaseModel):
    """The image config JSON document."""

    architecture: str = ""
    os: str = ""
    created: datetime | None = None
    author: str | None = None
    config: ContainerConfig = Field(default_factory=ContainerConfig)
    rootfs: RootFS = Field(default_factory=RootFS)
    history: list[HistoryEntry] = Field(default_factory=list)

    class Config:
        frozen = True


@dataclass(frozen=True)
class Image:
    """An image config plus its ordered layers."""

    config_file: ConfigFile
    layers: tuple[Layer, ...] = field(default_factory=tuple)

    @property
    def architecture(self) -> str:
        return self.config_file.architecture


def empty_image() -> Image:
    """An image with no layers and a blank config (FROM scratch)."""
    return Image(config_file=ConfigFile())


def set_config(image: Image, config_file: ConfigFile) -> Image:
    """
    Replace the config of an image.

    The rootfs section is rebuilt from the image's current layers, so the
    result always describes the layers it carries.

    Raises:
        ImageError: If config_file is not a ConfigFile.
    """
    if not isinstance(config_file, ConfigFile):
        raise ImageError(f"unsupported config type: {type(config_file).__name__}")

    rootfs = RootFS(diff_ids=[layer.diff_id for layer in image.layers])
    return Image(config_file=config_file.model_copy(update={"rootfs": rootfs}), layers=image.layers)


def append_layers(image: Image, *layers: Layer) -> Image:
    """
    Append layers, in the given order, on top of the existing ones.

    Each appended layer adds its diff_id to rootfs and one history entry.

    Raises:
        ImageError: If any argument is not a Layer.
    """
    for position, layer in enumerate(layers):
        if not isinstance(layer, Layer):
            raise ImageError(f"layer {position} is not a Layer: {type(layer).__name__}")

    cfg = image.config_file
    rootfs = RootFS(
        type=cfg.rootfs.type,
        diff_ids=[*cfg.rootfs.diff_ids, *(layer.diff_id for layer in layers)],
    )
    history = [
        *cfg.history,
        *(HistoryEntry(created=cfg.created, author=cfg.author) for _ in layers),
    ]
    new_cfg = cfg.model_copy(update={"rootfs": rootfs, "history": history})
    return Image(config_file=new_cfg, layers=(*image.layers, *layers))


def config_bytes(image: Image) -> bytes:
    """Serialize the image config to canonical JSON."""
    payload = image.config_file.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def image_id(image: Image) -> str:
    """Content-derived image ID (sha256 of the config JSON)."""
    return f"sha256:{hashlib.sha256(config_bytes(image)).hexdigest()}"


def _add_member(tar: tarfile.TarFile, name: str, size: int, fileobj: BinaryIO) -> None:
    info = tarfile.TarInfo(name=name)
    info.size = size
    info.mode = 0o644
    tar.addfile(info, fileobj)


def write_docker_archive(image: Image, repo_tags: list[str]) -> bytes:
    """
    Serialize an image into the `docker save` tarball layout.

    Layout:
    - <config hex>.json: the image config
    - <layer hex>.tar[.gz]: one blob per distinct layer
    - manifest.json: config name, repo tags and ordered layer names
    """
    config = config_bytes(image)
    config_name = f"{image_id(image).split(':', 1)[1]}.json"

    layer_names: list[str] = []
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        _add_member(tar, config_name, len(config), io.BytesIO(config))

        written: set[str] = set()
        for layer in image.layers:
            suffix = ".tar.gz" if layer.compressed else ".tar"
            name = f"{layer.digest.split(':', 1)[1]}{suffix}"
            layer_names.append(name)
            if name in written:
                continue
            with layer.open() as blob:
                _add_member(tar, name, layer.size, blob)
            written.add(name)

        manifest = [{"Config": config_name, "RepoTags": list(repo_tags), "Layers": layer_names}]
        manifest_data = json.dumps(manifest, sort_keys=True).encode("utf-8")
        _add_member(tar, "manifest.json", len(manifest_data), io.BytesIO(manifest_data))

    return buffer.getvalue()
