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
# DOMAIN MODELS - BUILD REQUESTS
# -----------------------------------------------------------------------------
# These Pydantic models describe a "scratch" image build: the startup metadata
# for the image config plus the ordered layer sources that become its layers.
#
# The models only check shapes and types. The semantic rules (layer count,
# startup info, architecture, base image) belong to the BuildEngine so that
# every violation surfaces as its own BuildError.
# -----------------------------------------------------------------------------

from enum import Enum

from pydantic import BaseModel, Field

MAX_LAYERS = 255


class SourceKind(str, Enum):
    """
    Kind of data source backing one image layer.

    TAR sources are pre-built layer archives wrapped verbatim.
    DIR sources are directory trees serialized into a new archive.
    """

    TAR = "tar"
    DIR = "dir"


class Architecture(str, Enum):
    """CPU architectures an image can be built for."""

    AMD64 = "amd64"
    ARM64 = "arm64"


DEFAULT_ARCHITECTURE = Architecture.AMD64


class LayerParams(BaseModel):
    """Optional settings for directory sources."""

    target_path: str = Field(
        "", description="Absolute path the directory is re-rooted under (default '/')"
    )


class LayerSpec(BaseModel):
    """
    A single layer source.

    Layers are applied in the order they are declared, so a later layer
    may shadow files from an earlier one.
    """

    kind: SourceKind = Field(..., description="Source kind: 'tar' or 'dir'")
    source: str = Field(..., description="Filesystem path of the archive or directory")
    params: LayerParams | None = Field(None, description="Directory source parameters")


class BuildRequest(BaseModel):
    """
    The complete description of one image build.

    Fields:
    - entrypoint / cmd: startup info, at least one must be set
    - work_dir, stop_signal, user, on_build, labels, env_vars, volumes,
      exposed_ports: copied into the image config
    - architecture: 'amd64' (default when empty) or 'arm64'
    - from_image: base image, must be empty (YAML key 'from')
    - layers: 1..255 layer sources, in order
    - tags: tags[0] is the primary tag, the rest are secondary aliases
    """

    entrypoint: list[str] = Field(default_factory=list)
    cmd: list[str] = Field(default_factory=list)
    work_dir: str = ""
    stop_signal: str = ""
    user: str = ""
    on_build: list[str] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    env_vars: list[str] = Field(default_factory=list, description="KEY=VALUE pairs")
    volumes: set[str] = Field(default_factory=set)
    exposed_ports: set[str] = Field(default_factory=set)
    architecture: str = ""
    from_image: str = Field("", alias="from")
    layers: list[LayerSpec] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    class Config:
        """Pydantic configuration for request parsing."""

        populate_by_name = True
