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
# THE BUILD ENGINE - ORCHESTRATOR
# -----------------------------------------------------------------------------
# Responsibility: Turn a BuildRequest into an image FROM scratch and publish
# it to the local Docker daemon.
#
# Pipeline (first failure aborts, nothing is published on failure):
# 1. Validate the request (startup info, layer count, architecture, base)
# 2. Build the image config on top of an empty image
# 3. Validate + synthesize every layer, in declared order
# 4. Append the layers, parse the primary tag
# 5. Load under the primary tag, alias the secondary tags (best-effort)
#
# The engine holds only immutable configuration; every build owns its own
# image and archive buffers.
# -----------------------------------------------------------------------------

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from rich.console import Console

from scratchbuild.core.errors import (
    InvalidPrimaryTagError,
    RequestValidationError,
    SynthesisError,
    UnsupportedFeatureError,
)
from scratchbuild.core.image import (
    ConfigFile,
    ContainerConfig,
    Image,
    Layer,
    append_layers,
    empty_image,
    image_id,
    set_config,
)
from scratchbuild.core.layers import synthesize_layer
from scratchbuild.core.publisher import Publisher, TagOutcome
from scratchbuild.core.validator import validate_source
from scratchbuild.domain.models import (
    DEFAULT_ARCHITECTURE,
    MAX_LAYERS,
    Architecture,
    BuildRequest,
)
from scratchbuild.infra.docker_client import DockerProvider
from scratchbuild.infra.reference import InvalidTagError, Tag, parse_tag

console = Console()

AUTHOR = "scratchbuild"
TARGET_OS = "linux"


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable engine flags, fixed at construction.

    show_build_logs and push_to_registry are accepted but not implemented:
    the engine reports them as unsupported instead of pretending.
    """

    show_build_logs: bool = False
    push_to_daemon: bool = False
    push_to_registry: bool = False
    verbose: bool = False


class RegistryPush(str, Enum):
    """What happened to the registry push step."""

    SKIPPED = "skipped"
    NOT_SUPPORTED = "not_supported"


@dataclass
class BuildResult:
    """Result of a successful build."""

    image: Image
    image_id: str
    primary_tag: Tag
    loaded: bool = False
    load_response: str | None = None
    tag_outcomes: list[TagOutcome] = field(default_factory=list)
    registry_push: RegistryPush = RegistryPush.SKIPPED


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BuildEngine:
    """
    The internal build engine: validate, synthesize, assemble, publish.

    Everything before the publish step is pure in-memory construction.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        docker_provider: DockerProvider | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialize the engine.

        Args:
            config: Engine flags (defaults: no publishing).
            docker_provider: Daemon access, created on demand when omitted.
            clock: Source of the image creation timestamp.
        """
        self._config = config or EngineConfig()
        self._publisher = Publisher(docker_provider or DockerProvider())
        self._clock = clock

    @property
    def config(self) -> EngineConfig:
        return self._config

    def _log(self, message: str) -> None:
        if self._config.verbose:
            console.print(f"[dim][ENGINE] {message}[/dim]")

    def _validate_request(self, request: BuildRequest) -> str:
        """Check request-level rules. Returns the normalized architecture."""
        if not request.entrypoint and not request.cmd:
            raise RequestValidationError("missing startup info")

        if not request.layers:
            raise RequestValidationError("no layers")

        if len(request.layers) > MAX_LAYERS:
            raise RequestValidationError("too many layers")

        if request.architecture == "":
            architecture = DEFAULT_ARCHITECTURE.value
        elif request.architecture in {a.value for a in Architecture}:
            architecture = request.architecture
        else:
            raise RequestValidationError("bad architecture value")

        if request.from_image:
            raise UnsupportedFeatureError(
                "custom base images are not supported yet", feature="from"
            )

        return architecture

    def _config_file(self, request: BuildRequest, architecture: str) -> ConfigFile:
        container_config = ContainerConfig(
            entrypoint=list(request.entrypoint) or None,
            cmd=list(request.cmd) or None,
            working_dir=request.work_dir or None,
            stop_signal=request.stop_signal or None,
            on_build=list(request.on_build) or None,
            labels=dict(request.labels) or None,
            env=list(request.env_vars) or None,
            user=request.user or None,
            volumes={v: {} for v in sorted(request.volumes)} or None,
            exposed_ports={p: {} for p in sorted(request.exposed_ports)} or None,
        )
        return ConfigFile(
            architecture=architecture,
            os=TARGET_OS,
            created=self._clock(),
            author=AUTHOR,
            config=container_config,
        )

    def _create_layers(self, request: BuildRequest) -> list[Layer]:
        layers: list[Layer] = []
        for index, spec in enumerate(request.layers):
            self._log(f"[{index}] create image layer (type={spec.kind.value} source={spec.source})")

            validate_source(spec.source, spec.kind, layer_index=index)
            try:
                layer = synthesize_layer(spec, verbose=self._config.verbose)
            except SynthesisError as e:
                raise SynthesisError(f"layer {index} ({spec.source}): {e}") from e

            layers.append(layer)
        return layers

    def assemble(self, request: BuildRequest) -> Image:
        """
        Validate the request and build the image in memory.

        Raises:
            RequestValidationError, UnsupportedFeatureError, SourceError,
            SynthesisError, ImageError: The first failure encountered.
        """
        architecture = self._validate_request(request)

        # FROM scratch
        image = empty_image()

        self._log("config image")
        image = set_config(image, self._config_file(request, architecture))

        layers = self._create_layers(request)

        self._log("adding layers to image")
        return append_layers(image, *layers)

    def build(self, request: BuildRequest) -> BuildResult:
        """
        Build the image and publish it according to the engine flags.

        Args:
            request: The build request.

        Returns:
            BuildResult with the image and per-tag outcomes.

        Raises:
            BuildError: Any fatal failure (secondary tag failures are not fatal).
        """
        console.print(
            f"[cyan][ENGINE] Building image: {len(request.layers)} layer(s), "
            f"tags={request.tags}[/cyan]"
        )
        image = self.assemble(request)

        if not request.tags:
            raise RequestValidationError("missing tags")

        try:
            primary = parse_tag(request.tags[0])
        except InvalidTagError as e:
            raise InvalidPrimaryTagError(str(e), tag=request.tags[0]) from e

        result = BuildResult(image=image, image_id=image_id(image), primary_tag=primary)
        console.print(f"[green][ENGINE] Image assembled: {result.image_id[:19]}[/green]")

        if self._config.push_to_daemon:
            self._log("saving image to Docker")
            result.load_response = self._publisher.publish_primary(image, primary)
            result.loaded = True

            if self._config.show_build_logs:
                console.print("[yellow][ENGINE] Build log streaming is not supported yet[/yellow]")

            result.tag_outcomes = self._publisher.apply_secondary_tags(primary, request.tags[1:])

        if self._config.push_to_registry:
            console.print(
                "[yellow][ENGINE] Registry push is not supported yet - image was NOT pushed[/yellow]"
            )
            result.registry_push = RegistryPush.NOT_SUPPORTED

        return result
