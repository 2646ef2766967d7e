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
# THE PUBLISHER - DAEMON LOAD & TAGS
# -----------------------------------------------------------------------------
# Responsibility: Hand a fully assembled image to the local Docker daemon.
#
# The Rules:
# - The PRIMARY tag (tags[0]) is load-critical: any failure fails the build
# - SECONDARY tags are best-effort aliases of the loaded primary image
# - Every secondary tag gets an explicit outcome (ok / skipped / failed)
#
# The image is only loaded once it is complete, so a failed build never
# leaves a half-built image behind under the primary tag.
# -----------------------------------------------------------------------------

from dataclasses import dataclass
from enum import Enum

from rich.console import Console

from scratchbuild.core.errors import PublishError
from scratchbuild.core.image import Image, write_docker_archive
from scratchbuild.infra.docker_client import DockerProvider, DockerProviderError
from scratchbuild.infra.reference import InvalidTagError, Tag, parse_tag

console = Console()


class TagStatus(str, Enum):
    """Outcome of one secondary tag."""

    OK = "ok"
    SKIPPED = "skipped"  # malformed tag, never sent to the daemon
    FAILED = "failed"  # daemon refused the alias


@dataclass
class TagOutcome:
    """Result of applying a single secondary tag."""

    tag: str
    status: TagStatus
    error: str | None = None


class Publisher:
    """
    Loads images into the daemon and applies tags.

    Why the asymmetry: a usable image must exist under its main name,
    but convenience aliases should not fail a build that otherwise worked.
    """

    def __init__(self, docker_provider: DockerProvider) -> None:
        self._docker = docker_provider

    def publish_primary(self, image: Image, tag: Tag) -> str:
        """
        Load the image into the daemon under its primary tag.

        Args:
            image: The fully assembled image.
            tag: Parsed primary tag.

        Returns:
            The daemon's load response summary.

        Raises:
            PublishError: If the archive cannot be produced or the load fails.
        """
        console.print(f"[cyan][PUBLISHER] Loading image into Docker as {tag}...[/cyan]")
        try:
            archive = write_docker_archive(image, [tag.name])
            response = self._docker.load_image(archive)
        except (DockerProviderError, OSError) as e:
            console.print(f"[red][PUBLISHER] Load failed for {tag}: {e}[/red]")
            raise PublishError(f"failed to load image as {tag}: {e}") from e

        console.print(f"[green][PUBLISHER] Loaded: {response or tag}[/green]")
        return response

    def apply_secondary_tag(self, primary: Tag, tag_name: str) -> TagOutcome:
        """
        Alias the loaded primary image under another tag.

        Never raises for bad tags or daemon errors; the outcome says what happened.
        """
        try:
            new_tag = parse_tag(tag_name)
        except InvalidTagError as e:
            console.print(f"[yellow][PUBLISHER] Skipping tag '{tag_name}': {e}[/yellow]")
            return TagOutcome(tag=tag_name, status=TagStatus.SKIPPED, error=str(e))

        try:
            self._docker.tag_image(primary.name, new_tag.repository_name, new_tag.tag)
        except DockerProviderError as e:
            console.print(f"[red][PUBLISHER] Error tagging {new_tag}: {e}[/red]")
            return TagOutcome(tag=tag_name, status=TagStatus.FAILED, error=str(e))

        console.print(f"[green][PUBLISHER] Tagged: {new_tag}[/green]")
        return TagOutcome(tag=tag_name, status=TagStatus.OK)

    def apply_secondary_tags(self, primary: Tag, tag_names: list[str]) -> list[TagOutcome]:
        """Apply every secondary tag in order, collecting one outcome per tag."""
        if not tag_names:
            return []

        console.print(f"[cyan][PUBLISHER] Adding {len(tag_names)} other tag(s)...[/cyan]")
        outcomes = [self.apply_secondary_tag(primary, name) for name in tag_names]

        failed = [o for o in outcomes if o.status != TagStatus.OK]
        if failed:
            console.print(
                f"[yellow][PUBLISHER] {len(failed)} of {len(outcomes)} other tag(s) not applied[/yellow]"
            )
        return outcomes
