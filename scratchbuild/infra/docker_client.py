# -----------------------------------------------------------------------------
# DOCKER PROVIDER
# -----------------------------------------------------------------------------
# Responsibility: A thin wrapper around the Docker SDK for the two daemon
# operations a build needs: loading an image archive and adding a tag.
#
# This is part of the Infrastructure layer - it provides low-level Docker
# access to the Publisher without exposing SDK complexity. Every call is
# attempted exactly once; failures surface as DockerProviderError.
# -----------------------------------------------------------------------------

import os

import docker
from docker import DockerClient
from docker.errors import DockerException
from rich.console import Console
from rich.panel import Panel

console = Console()


class DockerProviderError(Exception):
    """Raised when the Docker daemon is unreachable or rejects a request."""

    pass


class DockerProvider:
    """
    Docker SDK wrapper used to publish built images.

    Why this design:
    - Encapsulates all Docker connection logic in one place
    - Connects lazily, so builds that never publish never need a daemon
    - Fails fast with clear error messages if Docker is unavailable
    """

    def __init__(self, docker_host: str | None = None, client: DockerClient | None = None) -> None:
        """
        Initialize the Docker provider.

        Args:
            docker_host: Daemon URL. Falls back to DOCKER_HOST / local defaults.
            client: Pre-built client (mainly for tests).
        """
        self._docker_host = docker_host or os.getenv("DOCKER_HOST")
        self._client: DockerClient | None = client

    def _connect(self) -> DockerClient:
        """
        Establish connection to Docker daemon.

        Raises:
            DockerProviderError: If the daemon cannot be reached.
        """
        try:
            if self._docker_host:
                client = docker.DockerClient(base_url=self._docker_host)
                console.print(f"[green][DOCKER] Connected via: {self._docker_host}[/green]")
            else:
                client = docker.from_env()
                console.print("[green][DOCKER] Connected to local Docker Engine[/green]")
            client.ping()
        except DockerException as e:
            console.print(
                Panel(
                    "[bold red]CRITICAL: Docker Engine Unavailable[/bold red]\n\n"
                    f"{e}\n\n"
                    "1. Start the Docker daemon\n"
                    "2. Check DOCKER_HOST\n"
                    "3. Re-run the build",
                    title="PUBLISH HALT",
                    border_style="red",
                )
            )
            raise DockerProviderError(f"Docker Engine is not available: {e}") from e
        return client

    def get_client(self) -> DockerClient:
        """
        Get the Docker client, connecting on first use.

        Raises:
            DockerProviderError: If Docker is unavailable.
        """
        if self._client is None:
            self._client = self._connect()
        return self._client

    def load_image(self, archive: bytes) -> str:
        """
        Load a `docker save` style archive into the daemon.

        Args:
            archive: The image tarball bytes.

        Returns:
            Daemon response summary (loaded image IDs / tags).

        Raises:
            DockerProviderError: If the daemon rejects the archive.
        """
        client = self.get_client()
        try:
            images = client.images.load(archive)
        except DockerException as e:
            raise DockerProviderError(f"image load failed: {e}") from e

        loaded = []
        for image in images:
            loaded.extend(image.tags or [image.id])
        return ", ".join(loaded)

    def tag_image(self, source: str, repository: str, tag: str) -> None:
        """
        Add a tag to an image that already exists in the daemon.

        Args:
            source: Existing image reference (e.g. 'app:v1').
            repository: New repository name (registry included if any).
            tag: New tag.

        Raises:
            DockerProviderError: If the daemon refuses the tag.
        """
        client = self.get_client()
        try:
            ok = client.api.tag(source, repository, tag=tag)
        except DockerException as e:
            raise DockerProviderError(f"tagging {source} as {repository}:{tag} failed: {e}") from e

        if not ok:
            raise DockerProviderError(f"daemon refused tag {repository}:{tag} for {source}")

    def is_connected(self) -> bool:
        """
        Check if Docker is currently reachable.

        Returns:
            True if Docker is connected and responsive.
        """
        if self._client is None:
            return False
        try:
            self._client.ping()
            return True
        except DockerException:
            return False
