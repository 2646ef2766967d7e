"""
Pytest configuration and fixtures for scratchbuild tests.
"""

import io
import sys
import tarfile
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from scratchbuild.domain.models import BuildRequest, LayerParams, LayerSpec, SourceKind
from scratchbuild.infra.docker_client import DockerProvider

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock():
    """Clock that always returns FIXED_TIME."""
    return lambda: FIXED_TIME


@pytest.fixture
def mock_docker_client():
    """Mock Docker client for testing."""
    client = MagicMock()
    client.ping.return_value = True

    loaded = MagicMock()
    loaded.id = "sha256:abc123"
    loaded.tags = ["good:v1"]
    client.images.load.return_value = [loaded]

    client.api.tag.return_value = True

    return client


@pytest.fixture
def docker_provider(mock_docker_client):
    """DockerProvider wired to the mock client."""
    return DockerProvider(client=mock_docker_client)


@pytest.fixture
def rootfs(tmp_path):
    """A small directory tree: bin/run (0755) and etc/motd (0644)."""
    root = tmp_path / "rootfs"
    (root / "bin").mkdir(parents=True)
    (root / "etc").mkdir()

    run = root / "bin" / "run"
    run.write_bytes(b"#!/bin/sh\necho hello\n")
    run.chmod(0o755)

    motd = root / "etc" / "motd"
    motd.write_text("welcome\n")
    motd.chmod(0o644)
    return root


@pytest.fixture
def layer_tar(tmp_path):
    """A pre-built layer tarball with a single file."""
    path = tmp_path / "layer.tar"
    data = b"payload from another tool\n"
    with tarfile.open(path, "w") as tar:
        info = tarfile.TarInfo(name="data/file.txt")
        info.size = len(data)
        info.mode = 0o644
        tar.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def make_request(rootfs):
    """Factory for valid build requests (one directory layer by default)."""

    def _make(**overrides) -> BuildRequest:
        fields = {
            "entrypoint": ["/app/bin/run"],
            "layers": [
                LayerSpec(
                    kind=SourceKind.DIR,
                    source=str(rootfs),
                    params=LayerParams(target_path="/app"),
                )
            ],
            "tags": ["good:v1"],
        }
        fields.update(overrides)
        return BuildRequest(**fields)

    return _make
