# =============================================================================
# SCRATCHBUILD DOCKER CLIENT TESTS
# =============================================================================
# Tests for the Docker infrastructure client.
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest
from docker.errors import APIError, DockerException, ImageLoadError

from scratchbuild.infra.docker_client import DockerProvider, DockerProviderError


class TestDockerProviderConnection:
    """Connection is lazy and fails fast."""

    def test_no_connection_until_used(self):
        with patch("scratchbuild.infra.docker_client.docker") as mock_docker:
            provider = DockerProvider()
            assert provider.is_connected() is False
            mock_docker.from_env.assert_not_called()

    def test_connects_from_env(self, monkeypatch):
        monkeypatch.delenv("DOCKER_HOST", raising=False)
        with patch("scratchbuild.infra.docker_client.docker") as mock_docker:
            client = MagicMock()
            mock_docker.from_env.return_value = client
            assert DockerProvider().get_client() is client
            client.ping.assert_called_once()

    def test_connects_to_docker_host(self):
        with patch("scratchbuild.infra.docker_client.docker") as mock_docker:
            DockerProvider(docker_host="tcp://docker-proxy:2375").get_client()
            mock_docker.DockerClient.assert_called_once_with(base_url="tcp://docker-proxy:2375")

    def test_unavailable_daemon(self, monkeypatch):
        monkeypatch.delenv("DOCKER_HOST", raising=False)
        with patch("scratchbuild.infra.docker_client.docker") as mock_docker:
            mock_docker.from_env.side_effect = DockerException("socket not found")
            with pytest.raises(DockerProviderError, match="not available"):
                DockerProvider().get_client()

    def test_is_connected(self, docker_provider, mock_docker_client):
        assert docker_provider.is_connected() is True
        mock_docker_client.ping.side_effect = DockerException("gone")
        assert docker_provider.is_connected() is False


class TestDockerProviderOperations:
    """Load and tag wrap SDK errors."""

    def test_load_image(self, docker_provider, mock_docker_client):
        assert docker_provider.load_image(b"archive") == "good:v1"
        mock_docker_client.images.load.assert_called_once_with(b"archive")

    def test_load_image_without_tags_reports_id(self, docker_provider, mock_docker_client):
        mock_docker_client.images.load.return_value[0].tags = []
        assert docker_provider.load_image(b"archive") == "sha256:abc123"

    def test_load_image_error(self, docker_provider, mock_docker_client):
        mock_docker_client.images.load.side_effect = ImageLoadError("bad archive")
        with pytest.raises(DockerProviderError, match="image load failed"):
            docker_provider.load_image(b"archive")

    def test_tag_image(self, docker_provider, mock_docker_client):
        docker_provider.tag_image("good:v1", "good", "v2")
        mock_docker_client.api.tag.assert_called_once_with("good:v1", "good", tag="v2")

    def test_tag_image_api_error(self, docker_provider, mock_docker_client):
        mock_docker_client.api.tag.side_effect = APIError("no such image")
        with pytest.raises(DockerProviderError, match="no such image"):
            docker_provider.tag_image("good:v1", "good", "v2")

    def test_tag_image_refused(self, docker_provider, mock_docker_client):
        mock_docker_client.api.tag.return_value = False
        with pytest.raises(DockerProviderError, match="refused"):
            docker_provider.tag_image("good:v1", "good", "v2")
