# -----------------------------------------------------------------------------
# INFRASTRUCTURE LAYER
# -----------------------------------------------------------------------------
# Contains low-level infrastructure wrappers:
# - DockerProvider: Docker SDK wrapper (image load + tag)
# - fsutil: filesystem predicates for layer sources
# - reference: image tag parser
# -----------------------------------------------------------------------------

from .docker_client import DockerProvider, DockerProviderError
from .reference import InvalidTagError, Tag, parse_tag

__all__ = ["DockerProvider", "DockerProviderError", "InvalidTagError", "Tag", "parse_tag"]
