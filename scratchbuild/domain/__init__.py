# -----------------------------------------------------------------------------
# DOMAIN LAYER
# -----------------------------------------------------------------------------
# Contains the build request (Pydantic models) that callers hand to the
# BuildEngine: startup metadata, ordered layer sources and tags.
# -----------------------------------------------------------------------------

from .models import (
    DEFAULT_ARCHITECTURE,
    MAX_LAYERS,
    Architecture,
    BuildRequest,
    LayerParams,
    LayerSpec,
    SourceKind,
)

__all__ = [
    "DEFAULT_ARCHITECTURE",
    "MAX_LAYERS",
    "Architecture",
    "BuildRequest",
    "LayerParams",
    "LayerSpec",
    "SourceKind",
]
