# -----------------------------------------------------------------------------
# CORE LAYER
# -----------------------------------------------------------------------------
# The business logic of a scratch image build:
# - BuildEngine: validates requests, assembles images, drives publishing
# - Layer synthesizer: archive passthrough + directory serialization
# - Source validator: checks layer sources against their declared kind
# - Publisher: daemon load (primary tag) + best-effort secondary tags
# - Settings: YAML/env engine settings and request files
# -----------------------------------------------------------------------------

from .engine import BuildEngine, BuildResult, EngineConfig, RegistryPush
from .errors import (
    BuildError,
    ImageError,
    InvalidPrimaryTagError,
    PublishError,
    RequestValidationError,
    SourceError,
    SourceFailure,
    SynthesisError,
    UnsupportedFeatureError,
)
from .publisher import Publisher, TagOutcome, TagStatus

__all__ = [
    "BuildEngine", "BuildResult", "EngineConfig", "RegistryPush",
    "BuildError", "ImageError", "InvalidPrimaryTagError", "PublishError",
    "RequestValidationError", "SourceError", "SourceFailure", "SynthesisError",
    "UnsupportedFeatureError",
    "Publisher", "TagOutcome", "TagStatus",
]
