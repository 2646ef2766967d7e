# -----------------------------------------------------------------------------
# BUILD ERRORS
# -----------------------------------------------------------------------------
# Every fatal failure of a build is a BuildError subclass, so callers can
# catch one type and still tell the stages apart.
# -----------------------------------------------------------------------------

from enum import Enum


class BuildError(Exception):
    """Base class for all fatal build failures."""

    pass


class RequestValidationError(BuildError):
    """Raised when the build request violates a request-level rule."""

    pass


class UnsupportedFeatureError(BuildError):
    """Raised when the request asks for something the engine cannot do yet."""

    def __init__(self, message: str, feature: str) -> None:
        super().__init__(message)
        self.feature = feature


class SourceFailure(str, Enum):
    """Why a layer source was rejected."""

    EMPTY = "empty"
    NOT_FOUND = "not_found"
    WRONG_TYPE = "wrong_type"
    NOT_AN_ARCHIVE = "not_an_archive"
    UNKNOWN_KIND = "unknown_kind"


class SourceError(BuildError):
    """Raised when a layer source is missing or does not match its kind."""

    def __init__(
        self, message: str, path: str, failure: SourceFailure, layer_index: int | None = None
    ) -> None:
        super().__init__(message)
        self.path = path
        self.failure = failure
        self.layer_index = layer_index


class SynthesisError(BuildError):
    """Raised when a layer archive cannot be produced from its source."""

    pass


class ImageError(BuildError):
    """Raised when the image model rejects a config or a layer."""

    pass


class PublishError(BuildError):
    """Raised when the image cannot be loaded under its primary tag."""

    pass


class InvalidPrimaryTagError(RequestValidationError):
    """Raised when tags[0] is not a valid tag reference."""

    def __init__(self, message: str, tag: str) -> None:
        super().__init__(message)
        self.tag = tag
