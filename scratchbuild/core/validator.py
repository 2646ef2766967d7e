# -----------------------------------------------------------------------------
# SOURCE VALIDATOR
# -----------------------------------------------------------------------------
# Responsibility: Confirm a layer source exists and matches its declared kind
# before any archive work begins. Answers with a classified SourceFailure
# (or None) so the engine can name exactly what was wrong.
# -----------------------------------------------------------------------------

from scratchbuild.core.errors import SourceError, SourceFailure
from scratchbuild.domain.models import SourceKind
from scratchbuild.infra import fsutil


def check_source(source: str, kind: SourceKind) -> SourceFailure | None:
    """
    Classify a layer source.

    Args:
        source: Filesystem path of the source.
        kind: Declared source kind.

    Returns:
        None if the source is usable, otherwise the reason it is not.
    """
    if not source:
        return SourceFailure.EMPTY

    if not fsutil.exists(source):
        return SourceFailure.NOT_FOUND

    if kind == SourceKind.TAR:
        if not fsutil.is_regular_file(source):
            return SourceFailure.WRONG_TYPE
        if not fsutil.is_tar_file(source):
            return SourceFailure.NOT_AN_ARCHIVE
        return None

    if kind == SourceKind.DIR:
        if not fsutil.is_dir(source):
            return SourceFailure.WRONG_TYPE
        return None

    return SourceFailure.UNKNOWN_KIND


def describe_failure(source: str, kind: SourceKind, failure: SourceFailure) -> str:
    """Human readable message for a SourceFailure."""
    if failure == SourceFailure.EMPTY:
        return "empty image layer data source"
    if failure == SourceFailure.NOT_FOUND:
        return f"image layer data source path doesnt exist - {source}"
    if failure == SourceFailure.WRONG_TYPE:
        expected = "file" if kind == SourceKind.TAR else "directory"
        return f"image layer data source path is not a {expected} - {source}"
    if failure == SourceFailure.NOT_AN_ARCHIVE:
        return f"image layer data source path is not a tar file - {source}"
    return f"unknown image data source - {source}"


def validate_source(source: str, kind: SourceKind, layer_index: int | None = None) -> None:
    """
    Raise if a layer source is not usable.

    Raises:
        SourceError: With the classified failure and the offending path.
    """
    failure = check_source(source, kind)
    if failure is not None:
        raise SourceError(
            describe_failure(source, kind, failure),
            path=source,
            failure=failure,
            layer_index=layer_index,
        )
