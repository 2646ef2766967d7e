# -----------------------------------------------------------------------------
# LAYER SYNTHESIZER
# -----------------------------------------------------------------------------
# Responsibility: Turn one LayerSpec into one Layer blob.
#
# - TAR sources are wrapped as-is (the file bytes ARE the layer).
# - DIR sources are walked in lexical pre-order and written into a fresh tar
#   stream, re-rooted under params.target_path (default "/").
#
# Only directories and regular files can be archived. Anything else (symlink,
# device, socket, fifo) fails the layer instead of being skipped. Entries
# that cannot be listed during the walk are skipped with a warning.
# -----------------------------------------------------------------------------

import io
import os
import posixpath
import stat
import tarfile
from typing import BinaryIO, Iterator

from rich.console import Console

from scratchbuild.core.errors import SynthesisError
from scratchbuild.core.image import Layer
from scratchbuild.domain.models import LayerSpec, SourceKind
from scratchbuild.infra import fsutil

console = Console()

DEFAULT_TARGET_PATH = "/"


class ArchiveWriter:
    """
    Append-only in-memory tar stream with a single finalize step.

    Use as a context manager: close() runs exactly once on every exit path.
    Writing to (or closing) a finalized archive is a programming error.
    """

    def __init__(self) -> None:
        self._buffer = io.BytesIO()
        self._tar = tarfile.open(fileobj=self._buffer, mode="w", format=tarfile.PAX_FORMAT)
        self._closed = False

    def __enter__(self) -> "ArchiveWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._closed:
            return
        if exc_type is None:
            self.close()
            return
        try:
            self.close()
        except SynthesisError as close_error:
            console.print(f"[yellow][LAYERS] {close_error} (after: {exc})[/yellow]")

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("archive is already finalized")

    def add_directory(self, name: str, mode: int) -> None:
        """Write a directory entry (no payload)."""
        self._ensure_open()
        info = tarfile.TarInfo(name=name)
        info.type = tarfile.DIRTYPE
        info.mode = mode
        try:
            self._tar.addfile(info)
        except (OSError, ValueError) as e:
            raise SynthesisError(f"failed to write tar header for {name}: {e}") from e

    def add_file(self, name: str, mode: int, size: int, content: BinaryIO) -> None:
        """Write a regular file entry followed by exactly `size` bytes of content."""
        self._ensure_open()
        info = tarfile.TarInfo(name=name)
        info.type = tarfile.REGTYPE
        info.mode = mode
        info.size = size
        try:
            self._tar.addfile(info, content)
        except ValueError as e:
            raise SynthesisError(f"failed to write tar header for {name}: {e}") from e
        except OSError as e:
            raise SynthesisError(f"failed to read file into the tar ({name}): {e}") from e

    def close(self) -> None:
        """Finalize the archive (writes the end-of-archive blocks)."""
        self._ensure_open()
        self._closed = True
        try:
            self._tar.close()
        except OSError as e:
            raise SynthesisError(f"failed to finish tar: {e}") from e

    def getvalue(self) -> bytes:
        if not self._closed:
            raise RuntimeError("archive is not finalized yet")
        return self._buffer.getvalue()


WalkEntry = tuple[str, os.stat_result | None, OSError | None]


def walk_tree(root: str) -> Iterator[WalkEntry]:
    """
    Walk a tree in lexical pre-order without following symlinks.

    Yields (path, stat, None) for every entry, parents before children.
    When an entry cannot be stat'ed or a directory cannot be listed,
    (path, None, error) is yielded instead and the walk moves on.
    """
    try:
        root_stat = os.lstat(root)
    except OSError as e:
        yield root, None, e
        return
    yield from _walk_entry(root, root_stat)


def _walk_entry(path: str, st: os.stat_result) -> Iterator[WalkEntry]:
    yield path, st, None
    if not stat.S_ISDIR(st.st_mode):
        return

    try:
        names = sorted(os.listdir(path))
    except OSError as e:
        yield path, None, e
        return

    for name in names:
        child = os.path.join(path, name)
        try:
            child_stat = os.lstat(child)
        except OSError as e:
            yield child, None, e
            continue
        yield from _walk_entry(child, child_stat)


def archive_name(base_path: str, rel_path: str) -> str:
    """Re-root a host relative path under base_path using '/' separators."""
    rel_slash = rel_path.replace(os.sep, "/")
    name = posixpath.normpath(posixpath.join(base_path, rel_slash))
    # normpath keeps exactly two leading slashes
    if name.startswith("//"):
        name = name[1:]
    return name


def _target_path(spec: LayerSpec) -> str:
    if spec.params is not None and spec.params.target_path:
        return spec.params.target_path
    return DEFAULT_TARGET_PATH


def _archive_entry(
    writer: ArchiveWriter, source: str, path: str, st: os.stat_result, base_path: str, verbose: bool
) -> None:
    try:
        rel = os.path.relpath(path, source)
    except ValueError as e:
        raise SynthesisError(f"failed to calculate relative path: {e}") from e

    name = archive_name(base_path, rel)
    mode = stat.S_IMODE(st.st_mode)

    if stat.S_ISDIR(st.st_mode):
        if verbose:
            console.print(f"[dim][LAYERS] dir  {name} ({oct(mode)})[/dim]")
        writer.add_directory(name, mode)
        return

    if not stat.S_ISREG(st.st_mode):
        kind = stat.filemode(st.st_mode)
        raise SynthesisError(f"not implemented archiving file type {kind} ({rel})")

    if verbose:
        console.print(f"[dim][LAYERS] file {name} ({oct(mode)}, {st.st_size} bytes)[/dim]")
    try:
        f = open(path, "rb")
    except OSError as e:
        raise SynthesisError(f"failed to open {rel}: {e}") from e
    with f:
        writer.add_file(name, mode, st.st_size, f)


def layer_from_tar(spec: LayerSpec) -> Layer:
    """
    Wrap a pre-built layer archive without re-archiving it.

    Raises:
        SynthesisError: If the source is not an existing regular file.
    """
    if not fsutil.exists(spec.source) or not fsutil.is_regular_file(spec.source):
        raise SynthesisError("bad input data")

    return Layer.from_file(spec.source)


def layer_from_dir(spec: LayerSpec, verbose: bool = False) -> Layer:
    """
    Serialize a directory tree into a new layer archive.

    Raises:
        SynthesisError: On unsupported entry types, header or read failures,
            or if the archive cannot be finalized.
    """
    if not fsutil.exists(spec.source) or not fsutil.is_dir(spec.source):
        raise SynthesisError("bad input data")

    base_path = _target_path(spec)
    entries = 0

    with ArchiveWriter() as writer:
        try:
            for path, st, walk_error in walk_tree(spec.source):
                if walk_error is not None:
                    # TODO: fail the layer here instead of dropping the entry from the image
                    console.print(
                        f"[yellow][LAYERS] Skipping unreadable entry {path}: {walk_error}[/yellow]"
                    )
                    continue
                _archive_entry(writer, spec.source, path, st, base_path, verbose)
                entries += 1
        except SynthesisError as e:
            raise SynthesisError(f"failed to scan files in {spec.source}: {e}") from e

    console.print(f"[cyan][LAYERS] Archived {entries} entries from {spec.source} -> {base_path}[/cyan]")
    return Layer.from_bytes(writer.getvalue(), source=spec.source)


def synthesize_layer(spec: LayerSpec, verbose: bool = False) -> Layer:
    """Produce the Layer for one LayerSpec according to its kind."""
    if spec.kind == SourceKind.TAR:
        return layer_from_tar(spec)
    if spec.kind == SourceKind.DIR:
        return layer_from_dir(spec, verbose=verbose)
    raise SynthesisError(f"unknown image data source - {spec.source}")
