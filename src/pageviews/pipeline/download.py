"""Module implementing the download stage."""

from __future__ import annotations

import logging
import os
import zlib
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Final, Protocol

import requests
from filelock import FileLock
from rich.progress import Progress

from ..errors import DecompressionError, TransportError

log = logging.getLogger("pipeline/download")

DOWNLOAD_CHUNK_SIZE: Final[int] = 64 * 1024

# zlib window bits selecting the accepted container formats.
_GZIP_WBITS: Final[int] = 16 + zlib.MAX_WBITS
_AUTO_WBITS: Final[int] = 32 + zlib.MAX_WBITS


class Decompressor(Protocol):
    """Incremental decompressor turning compressed chunks into plain ones."""

    def decompress(self, chunk: bytes) -> bytes: ...

    def flush(self) -> bytes: ...


class ZlibDecompressor:
    """Decompressor wrapping a zlib decompression object."""

    def __init__(self, wbits: int) -> None:
        self._inner = zlib.decompressobj(wbits)

    def decompress(self, chunk: bytes) -> bytes:
        try:
            return self._inner.decompress(chunk)
        except zlib.error as exc:
            raise DecompressionError(f"cannot decompress stream: {exc}") from exc

    def flush(self) -> bytes:
        try:
            data = self._inner.flush()
        except zlib.error as exc:
            raise DecompressionError(f"cannot decompress stream: {exc}") from exc
        if not self._inner.eof:
            raise DecompressionError("truncated compressed stream")
        return data


DecompressorFactory = Callable[[], Decompressor]

_DECOMPRESSORS: Final[dict[str, DecompressorFactory]] = {
    "gz": lambda: ZlibDecompressor(_GZIP_WBITS),
    "zip": lambda: ZlibDecompressor(_AUTO_WBITS),
}


def get_decompressor_factory(compression: str | None) -> DecompressorFactory | None:
    """
    Return the decompressor factory for the given compression token.

    Accepted values are `gz` (gzip), `zip` (zlib or gzip, auto-detected)
    and None (no decompression, in which case we return None).

    Raises:
        ValueError: if the compression token is unknown.
    """
    if not compression:
        return None
    try:
        return _DECOMPRESSORS[compression]
    except KeyError as exc:
        valid = ", ".join(sorted(_DECOMPRESSORS))
        raise ValueError(f"invalid compression {compression}; valid values: {valid}") from exc


def decompress_chunks(
    chunks: Iterable[bytes],
    factory: DecompressorFactory | None,
) -> Iterator[bytes]:
    """Lazily decompress chunks using a fresh decompressor from factory."""
    if factory is None:
        yield from chunks
        return
    decompressor = factory()
    for chunk in chunks:
        data = decompressor.decompress(chunk)
        if data:
            yield data
    tail = decompressor.flush()
    if tail:
        yield tail


def download_file(
    url: str,
    dest: Path,
    *,
    session: requests.Session,
    decompressor_factory: DecompressorFactory | None = None,
    overwrite: bool = False,
    progress: Progress | None = None,
) -> Path:
    """
    Download url into dest, decompressing on the fly, and return dest.

    An existing dest is reused unless overwrite is set. The data is written
    into a temporary file next to dest, which replaces dest only once the
    download completes, so dest never contains a partial download.

    Raises:
        TransportError: if the request fails.
        DecompressionError: if the data cannot be decompressed.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    with FileLock(dest.parent / f".{dest.name}.lock"):
        if dest.exists() and not overwrite:
            log.info("downloading %s... skipped (exists)", dest)
            return dest
        log.info("downloading %s... start", url)
        # Operate inside a temporary directory in the destination directory so
        # `os.replace()` is atomic and we avoid cross-filesystem moves.
        with TemporaryDirectory(dir=dest.parent) as tmp_dir:
            tmp_file = Path(tmp_dir) / dest.name
            _fetch(url, tmp_file, session, decompressor_factory, progress)
            os.replace(tmp_file, dest)
        log.info("downloading %s... ok", url)
        return dest


def _fetch(
    url: str,
    tmp_file: Path,
    session: requests.Session,
    decompressor_factory: DecompressorFactory | None,
    progress: Progress | None,
) -> None:
    task_id = progress.add_task(tmp_file.name, total=None) if progress is not None else None
    try:
        try:
            resp = session.get(url, stream=True)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"cannot fetch {url}: {exc}") from exc

        with resp:
            content_length = resp.headers.get("Content-Length")
            if progress is not None and content_length is not None:
                progress.update(task_id, total=int(content_length))

            def raw_chunks() -> Iterator[bytes]:
                try:
                    for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if progress is not None:
                            progress.update(task_id, advance=len(chunk))
                        yield chunk
                except requests.RequestException as exc:
                    raise TransportError(f"cannot fetch {url}: {exc}") from exc

            with open(tmp_file, "wb") as filep:
                for data in decompress_chunks(raw_chunks(), decompressor_factory):
                    filep.write(data)
    finally:
        if progress is not None:
            progress.remove_task(task_id)
