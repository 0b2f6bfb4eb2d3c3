"""Line readers for local files and remote URLs.

Compressed content (gzip, bzip2, xz) is decompressed transparently. Local
files are detected by their magic bytes, remote ones by the URL suffix
since the stream can not be rewound.

Every reader is a generator holding its handle in a ``with`` block, so the
handle is released when the consumer stops early and the generator is
closed.
"""

import bz2
import gzip
import logging
import lzma
import zlib
from collections.abc import Iterable, Iterator
from enum import Enum

import httpx

from logsift.errors import SourceReadError
from logsift.utils import get_http_timeout


logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# Errors raised by the decompressors or the transport on corrupted input
READ_ERRORS = (OSError, EOFError, zlib.error, lzma.LZMAError, httpx.HTTPError)


class CompressionFormat(Enum):
    NONE = 'none'
    GZIP = 'gzip'
    BZIP2 = 'bzip2'
    XZ = 'xz'


MAGIC_BYTES = [
    (b'\x1f\x8b', CompressionFormat.GZIP),
    (b'BZh', CompressionFormat.BZIP2),
    (b'\xfd7zXZ\x00', CompressionFormat.XZ),
]

SUFFIXES = {
    '.gz': CompressionFormat.GZIP,
    '.bz2': CompressionFormat.BZIP2,
    '.xz': CompressionFormat.XZ,
}


def detect_compression(path: str) -> CompressionFormat:
    """Detect the compression format of a local file from its header."""
    with open(path, 'rb') as f:
        header = f.read(6)
    for magic, fmt in MAGIC_BYTES:
        if header.startswith(magic):
            return fmt
    return CompressionFormat.NONE


def detect_compression_from_name(name: str) -> CompressionFormat:
    """Guess the compression format from a file name or URL suffix."""
    name = name.split('?', 1)[0].lower()
    for suffix, fmt in SUFFIXES.items():
        if name.endswith(suffix):
            return fmt
    return CompressionFormat.NONE


def decode_line(raw: bytes) -> str:
    """Decode a raw line, dropping the line terminator."""
    return raw.decode('utf-8', errors='replace').rstrip('\r\n')


def _open_binary(path: str, fmt: CompressionFormat):
    if fmt == CompressionFormat.GZIP:
        return gzip.open(path, 'rb')
    if fmt == CompressionFormat.BZIP2:
        return bz2.open(path, 'rb')
    if fmt == CompressionFormat.XZ:
        return lzma.open(path, 'rb')
    return open(path, 'rb')


def open_lines(path: str) -> Iterator[str]:
    """Yield the decoded lines of a local, possibly compressed, file.

    Raises:
        SourceReadError: if the file can not be opened or fails mid-stream
    """
    try:
        fmt = detect_compression(path)
        logger.debug(f'Reading {path} (compression: {fmt.value})')
        with _open_binary(path, fmt) as f:
            for raw in f:
                yield decode_line(raw)
    except READ_ERRORS as e:
        raise SourceReadError(path, str(e) or type(e).__name__) from e


def _decompressor(fmt: CompressionFormat):
    if fmt == CompressionFormat.GZIP:
        return zlib.decompressobj(16 + zlib.MAX_WBITS)
    if fmt == CompressionFormat.BZIP2:
        return bz2.BZ2Decompressor()
    if fmt == CompressionFormat.XZ:
        return lzma.LZMADecompressor()
    return None


def split_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Re-assemble a stream of byte chunks into lines."""
    pending = b''
    for chunk in chunks:
        pending += chunk
        *lines, pending = pending.split(b'\n')
        yield from lines
    if pending:
        yield pending


def _decompress_chunks(chunks: Iterable[bytes], fmt: CompressionFormat) -> Iterator[bytes]:
    decompressor = _decompressor(fmt)
    if decompressor is None:
        yield from chunks
        return
    for chunk in chunks:
        data = decompressor.decompress(chunk)
        if data:
            yield data
    if fmt == CompressionFormat.GZIP:
        tail = decompressor.flush()
        if tail:
            yield tail


def get_http_client() -> httpx.Client:
    """Create the HTTP client used for remote sources."""
    return httpx.Client(timeout=get_http_timeout(), follow_redirects=True)


def open_url_lines(url: str) -> Iterator[str]:
    """Yield the decoded lines of a remote, possibly compressed, resource.

    Raises:
        SourceReadError: on HTTP errors, transport failures or corrupted data
    """
    fmt = detect_compression_from_name(url)
    logger.debug(f'Fetching {url} (compression: {fmt.value})')
    try:
        with get_http_client() as client:
            with client.stream('GET', url) as response:
                response.raise_for_status()
                chunks = _decompress_chunks(response.iter_bytes(CHUNK_SIZE), fmt)
                for raw in split_lines(chunks):
                    yield decode_line(raw)
    except READ_ERRORS as e:
        raise SourceReadError(url, str(e) or type(e).__name__) from e
