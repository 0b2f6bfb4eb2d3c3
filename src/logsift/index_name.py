"""Index name derivation.

An index name is the grouping key of a source: every source sharing the
same name is trained and inspected against the same index. The name is
derived from the source path so that the logs of different builds
(``builds/1/log``, ``builds/2/log``) or of rotated files
(``audit.log``, ``audit.log.1``) end up in the same group.
"""

import string
from pathlib import PurePosixPath


NOT_AVAILABLE = 'N/A'
QEMU_INSTANCE_PREFIX = 'qemu/instance-'
QEMU_INSTANCE = 'qemu/instance'
K8S_PREFIX = 'k8s_'

KEPT_SYMBOLS = '/._-'
KEPT_CHARS = frozenset(string.ascii_letters + KEPT_SYMBOLS)


class IndexName(str):
    """Canonical grouping key of a source."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f'IndexName({str.__repr__(self)})'

    @classmethod
    def from_path(cls, path: str) -> 'IndexName':
        return derive(path)


def k8s_service(filename: str) -> str | None:
    """Return the service part of a ``k8s_<service>-<uuid>`` container log name."""
    if not filename.startswith(K8S_PREFIX):
        return None
    service, sep, _uuid = filename.partition('-')
    return service if sep else None


def _split(path: str) -> tuple[str, str]:
    pure = PurePosixPath(path)
    filename = pure.name
    if filename in ('', '.', '..'):
        filename = NOT_AVAILABLE
    parent = pure.parent.name
    if parent in ('', '.', '..'):
        return filename, filename
    return filename, f'{parent}/{filename}'


def derive(path: str) -> IndexName:
    """Derive the index name of a source path.

    This function is pure and total: it never touches the filesystem and
    returns a name for any input string.
    """
    filename, shortname = _split(path)

    if shortname.startswith(QEMU_INSTANCE_PREFIX):
        return IndexName(QEMU_INSTANCE)

    service = k8s_service(filename)
    if service is not None:
        return IndexName(service)

    # Remove numbers and symbols, e.g. "zuul/merger.log.2017-11-12" -> "zuul/merger.log"
    kept = ''.join(c for c in shortname if c in KEPT_CHARS)
    return IndexName(kept.strip(KEPT_SYMBOLS))
