"""Content and source model.

A Content is what the user points logsift at: a file, a directory or a
URL. It expands to one or more Sources, the concrete line producers that
are grouped, trained and inspected.
"""

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

import httpx

from logsift.errors import ContentNotFoundError, DiscoveryError
from logsift.index_name import IndexName, derive
from logsift.reader import open_lines, open_url_lines


logger = logging.getLogger(__name__)

# Suffix appended to a path to find its rotated baseline (e.g. "app.log" -> "app.log.0")
ROTATED_SUFFIX = '.0'
URL_SCHEMES = ('http://', 'https://')


class InputKind(Enum):
    PATH = 'path'
    URL = 'url'


@dataclass(frozen=True)
class Input:
    """A user supplied selector, resolved into a Content with Content.from_input."""

    kind: InputKind
    value: str

    @classmethod
    def path(cls, value: str) -> 'Input':
        return cls(InputKind.PATH, value)

    @classmethod
    def url(cls, value: str) -> 'Input':
        return cls(InputKind.URL, value)

    @classmethod
    def from_string(cls, value: str) -> 'Input':
        if value.startswith(URL_SCHEMES):
            return cls.url(value)
        return cls.path(value)

    def __str__(self) -> str:
        return self.value


# =============================================================================
# Sources
# =============================================================================


class Source(ABC):
    """A single line producing unit with a stable origin path."""

    @abstractmethod
    def lines(self) -> Iterator[str]:
        """Return a fresh iterator over the source lines.

        Raises:
            SourceReadError: while iterating, if the source can not be read
        """

    @property
    @abstractmethod
    def index_path(self) -> str:
        """Path used to derive the index name of this source."""

    @property
    def index_name(self) -> IndexName:
        return derive(self.index_path)


@dataclass(frozen=True)
class LocalSource(Source):
    """A local file.

    base_len is the length of the directory root this file was discovered
    under, or 0 when the file is itself the root.
    """

    base_len: int
    path: str

    def lines(self) -> Iterator[str]:
        return open_lines(self.path)

    @property
    def index_path(self) -> str:
        return self.path[self.base_len :]

    def __str__(self) -> str:
        if self.base_len:
            return self.path[self.base_len :].lstrip('/')
        return self.path


@dataclass(frozen=True)
class UrlSource(Source):
    url: str

    def lines(self) -> Iterator[str]:
        return open_url_lines(self.url)

    @property
    def index_path(self) -> str:
        return urlparse(self.url).path

    def __str__(self) -> str:
        return self.url


def _walk(directory: str, base_len: int) -> Iterator[Source | DiscoveryError]:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        yield DiscoveryError(directory, e.strerror or str(e))
        return

    for entry in entries:
        try:
            # Symlinks are skipped, whatever they point to
            if entry.is_symlink():
                continue
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = not is_dir and entry.is_file(follow_symlinks=False)
        except OSError as e:
            yield DiscoveryError(entry.path, e.strerror or str(e))
            continue

        if is_dir:
            yield from _walk(entry.path, base_len)
        elif is_file:
            yield LocalSource(base_len, entry.path)


def dir_iter(root: str) -> Iterator[Source | DiscoveryError]:
    """Recursively list the regular files under root.

    Entries are visited in name order. Directories and symlinks are not
    yielded; entries that fail to be listed are yielded as DiscoveryError
    so that the caller can report them and keep going.
    """
    return _walk(root, len(root))


# =============================================================================
# Contents
# =============================================================================


class Content(ABC):
    """A logical input expanding to one or more sources."""

    source: Source

    @abstractmethod
    def get_sources(self) -> Iterator[Source | DiscoveryError]:
        """Expand the content into its sources, yielding errors inline."""

    @abstractmethod
    def discover_baselines(self) -> list['Content']:
        """Find baselines for this content when none were given."""

    @staticmethod
    def from_path(path: str) -> 'Content':
        """Classify a filesystem path as a file or a directory content.

        Raises:
            ContentNotFoundError: if path is neither an existing file nor directory
        """
        path = str(path)
        source = LocalSource(0, path)
        if os.path.isdir(path):
            return DirectoryContent(source)
        elif os.path.isfile(path):
            return FileContent(source)
        raise ContentNotFoundError(path)

    @staticmethod
    def from_url(url: str) -> 'Content':
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as e:
            raise ContentNotFoundError(url) from e
        if parsed.scheme not in ('http', 'https') or not parsed.host:
            raise ContentNotFoundError(url)
        return UrlContent(UrlSource(url))

    @staticmethod
    def from_input(user_input: Input) -> 'Content':
        if user_input.kind == InputKind.URL:
            return Content.from_url(user_input.value)
        return Content.from_path(user_input.value)

    @staticmethod
    def discover_baselines_from_path(path: str) -> list['Content']:
        """Look for the rotated version of path and use it as the baseline.

        This only checks the ``.0`` suffix. A missing candidate is not an
        error: the result is empty and the sources will have no baseline.
        """
        candidate = str(path) + ROTATED_SUFFIX
        try:
            baseline = Content.from_input(Input.path(candidate))
        except ContentNotFoundError:
            logger.warning(f'No baseline found for {path} (tried {candidate})')
            return []
        logger.debug(f'Discovered baseline {candidate}')
        return [baseline]


@dataclass(frozen=True)
class FileContent(Content):
    source: LocalSource

    def get_sources(self) -> Iterator[Source | DiscoveryError]:
        yield self.source

    def discover_baselines(self) -> list[Content]:
        return Content.discover_baselines_from_path(self.source.path)

    def __str__(self) -> str:
        return f'File({self.source})'


@dataclass(frozen=True)
class DirectoryContent(Content):
    source: LocalSource

    def get_sources(self) -> Iterator[Source | DiscoveryError]:
        return dir_iter(self.source.path)

    def discover_baselines(self) -> list[Content]:
        return Content.discover_baselines_from_path(self.source.path)

    def __str__(self) -> str:
        return f'Directory({self.source})'


@dataclass(frozen=True)
class UrlContent(Content):
    source: UrlSource

    def get_sources(self) -> Iterator[Source | DiscoveryError]:
        yield self.source

    def discover_baselines(self) -> list[Content]:
        logger.warning(f'Baseline discovery is not supported for remote content: {self.source}')
        return []

    def __str__(self) -> str:
        return f'Url({self.source})'
