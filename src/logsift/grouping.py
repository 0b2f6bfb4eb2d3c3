"""Group sources by index name."""

import logging
from collections.abc import Iterable

from logsift.content import Content, Source
from logsift.errors import DiscoveryError
from logsift.index_name import IndexName


logger = logging.getLogger(__name__)


def group_sources(
    contents: Iterable[Content],
    errors: list[DiscoveryError] | None = None,
) -> dict[IndexName, list[Source]]:
    """Partition the sources of contents into index name buckets.

    Sources keep their discovery order within a bucket, and several
    contents may contribute to the same bucket.

    Args:
        contents: Contents to expand
        errors: When given, discovery errors are appended to it, otherwise
                they are only logged

    Returns:
        Mapping of index name to the sources sharing it
    """
    groups: dict[IndexName, list[Source]] = {}
    for content in contents:
        for item in content.get_sources():
            if isinstance(item, DiscoveryError):
                logger.warning(f'Could not list {item.path}: {item.reason}')
                if errors is not None:
                    errors.append(item)
                continue
            groups.setdefault(item.index_name, []).append(item)
    return groups
