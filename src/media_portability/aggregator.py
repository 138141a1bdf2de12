"""Merge of per-category results into one ImportResult."""

from typing import Iterable

from media_portability.models import (
    ALBUMS_COUNT,
    PHOTOS_COUNT,
    VIDEOS_COUNT,
    CategoryResult,
    ImportResult,
)


def aggregate_results(results: Iterable[CategoryResult]) -> ImportResult:
    """Sum bytes and map each category's created count onto its fixed key.

    Categories that appear more than once are summed; categories that do
    not appear count as zero. The returned result has status OK.
    """
    counts = {ALBUMS_COUNT: 0, PHOTOS_COUNT: 0, VIDEOS_COUNT: 0}
    total_bytes = 0

    for result in results:
        counts[result.category.count_key] += result.items_created
        total_bytes += result.bytes

    return ImportResult.ok().copy_with_bytes(total_bytes).copy_with_counts(counts)
