"""
Drop repeated bills from a listing, and bills that are already stored.

Congress.gov pages overlap when bills are updated mid-walk, so the same
bill id can appear twice in one ingestion sweep.
"""

from __future__ import annotations

from typing import AbstractSet, Callable, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")
K = TypeVar("K")


def dedupe_by_key(records: Iterable[T], key_fn: Callable[[T], Optional[K]]) -> Tuple[List[T], int]:
    """First record per key, in input order, plus how many repeats were dropped.

    Records without a key are skipped and not counted as repeats.
    """
    kept: List[T] = []
    keys: set = set()
    repeats = 0
    for record in records:
        key = key_fn(record)
        if key is None:
            continue
        if key in keys:
            repeats += 1
        else:
            keys.add(key)
            kept.append(record)
    return kept, repeats


def filter_unknown(
    records: Iterable[T],
    key_fn: Callable[[T], Optional[K]],
    known_keys: AbstractSet[K],
) -> List[T]:
    """Unique records whose key is not in ``known_keys``."""
    unique, _ = dedupe_by_key(records, key_fn)
    return [record for record in unique if key_fn(record) not in known_keys]
