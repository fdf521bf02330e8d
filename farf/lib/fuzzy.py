from collections.abc import Sequence
from difflib import get_close_matches

from farf.core.errors import AmbiguousError
from farf.core.models import DailyTask, Quest

__all__ = ["find_in_pool", "find_in_pool_exact"]

FUZZY_MATCH_CUTOFF = 0.8

Item = DailyTask | Quest


def _match_exact(ref: str, pool: Sequence[Item]) -> Item | None:
    exact = next((item for item in pool if item.id == ref), None)
    if exact:
        return exact
    ref_lower = ref.lower()
    return next((item for item in pool if item.name.lower() == ref_lower), None)


def _match_id_prefix(ref: str, pool: Sequence[Item]) -> Item | None:
    ref_lower = ref.lower()
    matches = [item for item in pool if item.id.lower().startswith(ref_lower)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        sample = [item.id for item in matches[:3]]
        raise AmbiguousError(ref, count=len(matches), sample=sample)
    return None


def _match_substring(ref: str, pool: Sequence[Item]) -> Item | None:
    ref_lower = ref.lower()
    matches = [item for item in pool if ref_lower in item.name.lower()]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        sample = [item.name for item in matches[:3]]
        raise AmbiguousError(ref, count=len(matches), sample=sample)
    return None


def _match_fuzzy(ref: str, pool: Sequence[Item]) -> Item | None:
    names = [item.name.lower() for item in pool]
    matches = get_close_matches(ref.lower(), names, n=1, cutoff=FUZZY_MATCH_CUTOFF)
    if matches:
        return next(item for item in pool if item.name.lower() == matches[0])
    return None


def find_in_pool(ref: str, pool: Sequence[Item]) -> Item | None:
    if not pool or not ref.strip():
        return None
    ref = ref.strip()
    return (
        _match_exact(ref, pool)
        or _match_id_prefix(ref, pool)
        or _match_substring(ref, pool)
        or _match_fuzzy(ref, pool)
    )


def find_in_pool_exact(ref: str, pool: Sequence[Item]) -> Item | None:
    if not pool or not ref.strip():
        return None
    ref = ref.strip()
    return _match_exact(ref, pool) or _match_id_prefix(ref, pool) or _match_substring(ref, pool)
