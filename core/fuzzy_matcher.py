"""
Fuzzy name resolution for Elite65.

Two deliberately different tools live here:

- ``best_match`` ranks candidates and returns the single best one (or None).
  It answers "which task/tracker did the user mean?".
- ``is_similar`` is a symmetric yes/no test. It answers "are these two skill
  names the same thing?" and is used to merge skill tags.
"""
from typing import Any, Callable, Iterable, List, Optional, Sequence

from core.config_manager import config

# tier ranks, lower is better
TIER_PREFIX = 0
TIER_CONTAINED = 1
TIER_EDIT_DISTANCE = 2


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance; insert, delete and substitute all cost 1."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def _default_key(candidate: Any) -> str:
    if isinstance(candidate, dict):
        return str(candidate.get("name", ""))
    return str(getattr(candidate, "name", ""))


def _normalize(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def best_match(
    query: str,
    candidates: Sequence[Any],
    key: Callable[[Any], str] = _default_key,
    max_distance: Optional[int] = None
) -> Optional[Any]:
    """
    Resolve a free-text name against candidate entities.

    Tiers (best first):
        0. the candidate name starts with the query
        1. containment: the query contains the candidate name
        2. edit distance within ``max_distance``

    Ties inside a tier go to an exact match; in tier 1 a longer name beats a
    shorter one; then the smaller edit distance, then list order. A name that
    merely contains the query mid-string only qualifies through tier 2.

    Returns:
        the best candidate, or None when nothing qualifies. Callers must treat
        None as "could not disambiguate".
    """
    needle = _normalize(query)
    if not needle or not candidates:
        return None

    limit = config.FUZZY_MAX_DISTANCE if max_distance is None else max_distance
    best = None
    best_rank = None

    for candidate in candidates:
        name = _normalize(key(candidate))
        if not name:
            continue

        distance = levenshtein(needle, name)
        specificity = 0
        if name.startswith(needle):
            tier = TIER_PREFIX
        elif name in needle:
            # whole strings only, never tokens
            tier = TIER_CONTAINED
            specificity = -len(name)
        elif distance <= limit:
            tier = TIER_EDIT_DISTANCE
        else:
            continue

        rank = (tier, 0 if name == needle else 1, specificity, distance)
        if best_rank is None or rank < best_rank:
            best = candidate
            best_rank = rank

    return best


def is_similar(a: str, b: str, max_distance: Optional[int] = None) -> bool:
    """
    Symmetric similarity test used to merge skill names.

    Similar when identical (ignoring case), when both are longer than
    SIMILARITY_MIN_LENGTH and one contains the other, or when the edit
    distance is within ``max_distance``.
    """
    left = _normalize(a)
    right = _normalize(b)
    if left == right:
        return True

    min_length = config.SIMILARITY_MIN_LENGTH
    if len(left) > min_length and len(right) > min_length:
        if left in right or right in left:
            return True

    limit = config.FUZZY_MAX_DISTANCE if max_distance is None else max_distance
    return levenshtein(left, right) <= limit


def canonical_skill(name: str, registered: Iterable[str]) -> str:
    """Return the registered spelling of ``name``, or ``name`` when it is new."""
    cleaned = (name or "").strip()
    for known in registered:
        if is_similar(cleaned, known):
            return known
    return cleaned


def merge_skill_names(names: Iterable[str], registered: Iterable[str] = ()) -> List[str]:
    """
    Canonicalise skill tags against the registered skills and drop duplicates.

    >>> merge_skill_names(["code", "Coding", "Art"], ["Coding"])
    ['Coding', 'Art']
    """
    known = list(registered)
    merged: List[str] = []
    for raw in names:
        if not raw or not raw.strip():
            continue
        skill = canonical_skill(raw, known + merged)
        if not any(_normalize(skill) == _normalize(existing) for existing in merged):
            merged.append(skill)
    return merged
