"""Top-profile selection with deterministic tie-breaking."""

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Union

from .errors import ProfileSelectionError
from .schema import TopProfile


def _key_of(profile: Any) -> str:
    """Profile key as a plain string (profiles may be models, enums or strings)."""
    key = getattr(profile, "key", profile)
    return key.value if isinstance(key, Enum) else str(key)


def build_rank_map(tie_breaker: Sequence[Any]) -> dict[str, int]:
    """Map each key in a tie-break order to its rank (0 = highest priority).

    Repeated keys keep their first rank.
    """
    ranks: dict[str, int] = {}
    for position, key in enumerate(tie_breaker):
        ranks.setdefault(_key_of(key), position)
    return ranks


def select_top_profile(
    profiles: Sequence[Any],
    scores: Mapping[str, float],
    tie_breaker: Union[Sequence[Any], Mapping[str, int]],
) -> TopProfile:
    """Select the highest-scoring profile.

    Profiles are scanned in the given order. A strictly higher score always
    takes the lead. On an equal score the candidate takes the lead only if
    it is ranked in ``tie_breaker`` and either the incumbent is unranked or
    the candidate ranks earlier. An unranked candidate never displaces an
    equal incumbent.

    Args:
        profiles: Profiles (anything with a ``key``, or bare keys) in catalog order
        scores: Score per profile key; a missing key scores -inf
        tie_breaker: Priority order, earlier wins, or a rank map from
            build_rank_map so callers can build it once per configuration

    Raises:
        ProfileSelectionError: If no profile has a score above -inf
            (empty profiles, or every score missing or NaN)
    """
    if isinstance(tie_breaker, Mapping):
        ranks = tie_breaker
    else:
        ranks = build_rank_map(tie_breaker)

    top_key = None
    top_score = float("-inf")

    for profile in profiles:
        key = _key_of(profile)
        value = scores.get(key, float("-inf"))

        if value > top_score:
            top_key = key
            top_score = value
            continue

        if value == top_score and top_key is not None:
            candidate_rank = ranks.get(key)
            if candidate_rank is None:
                continue
            current_rank = ranks.get(top_key)
            if current_rank is None or candidate_rank < current_rank:
                top_key = key

    if top_key is None:
        raise ProfileSelectionError()

    return TopProfile(key=top_key, score=top_score)
