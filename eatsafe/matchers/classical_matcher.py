import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from eatsafe.config import (
    ADDRESS_WEIGHT,
    BRANCH_STRIPPED_SCORE,
    CONTAINMENT_SCORE,
    FUZZY_FALLBACK_CAP,
    MATCH_THRESHOLD,
    NAME_WEIGHT,
)
from eatsafe.matchers.region_matcher import canonical_dong, canonical_sido
from eatsafe.models import CandidateRecord, Query
from eatsafe.normalizer import compact, fold, normalize

_PUNCTUATION = re.compile(r"[^\w\s-]")


@dataclass(frozen=True)
class MatchDecision:
    is_match: bool
    score: float


def match_name(name: str, other: str) -> float:
    """
    Score how likely two restaurant names refer to the same establishment.

    Args:
        name (str): Candidate name.
        other (str): Query name.

    Returns:
        float: 1.0 when the names are equal ignoring case and spacing,
        BRANCH_STRIPPED_SCORE when they are equal only once branch qualifiers
        are stripped, CONTAINMENT_SCORE when one name contains the other,
        otherwise a token-set similarity capped below the containment score.
        0.0 if either side is empty.
    """
    folded = fold(name)
    if folded and folded == fold(other):
        return 1.0
    a, b = compact(name or ""), compact(other or "")
    if not a or not b:
        return 0.0
    if a == b:
        return BRANCH_STRIPPED_SCORE
    if a in b or b in a:
        return CONTAINMENT_SCORE
    ratio = fuzz.token_set_ratio(normalize(name), normalize(other))
    return min(FUZZY_FALLBACK_CAP, ratio * FUZZY_FALLBACK_CAP / 100)


def _address_tokens(address: str) -> List[str]:
    cleaned = _PUNCTUATION.sub(" ", (address or "").lower())
    return [canonical_dong(canonical_sido(token)) for token in cleaned.split()]


def _overlap(tokens: Sequence[str], other: Sequence[str]) -> float:
    if not tokens:
        return 0.0
    pool = set(other)
    return sum(1 for token in tokens if token in pool) / len(tokens)


def match_address(address: str, other: str) -> float:
    """Token overlap of two addresses after alias and dong canonicalization, best direction."""
    a, b = _address_tokens(address), _address_tokens(other)
    if not a or not b:
        return 0.0
    return max(_overlap(a, b), _overlap(b, a))


def match_any_address(forms: Iterable[Optional[str]], other: str) -> float:
    """Best address score over the road and lot forms of a record."""
    return max((match_address(form, other) for form in forms if form), default=0.0)


def match_restaurant(candidate: CandidateRecord, query: Query) -> MatchDecision:
    """
    Weighted name/address match of a registry record against a query.

    The query's region stands in for its address, so a record whose address
    carries the queried district scores the full address weight.
    """
    name_score = match_name(candidate.name, query.name)
    address_score = match_any_address((candidate.road_address, candidate.address), query.region)
    score = round(NAME_WEIGHT * name_score + ADDRESS_WEIGHT * address_score, 4)
    return MatchDecision(is_match=score >= MATCH_THRESHOLD, score=score)


def rank_candidates(
    candidates: Sequence[CandidateRecord], query: Query
) -> List[Tuple[CandidateRecord, MatchDecision]]:
    """Candidates paired with their decisions, best first. Ties keep registry order."""
    scored = [(candidate, match_restaurant(candidate, query)) for candidate in candidates]
    return sorted(scored, key=lambda pair: pair[1].score, reverse=True)
