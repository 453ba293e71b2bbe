"""
Resolves a free-text (name, region) query to exactly one registry record,
a not-found result, or a short list of candidates to disambiguate.

Stages run strictly in order: an exact lookup first, and the relaxed partial
search only after the exact lookup misses.
"""
import time
from typing import List

from loguru import logger

from eatsafe.cache import build_cache_key
from eatsafe.config import HYGIENE_CACHE_TTL, MAX_CANDIDATES, VIOLATION_CACHE_TTL
from eatsafe.errors import InvalidQueryError
from eatsafe.matchers.classical_matcher import rank_candidates
from eatsafe.models import (
    EMPTY_HISTORY,
    Ambiguous,
    Candidate,
    CandidateRecord,
    NotFound,
    Query,
    Resolution,
    Resolved,
    ViolationHistory,
)
from eatsafe.normalizer import normalize
from eatsafe.sources import Collaborators

NO_GRADE_LABEL = "등급없음"


def not_found_message(name: str, region: str) -> str:
    return (
        f'"{name}" ({region})에 해당하는 식당을 찾을 수 없습니다. '
        "위생등급이 부여되지 않은 식당이거나 검색 조건을 확인해주세요."
    )


def ambiguous_message(name: str, region: str, count: int) -> str:
    return f'"{name}" ({region})에 해당하는 식당이 {count}곳 있습니다. 더 구체적인 이름이나 지역을 입력해주세요.'


def validate_query(query: Query) -> Query:
    """Strip name and region; raise InvalidQueryError if either is blank after normalization."""
    name, region = (query.name or "").strip(), (query.region or "").strip()
    if not name or not normalize(name).strip():
        raise InvalidQueryError("식당 이름을 알려주세요.")
    if not region or not normalize(region).strip():
        raise InvalidQueryError("어느 지역의 식당인지 알려주시겠어요?")
    return Query(name=name, region=region, include_history=query.include_history)


def build_candidates(items: List[CandidateRecord], query: Query) -> List[Candidate]:
    """Top candidates by match score, reduced to what the caller needs to choose."""
    ranked = rank_candidates(items, query)[:MAX_CANDIDATES]
    return [
        Candidate(
            name=record.name,
            address=record.address,
            grade=record.hygiene.grade or NO_GRADE_LABEL,
            score=decision.score,
        )
        for record, decision in ranked
    ]


async def fetch_history(collaborators: Collaborators, name: str, region: str) -> ViolationHistory:
    key = build_cache_key("violation:history", name, region)
    return await collaborators.cache.get_or_fetch(
        key, VIOLATION_CACHE_TTL, lambda: collaborators.violations.get_history(name, region)
    )


async def resolve(collaborators: Collaborators, query: Query) -> Resolution:
    """
    Run the exact -> partial resolution state machine for one query.

    Args:
        collaborators (Collaborators): Registry, violation source and cache.
        query (Query): Name, region and whether to fetch violation history.

    Returns:
        Resolution: Resolved, NotFound or Ambiguous.

    Raises:
        InvalidQueryError: name or region is blank.
        ApiError: any collaborator failure, unchanged and not retried.
    """
    query = validate_query(query)
    name, region = query.name, query.region
    cache = collaborators.cache
    start = time.perf_counter()

    record = await cache.get_or_fetch(
        build_cache_key("hygiene:exact", name, region),
        HYGIENE_CACHE_TTL,
        lambda: collaborators.registry.find_exact(name, region),
    )

    if record is None:
        partial = await cache.get_or_fetch(
            build_cache_key("hygiene:search", name, region),
            HYGIENE_CACHE_TTL,
            lambda: collaborators.registry.search_partial(name, region),
        )
        items = list(partial.items)
        if not items:
            logger.debug(f"❌ No registry match for '{name}' in '{region}' ({time.perf_counter() - start:.2f}s)")
            return NotFound(name=name, region=region, message=not_found_message(name, region))
        if len(items) > 1:
            total = max(partial.total_count, len(items))
            logger.debug(f"🔀 {total} registry candidates for '{name}' in '{region}'")
            return Ambiguous(
                candidates=tuple(build_candidates(items, query)),
                total_count=total,
                message=ambiguous_message(name, region, total),
            )
        record = items[0]

    violations = await fetch_history(collaborators, record.name, region) if query.include_history else EMPTY_HISTORY
    logger.debug(f"✅ Resolved '{name}' -> '{record.name}' in {time.perf_counter() - start:.2f}s")
    return Resolved(record=record, violations=violations)
