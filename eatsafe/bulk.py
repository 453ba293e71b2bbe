"""
Bulk hygiene checks over a list of restaurants (e.g. an area listing),
filtered by grade / violation status.
"""
import asyncio
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from eatsafe.cache import build_cache_key
from eatsafe.config import BATCH_SIZE, HYGIENE_CACHE_TTL
from eatsafe.errors import InvalidRequestError
from eatsafe.matchers.region_matcher import region_of
from eatsafe.models import BulkHygieneResult, BulkMatch, CandidateRecord, RestaurantRef, ViolationHistory
from eatsafe.resolver import fetch_history
from eatsafe.sources import Collaborators

FILTERS = ("all", "clean", "with_violations", "no_grade")


def batch_iter(items: Sequence, batch_size: int):
    """
    Yield index and slices of size `batch_size` for batched processing.
    """
    for i in range(0, len(items), batch_size):
        yield i, items[i:i + batch_size]


def match_filter(
    filter_name: str,
    record: Optional[CandidateRecord],
    violations: Optional[ViolationHistory],
) -> Tuple[bool, str]:
    """(matches, reason) for one restaurant under a bulk filter."""
    if filter_name == "all":
        return True, "전체 조회"
    if filter_name == "clean":
        grade = record.hygiene.grade if record else None
        if grade in ("AAA", "AA") and (violations is None or violations.total_count == 0):
            return True, f"{grade} 등급, 행정처분 없음"
        return False, ""
    if filter_name == "with_violations":
        if violations is not None and violations.total_count > 0:
            return True, f"행정처분 {violations.total_count}건"
        return False, ""
    if filter_name == "no_grade":
        if record is None or not record.hygiene.has_grade:
            return True, "위생등급 미등록"
        return False, ""
    return False, ""


async def _check_one(
    collaborators: Collaborators, restaurant: RestaurantRef
) -> Tuple[Optional[CandidateRecord], Optional[ViolationHistory]]:
    region = region_of(restaurant.address)
    record, violations = await asyncio.gather(
        collaborators.cache.get_or_fetch(
            build_cache_key("hygiene:exact", restaurant.name, region),
            HYGIENE_CACHE_TTL,
            lambda: collaborators.registry.find_exact(restaurant.name, region),
        ),
        fetch_history(collaborators, restaurant.name, region),
        return_exceptions=True,
    )
    if isinstance(record, Exception):
        logger.warning(f"⚠️ Grade lookup failed for '{restaurant.name}': {record}")
        record = None
    if isinstance(violations, Exception):
        logger.warning(f"⚠️ Violation lookup failed for '{restaurant.name}': {violations}")
        violations = None
    return record, violations


async def bulk_hygiene_check(
    collaborators: Collaborators,
    restaurants: Sequence[RestaurantRef],
    filter_name: str = "all",
    limit: int = 10,
) -> BulkHygieneResult:
    """
    Check hygiene grade and violations for many restaurants, keeping those matching a filter.

    Args:
        collaborators (Collaborators): Registry, violation source and cache.
        restaurants (Sequence[RestaurantRef]): Name plus full address; the
            region for each lookup is taken from the address.
        filter_name (str): all / clean / with_violations / no_grade.
        limit (int): Stop once this many matches were collected.

    Returns:
        BulkHygieneResult: Every restaurant looked at counts as checked, even
        when its lookups failed.
    """
    if filter_name not in FILTERS:
        raise InvalidRequestError(f"유효하지 않은 필터: {filter_name}")
    if limit < 1:
        raise InvalidRequestError("최소 1개 이상 요청해야 합니다.")

    results: List[BulkMatch] = []
    checked = 0
    for start_idx, batch in batch_iter(list(restaurants), BATCH_SIZE):
        if len(results) >= limit:
            break
        logger.debug(f"🔎 Bulk check rows {start_idx}..{start_idx + len(batch) - 1}")
        lookups = await asyncio.gather(*[_check_one(collaborators, restaurant) for restaurant in batch])
        for restaurant, (record, violations) in zip(batch, lookups):
            checked += 1
            matches, reason = match_filter(filter_name, record, violations)
            if matches and len(results) < limit:
                results.append(BulkMatch(restaurant=restaurant, record=record, violations=violations, match_reason=reason))

    return BulkHygieneResult(total_checked=checked, matched_count=len(results), results=results)
