"""
Fuses a resolved registry record with map/rating provider data into a
single UnifiedEntity. Provider failures degrade to missing ratings and
never fail the aggregation.
"""
import asyncio
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence

from loguru import logger

from eatsafe.cache import build_cache_key
from eatsafe.config import CERTIFICATION_CACHE_TTL, PLACE_CACHE_TTL
from eatsafe.errors import ApiError
from eatsafe.models import (
    EMPTY_HISTORY,
    NO_GRADE,
    PlaceInfo,
    Resolved,
    SourceRating,
    UnifiedEntity,
)
from eatsafe.normalizer import is_franchise
from eatsafe.sources import Collaborators, PlaceProvider


def combine_ratings(ratings: Sequence[Optional[float]]) -> Optional[float]:
    """
    Arithmetic mean of the available ratings, rounded half-up to one decimal.

    Returns None when no source has a rating, so "unknown" is never reported as 0.
    """
    values = [Decimal(str(rating)) for rating in ratings if rating is not None]
    if not values:
        return None
    mean = sum(values, Decimal("0")) / len(values)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


async def _lookup_place(collaborators: Collaborators, provider: PlaceProvider, name: str, region: str) -> Optional[PlaceInfo]:
    key = build_cache_key(f"place:{provider.source}", name, region)
    try:
        return await collaborators.cache.get_or_fetch(
            key, PLACE_CACHE_TTL, lambda: provider.search_by_name(name, region)
        )
    except ApiError as e:
        logger.warning(f"⚠️ {provider.source} lookup failed for '{name}' ({region}): {e}")
        return None


async def _lookup_certification(collaborators: Collaborators, name: str) -> bool:
    source = collaborators.certification
    if source is None:
        return False
    try:
        return bool(await collaborators.cache.get_or_fetch(
            build_cache_key("certification:haccp", name), CERTIFICATION_CACHE_TTL, lambda: source.is_certified(name)
        ))
    except ApiError as e:
        logger.warning(f"⚠️ Certification lookup failed for '{name}': {e}")
        return False


def _first(values: Sequence[Optional[str]]) -> Optional[str]:
    return next((value for value in values if value), None)


def _ratings(places: Sequence[Optional[PlaceInfo]], providers: Sequence[PlaceProvider]) -> Dict[str, SourceRating]:
    ratings = {}
    for provider, place in zip(providers, places):
        if place is None:
            ratings[provider.source] = SourceRating(score=None, reviews=0)
        else:
            ratings[provider.source] = SourceRating(score=place.rating, reviews=place.review_count)
    return ratings


async def aggregate(collaborators: Collaborators, resolved: Resolved, region: str) -> UnifiedEntity:
    """
    Build the unified view of one resolved restaurant.

    Args:
        collaborators (Collaborators): Providers, optional certification source and cache.
        resolved (Resolved): Registry record plus violation history.
        region (str): Region from the user's query, used for provider lookups.

    Returns:
        UnifiedEntity: Frozen entity; provider fields are None/0 where unavailable.
    """
    record = resolved.record
    providers: List[PlaceProvider] = list(collaborators.places)
    start = time.perf_counter()

    results = await asyncio.gather(
        *[_lookup_place(collaborators, provider, record.name, region) for provider in providers],
        _lookup_certification(collaborators, record.name),
    )
    places: List[Optional[PlaceInfo]] = list(results[:-1])
    certified = results[-1]
    found = [place for place in places if place is not None]

    ratings = _ratings(places, providers)
    combined = combine_ratings([rating.score for rating in ratings.values()])
    franchise = is_franchise(record.name) or any(is_franchise(place.name) for place in found)

    logger.debug(
        f"🧩 Aggregated '{record.name}': {len(found)}/{len(providers)} providers, "
        f"rating={combined} in {time.perf_counter() - start:.2f}s"
    )
    return UnifiedEntity(
        name=record.name,
        address=record.road_address or record.address or _first([p.road_address or p.address for p in found]) or "",
        category=_first([place.category for place in found]) or record.business_type,
        business_type=record.business_type,
        license_no=record.license_no,
        hygiene=record.hygiene,
        violations=resolved.violations,
        ratings=ratings,
        combined_rating=combined,
        has_rating=combined is not None,
        review_count=sum(rating.reviews for rating in ratings.values()),
        price_range=_first([place.price_range for place in found]),
        is_franchise=franchise,
        is_certified=certified,
    )


def from_listing(place: PlaceInfo) -> UnifiedEntity:
    """Entity for an area listing that has no registry record: no grade, no known violations."""
    rating = SourceRating(score=place.rating, reviews=place.review_count)
    return UnifiedEntity(
        name=place.name,
        address=place.road_address or place.address,
        category=place.category,
        business_type="",
        license_no="",
        hygiene=NO_GRADE,
        violations=EMPTY_HISTORY,
        ratings={place.source: rating},
        combined_rating=combine_ratings([place.rating]),
        has_rating=place.rating is not None,
        review_count=place.review_count,
        price_range=place.price_range,
        is_franchise=is_franchise(place.name),
    )
