"""
Public entry points: single hygiene lookups, trust scores, comparisons,
recommendations and bulk checks, wired over a Collaborators bundle.
"""
import asyncio
import time
from typing import List, Optional, Sequence

from loguru import logger

from eatsafe.aggregator import aggregate, from_listing
from eatsafe.bulk import batch_iter, bulk_hygiene_check
from eatsafe.cache import Memoizer, build_cache_key
from eatsafe.clients import FoodSafetyClient, GovDataClient, KakaoClient, NaverClient
from eatsafe.config import CONCURRENCY, ENTITY_CACHE_TTL, GOV_DATA_API_KEY, PLACE_CACHE_TTL
from eatsafe.errors import ApiError, EatsafeError, ErrorCode, InvalidQueryError, InvalidRequestError
from eatsafe.matchers.region_matcher import region_of
from eatsafe.models import (
    Ambiguous,
    CompareOutcome,
    HygieneLookup,
    LookupFailure,
    NotFound,
    Query,
    RecommendationResult,
    RestaurantHygiene,
    RestaurantIdentifier,
    TrustScoreInput,
    TrustScoreResult,
    UnifiedEntity,
)
from eatsafe.place_fetcher import KakaoPlaces, NaverPlaces
from eatsafe.ranker import (
    DEFAULT_CRITERIA,
    PRIORITY_PROFILES,
    PURPOSE_PREFERENCES,
    VALID_BUDGETS,
    VALID_CATEGORIES,
    VALID_CRITERIA,
    area_too_broad_message,
    build_comparison,
    filter_by_budget,
    filter_by_category,
    no_results_message,
    rank_recommendations,
    success_message,
    trust_input,
)
from eatsafe.registry_fetcher import FoodSafetyRegistry, FoodSafetyViolations, HaccpCertifications
from eatsafe.resolver import resolve
from eatsafe.scorer import SIX_INDICATOR, ScoringProfile, TrustScorer
from eatsafe.sources import Collaborators

__all__ = [
    "build_collaborators",
    "bulk_hygiene_check",
    "close_collaborators",
    "compare_restaurants",
    "compute_trust_score",
    "get_unified_entity",
    "recommend_restaurants",
    "resolve_hygiene",
]

MIN_COMPARE, MAX_COMPARE = 2, 5
MIN_LIMIT, MAX_LIMIT = 1, 10


def build_collaborators(cache: Optional[Memoizer] = None) -> Collaborators:
    """Concrete collaborators from config; HACCP lookups only when a data.go.kr key is set."""
    food_client = FoodSafetyClient()
    return Collaborators(
        registry=FoodSafetyRegistry(food_client),
        violations=FoodSafetyViolations(food_client),
        places=[KakaoPlaces(KakaoClient()), NaverPlaces(NaverClient())],
        cache=cache or Memoizer(),
        certification=HaccpCertifications(GovDataClient()) if GOV_DATA_API_KEY else None,
    )


async def close_collaborators(collaborators: Collaborators):
    """Close every distinct HTTP client behind the collaborators."""
    owners = [collaborators.registry, collaborators.violations, *collaborators.places, collaborators.certification]
    clients = []
    for owner in owners:
        client = getattr(owner, "client", None)
        if client is not None and all(client is not seen for seen in clients):
            clients.append(client)
    for client in clients:
        await client.close()


def compute_trust_score(indicators: TrustScoreInput, profile: ScoringProfile = SIX_INDICATOR) -> TrustScoreResult:
    return TrustScorer(profile).score(indicators)


async def resolve_hygiene(
    collaborators: Collaborators,
    name: str,
    region: str,
    include_history: bool = True,
    with_trust_score: bool = True,
) -> HygieneLookup:
    """
    Look up one restaurant's hygiene grade and violation history.

    Args:
        collaborators (Collaborators): Data sources and cache.
        name (str): Restaurant name as typed by the user.
        region (str): District / neighbourhood, e.g. "강남구".
        include_history (bool): Fetch violation history when resolved.
        with_trust_score (bool): Aggregate provider data and attach a trust score.

    Returns:
        HygieneLookup: data on success, otherwise error with code NOT_FOUND,
        MULTIPLE_RESULTS (with candidates), API_ERROR or UNKNOWN_ERROR.

    Raises:
        InvalidQueryError: name or region is blank.
    """
    query = Query(name=name, region=region, include_history=include_history)
    try:
        resolution = await resolve(collaborators, query)
        if isinstance(resolution, NotFound):
            return HygieneLookup(success=False, error=LookupFailure(code=ErrorCode.NOT_FOUND, message=resolution.message))
        if isinstance(resolution, Ambiguous):
            return HygieneLookup(
                success=False,
                error=LookupFailure(
                    code=ErrorCode.MULTIPLE_RESULTS,
                    message=resolution.message,
                    candidates=list(resolution.candidates),
                ),
            )

        trust_score = None
        if with_trust_score:
            entity = await aggregate(collaborators, resolution, query.region.strip())
            trust_score = TrustScorer().score(trust_input(entity))
        return HygieneLookup(
            success=True,
            data=RestaurantHygiene(record=resolution.record, violations=resolution.violations, trust_score=trust_score),
        )
    except InvalidQueryError:
        raise
    except ApiError as e:
        logger.error(f"❌ {e}")
        return HygieneLookup(
            success=False,
            error=LookupFailure(
                code=ErrorCode.API_ERROR,
                message=f"API 오류가 발생했습니다: {e.message} (코드: {e.code})",
                source=e.source,
            ),
        )
    except Exception as e:
        logger.exception(f"❌ Unexpected error resolving '{name}' ({region})")
        return HygieneLookup(
            success=False,
            error=LookupFailure(code=ErrorCode.UNKNOWN_ERROR, message=f"알 수 없는 오류가 발생했습니다: {e}"),
        )


async def get_unified_entity(collaborators: Collaborators, name: str, region: str) -> Optional[UnifiedEntity]:
    """Resolved and aggregated entity, or None when the name is not found or ambiguous."""

    async def build() -> Optional[UnifiedEntity]:
        resolution = await resolve(collaborators, Query(name=name, region=region))
        if isinstance(resolution, (NotFound, Ambiguous)):
            return None
        return await aggregate(collaborators, resolution, region.strip())

    return await collaborators.cache.get_or_fetch(build_cache_key("entity", name, region), ENTITY_CACHE_TTL, build)


async def _entity_or_none(collaborators: Collaborators, name: str, region: str) -> Optional[UnifiedEntity]:
    try:
        return await get_unified_entity(collaborators, name, region)
    except EatsafeError as e:
        logger.warning(f"⚠️ Could not build entity for '{name}' ({region}): {e}")
        return None


def _validate_compare(identifiers: Sequence[RestaurantIdentifier], criteria: Sequence[str]):
    if len(identifiers) < MIN_COMPARE:
        raise InvalidRequestError(f"최소 {MIN_COMPARE}개의 식당이 필요합니다.")
    if len(identifiers) > MAX_COMPARE:
        raise InvalidRequestError(f"최대 {MAX_COMPARE}개의 식당까지 비교할 수 있습니다.")
    for identifier in identifiers:
        if not (identifier.name or "").strip():
            raise InvalidRequestError("식당명은 필수입니다.")
        if not (identifier.region or "").strip():
            raise InvalidRequestError("지역명은 필수입니다.")
    if not criteria:
        raise InvalidRequestError("최소 1개의 비교 항목이 필요합니다.")
    if len(criteria) > len(VALID_CRITERIA):
        raise InvalidRequestError(f"최대 {len(VALID_CRITERIA)}개의 비교 항목까지 선택할 수 있습니다.")
    for criterion in criteria:
        if criterion not in VALID_CRITERIA:
            raise InvalidRequestError(f"유효하지 않은 비교 항목: {criterion}")


def _not_enough_message(found: List[str]) -> str:
    if not found:
        return "비교할 식당을 찾을 수 없습니다."
    return f'"{found[0]}"만 찾았습니다. 비교를 위해 최소 2개의 식당이 필요합니다.'


async def compare_restaurants(
    collaborators: Collaborators,
    identifiers: Sequence[RestaurantIdentifier],
    criteria: Optional[Sequence[str]] = None,
) -> CompareOutcome:
    """
    Compare 2-5 restaurants on hygiene, rating, price and reviews.

    Restaurants that cannot be resolved are listed in not_found; a
    comparison is produced only when at least two were found.
    """
    criteria = list(criteria) if criteria is not None else list(DEFAULT_CRITERIA)
    _validate_compare(identifiers, criteria)

    start = time.perf_counter()
    entities = await asyncio.gather(
        *[_entity_or_none(collaborators, identifier.name, identifier.region) for identifier in identifiers]
    )
    found, not_found, resolved = [], [], []
    for identifier, entity in zip(identifiers, entities):
        if entity is None:
            not_found.append(identifier.name)
        else:
            found.append(identifier.name)
            resolved.append(entity)
    logger.debug(f"⚖️ Compare: {len(found)} found, {len(not_found)} missing in {time.perf_counter() - start:.2f}s")

    if len(resolved) < MIN_COMPARE:
        return CompareOutcome(status="partial", message=_not_enough_message(found), found=found, not_found=not_found)

    comparison = build_comparison(resolved, criteria)
    if not_found:
        status = "partial"
        message = f"{len(found)}개 식당 비교 완료 ({len(not_found)}개 식당 미발견: {', '.join(not_found)})"
    else:
        status = "complete"
        message = f"{len(found)}개 식당 비교 완료"
    return CompareOutcome(status=status, message=message, found=found, not_found=not_found, comparison=comparison)


def _validate_recommend(area: str, purpose: Optional[str], category: Optional[str], priority: str, budget: str, limit: int):
    if not (area or "").strip():
        raise InvalidRequestError("지역명은 필수입니다.")
    if limit < MIN_LIMIT:
        raise InvalidRequestError(f"최소 {MIN_LIMIT}개 이상 요청해야 합니다.")
    if limit > MAX_LIMIT:
        raise InvalidRequestError(f"최대 {MAX_LIMIT}개까지 요청할 수 있습니다.")
    if priority not in PRIORITY_PROFILES:
        raise InvalidRequestError(f"유효하지 않은 우선순위: {priority}")
    if budget not in VALID_BUDGETS:
        raise InvalidRequestError(f"유효하지 않은 예산: {budget}")
    if purpose and purpose not in PURPOSE_PREFERENCES:
        raise InvalidRequestError(f"유효하지 않은 목적: {purpose}")
    if category and category not in VALID_CATEGORIES:
        raise InvalidRequestError(f"유효하지 않은 카테고리: {category}")


async def recommend_restaurants(
    collaborators: Collaborators,
    area: str,
    purpose: Optional[str] = None,
    category: Optional[str] = None,
    priority: str = "balanced",
    budget: str = "any",
    limit: int = 5,
) -> RecommendationResult:
    """
    Recommend up to `limit` restaurants in an area.

    Args:
        collaborators (Collaborators): The first place provider serves the area listing.
        area (str): District, neighbourhood or station name.
        purpose (Optional[str]): 회식 / 데이트 / 가족모임 / 혼밥 / 비즈니스미팅.
        category (Optional[str]): 한식 / 중식 / 일식 / 양식 / 카페 / 전체.
        priority (str): balanced / hygiene / rating.
        budget (str): low / medium / high / any.
        limit (int): 1-10.

    Returns:
        RecommendationResult: status success, no_results or area_too_broad.
    """
    _validate_recommend(area, purpose, category, priority, budget, limit)
    area = area.strip()
    filters = {"purpose": purpose, "category": category, "priority": priority, "budget": budget}

    def empty(status: str, message: str, total: int = 0) -> RecommendationResult:
        return RecommendationResult(
            status=status, area=area, filters=filters, total_candidates=total, recommendations=[], message=message
        )

    if not collaborators.places:
        return empty("no_results", no_results_message(area))

    provider = collaborators.places[0]
    listing_category = "cafe" if category == "카페" else "restaurant"
    listing = await collaborators.cache.get_or_fetch(
        build_cache_key(f"place:area:{provider.source}", area, listing_category),
        PLACE_CACHE_TTL,
        lambda: provider.search_by_area(area, listing_category),
    )
    if listing.status == "not_found":
        return empty("no_results", no_results_message(area))
    if listing.status == "too_many":
        return empty("area_too_broad", area_too_broad_message(area, listing.suggestions), listing.total_count)

    listed, seen = [], set()
    for place in listing.restaurants:
        if place.name not in seen:
            seen.add(place.name)
            listed.append(from_listing(place))
    shortlisted = filter_by_category(listed, category)

    entities: List[UnifiedEntity] = []
    for _, batch in batch_iter(shortlisted, CONCURRENCY):
        # Registry lookups need the district of each place, not the searched area (e.g. "역삼역")
        enriched = await asyncio.gather(
            *[_entity_or_none(collaborators, entity.name, region_of(entity.address) or area) for entity in batch]
        )
        entities.extend(full or fallback for full, fallback in zip(enriched, batch))

    candidates = filter_by_budget(entities, budget)
    if not candidates:
        return empty("no_results", no_results_message(area))

    recommendations = rank_recommendations(candidates, priority=priority, purpose=purpose, limit=limit)
    return RecommendationResult(
        status="success",
        area=area,
        filters=filters,
        total_candidates=len(candidates),
        recommendations=recommendations,
        message=success_message(area, len(recommendations), priority, purpose),
    )
