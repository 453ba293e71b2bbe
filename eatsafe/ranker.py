"""
Pure ranking logic for restaurant comparison and area recommendations.
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from eatsafe.models import (
    ComparedRestaurant,
    ComparisonAnalysis,
    ComparisonResult,
    RecommendedRestaurant,
    TrustScoreInput,
    UnifiedEntity,
)
from eatsafe.scorer import (
    BUSINESS_DURATION,
    CERTIFICATION,
    FRANCHISE,
    HYGIENE_GRADE,
    INDICATORS,
    RATING,
    REVIEW_COUNT,
    SIX_INDICATOR,
    VIOLATION_HISTORY,
    TrustScorer,
    round_half_up,
)

VALID_CRITERIA = ("hygiene", "rating", "price", "reviews")
DEFAULT_CRITERIA = VALID_CRITERIA

CRITERIA_INDICATORS = {
    "hygiene": (HYGIENE_GRADE, VIOLATION_HISTORY),
    "rating": (RATING,),
    "reviews": (REVIEW_COUNT,),
    "price": (),
}
HYGIENE_INDICATORS = (HYGIENE_GRADE, VIOLATION_HISTORY)
POPULARITY_INDICATORS = (RATING, REVIEW_COUNT)

PRICE_WEIGHTS = {"low": 1.0, "medium": 1.5, "high": 2.0}
UNKNOWN_PRICE_WEIGHT = 1.5
GRADE_TIERS = {"AAA": 3, "AA": 2, "A": 1}

PRIORITY_PROFILES = {
    "balanced": SIX_INDICATOR,
    "hygiene": SIX_INDICATOR.reweighted("hygiene_priority", {
        HYGIENE_GRADE: "0.35", VIOLATION_HISTORY: "0.30", BUSINESS_DURATION: "0.10",
        RATING: "0.15", REVIEW_COUNT: "0.05", FRANCHISE: "0.05",
    }),
    "rating": SIX_INDICATOR.reweighted("rating_priority", {
        HYGIENE_GRADE: "0.15", VIOLATION_HISTORY: "0.10", BUSINESS_DURATION: "0.15",
        RATING: "0.35", REVIEW_COUNT: "0.20", FRANCHISE: "0.05",
    }),
}
PRIORITY_LABELS = {"hygiene": "위생 우선", "rating": "평점 우선", "balanced": "균형 모드"}

PURPOSE_PREFERENCES = {
    "회식": ("한식", "고기", "삼겹살", "회", "일식", "곱창", "돼지고기", "소고기"),
    "데이트": ("이탈리안", "프렌치", "분위기", "와인", "스테이크", "파스타", "양식"),
    "가족모임": ("한정식", "중식", "뷔페", "한식", "갈비", "정식"),
    "혼밥": ("라멘", "덮밥", "국수", "분식", "우동", "카레", "백반"),
    "비즈니스미팅": ("한정식", "일식", "스테이크", "호텔", "고급", "정식", "코스"),
}
PURPOSE_BLEND = Decimal("0.15")

CATEGORY_KEYWORDS = {
    "한식": ("한식", "한정식", "국밥", "찌개", "불고기", "갈비", "비빔밥", "삼겹살"),
    "중식": ("중식", "중국", "짜장", "짬뽕", "탕수육", "양꼬치"),
    "일식": ("일식", "일본", "초밥", "스시", "라멘", "우동", "돈까스", "사시미"),
    "양식": ("양식", "이탈리안", "파스타", "스테이크", "피자", "프렌치", "햄버거"),
    "카페": ("카페", "커피", "디저트", "베이커리", "케이크"),
}
VALID_CATEGORIES = tuple(CATEGORY_KEYWORDS) + ("전체",)
VALID_BUDGETS = ("low", "medium", "high", "any")


def trust_input(entity: UnifiedEntity) -> TrustScoreInput:
    """Scorer input for an entity. No collaborator reports business age, so it stays unknown."""
    return TrustScoreInput(
        hygiene_grade=entity.hygiene.grade,
        violation_count=entity.violations.total_count,
        business_years=None,
        rating=entity.combined_rating,
        review_count=entity.review_count,
        is_franchise=entity.is_franchise,
        is_certified=entity.is_certified,
    )


def criteria_indicators(criteria: Iterable[str]) -> List[str]:
    indicators = []
    for criterion in criteria:
        for key in CRITERIA_INDICATORS.get(criterion, ()):
            if key not in indicators:
                indicators.append(key)
    return indicators


def compared_restaurant(entity: UnifiedEntity, criteria: Sequence[str], scorer: TrustScorer) -> ComparedRestaurant:
    data = trust_input(entity)
    return ComparedRestaurant(
        name=entity.name,
        address=entity.address,
        grade=entity.hygiene.grade,
        stars=entity.hygiene.stars,
        has_violations=entity.violations.total_count > 0,
        ratings={source: rating.score for source, rating in entity.ratings.items()},
        combined_rating=entity.combined_rating,
        review_count=entity.review_count,
        price_range=entity.price_range,
        hygiene_score=scorer.partial_score(data, HYGIENE_INDICATORS),
        popularity_score=scorer.partial_score(data, POPULARITY_INDICATORS),
        overall_score=scorer.partial_score(data, criteria_indicators(criteria)),
    )


def _argmax(items: Sequence[ComparedRestaurant], key) -> Optional[ComparedRestaurant]:
    """First item with the maximal key; later items only win on a strictly greater key."""
    best = None
    for item in items:
        if best is None or key(item) > key(best):
            best = item
    return best


def best_hygiene(restaurants: Sequence[ComparedRestaurant]) -> Optional[str]:
    best = _argmax(restaurants, lambda r: (r.hygiene_score, GRADE_TIERS.get(r.grade or "", 0)))
    return best.name if best else None


def best_rating(restaurants: Sequence[ComparedRestaurant]) -> Optional[str]:
    best = _argmax(restaurants, lambda r: (r.combined_rating or 0.0, r.review_count))
    return best.name if best else None


def best_value(restaurants: Sequence[ComparedRestaurant]) -> Optional[str]:
    best = _argmax(restaurants, lambda r: r.overall_score / PRICE_WEIGHTS.get(r.price_range or "", UNKNOWN_PRICE_WEIGHT))
    return best.name if best else None


def recommendation_text(
    restaurants: Sequence[ComparedRestaurant],
    hygiene: Optional[str],
    rating: Optional[str],
    value: Optional[str],
) -> str:
    overall = _argmax(restaurants, lambda r: r.overall_score)
    if overall is None:
        return "비교할 식당 정보가 없습니다."
    if hygiene == rating == overall.name:
        return f'위생과 평점 모두 고려 시 "{overall.name}" 추천'

    parts = []
    if hygiene:
        parts.append(f'위생 중시: "{hygiene}"')
    if rating and rating != hygiene:
        parts.append(f'평점 중시: "{rating}"')
    if value and value not in (hygiene, rating):
        parts.append(f'가성비: "{value}"')
    if parts:
        return f'{", ".join(parts)}. 종합적으로 "{overall.name}" 추천'
    return f'종합적으로 "{overall.name}" 추천'


def analyze_comparison(restaurants: Sequence[ComparedRestaurant], criteria: Sequence[str]) -> ComparisonAnalysis:
    """
    Pick the best restaurant per requested criterion and a combined recommendation.

    Args:
        restaurants (Sequence[ComparedRestaurant]): Resolved restaurants in request order.
        criteria (Sequence[str]): Subset of hygiene / rating / price / reviews.

    Returns:
        ComparisonAnalysis: best_* is None when its criterion was not requested.
    """
    hygiene = best_hygiene(restaurants) if "hygiene" in criteria else None
    rating = best_rating(restaurants) if "rating" in criteria else None
    value = best_value(restaurants) if "price" in criteria else None
    return ComparisonAnalysis(
        best_hygiene=hygiene,
        best_rating=rating,
        best_value=value,
        recommendation=recommendation_text(restaurants, hygiene, rating, value),
    )


def build_comparison(
    entities: Sequence[UnifiedEntity],
    criteria: Sequence[str] = DEFAULT_CRITERIA,
    scorer: Optional[TrustScorer] = None,
) -> ComparisonResult:
    scorer = scorer or TrustScorer()
    restaurants = [compared_restaurant(entity, criteria, scorer) for entity in entities]
    return ComparisonResult(restaurants=restaurants, analysis=analyze_comparison(restaurants, criteria))


def filter_by_category(entities: Sequence[UnifiedEntity], category: Optional[str]) -> List[UnifiedEntity]:
    if not category or category == "전체":
        return list(entities)
    keywords = CATEGORY_KEYWORDS.get(category, ())
    return [entity for entity in entities if any(keyword in entity.category.lower() for keyword in keywords)]


def filter_by_budget(entities: Sequence[UnifiedEntity], budget: str) -> List[UnifiedEntity]:
    """Keep entities in the budget tier; entities with unknown price are always kept."""
    if budget == "any":
        return list(entities)
    return [entity for entity in entities if not entity.price_range or entity.price_range == budget]


def purpose_fit(category: str, purpose: Optional[str]) -> int:
    """100 when a preferred keyword appears in the category, 60 when a two-letter piece of one does, else 30."""
    preferences = PURPOSE_PREFERENCES.get(purpose or "", ())
    category = (category or "").lower()
    if any(pref in category for pref in preferences):
        return 100
    for pref in preferences:
        if any(pref[i:i + 2] in category for i in range(len(pref) - 1)):
            return 60
    return 30


def strongest_indicator(scores: Dict[str, int]) -> str:
    """Highest sub-score; ties resolved by the fixed indicator order."""
    ordered = [key for key in INDICATORS if key in scores]
    return max(ordered, key=lambda key: (scores[key], -ordered.index(key)))


def recommendation_reason(entity: UnifiedEntity, indicator: str) -> str:
    if indicator == HYGIENE_GRADE:
        if entity.hygiene.grade:
            return f"위생등급 {entity.hygiene.grade} ({entity.hygiene.label}) 인증 업소"
        return "위생 관리 정보 확인 필요"
    if indicator == VIOLATION_HISTORY:
        return "최근 행정처분 이력 없음" if entity.violations.total_count == 0 else "행정처분 이력 적음"
    if indicator == RATING:
        if entity.combined_rating is not None:
            return f"평점 {entity.combined_rating:.1f}로 만족도 높음"
        return "평점 정보 부족"
    if indicator == REVIEW_COUNT:
        return f"리뷰 {entity.review_count}개로 많이 찾는 곳"
    if indicator == FRANCHISE:
        return "검증된 프랜차이즈 브랜드" if entity.is_franchise else "개인 운영 식당"
    if indicator == CERTIFICATION:
        return "HACCP 인증 업소"
    return "오랜 기간 영업한 식당"


def highlights(entity: UnifiedEntity) -> List[str]:
    items = []
    if entity.hygiene.grade:
        items.append(f"{entity.hygiene.grade} 등급")
    if entity.combined_rating is not None:
        items.append(f"평점 {entity.combined_rating:.1f}")
    if entity.violations.total_count == 0:
        items.append("행정처분 없음")
    if entity.review_count >= 100:
        items.append(f"리뷰 {entity.review_count}개")
    if entity.price_range == "low":
        items.append("가성비 좋음")
    return items


def rank_recommendations(
    entities: Sequence[UnifiedEntity],
    priority: str = "balanced",
    purpose: Optional[str] = None,
    limit: int = 5,
) -> List[RecommendedRestaurant]:
    """
    Score, sort and truncate recommendation candidates.

    The trust score uses the priority's weight profile. With a purpose the
    composite is 85% trust score and 15% purpose fit. Equal scores keep
    their input order.
    """
    scorer = TrustScorer(PRIORITY_PROFILES[priority])
    scored = []
    for entity in entities:
        result = scorer.score(trust_input(entity))
        total = result.score
        if purpose:
            blended = (1 - PURPOSE_BLEND) * result.score + PURPOSE_BLEND * purpose_fit(entity.category, purpose)
            total = round_half_up(blended)
        scored.append((total, entity, result.indicator_scores))

    ranked = sorted(scored, key=lambda item: item[0], reverse=True)[:limit]
    return [
        RecommendedRestaurant(
            rank=rank,
            name=entity.name,
            address=entity.address,
            category=entity.category,
            grade=entity.hygiene.grade,
            stars=entity.hygiene.stars,
            has_violations=entity.violations.total_count > 0,
            combined_rating=entity.combined_rating,
            review_count=entity.review_count,
            price_range=entity.price_range,
            score=total,
            indicator_scores=dict(scores),
            reason=recommendation_reason(entity, strongest_indicator(scores)),
            highlights=highlights(entity),
        )
        for rank, (total, entity, scores) in enumerate(ranked, start=1)
    ]


def success_message(area: str, count: int, priority: str, purpose: Optional[str]) -> str:
    label = PRIORITY_LABELS.get(priority, PRIORITY_LABELS["balanced"])
    if purpose:
        return f'"{area}" {purpose} 추천 Top {count} ({label})'
    return f'"{area}" 추천 Top {count} ({label})'


def no_results_message(area: str) -> str:
    return f'"{area}" 지역에서 조건에 맞는 식당을 찾을 수 없습니다.'


def area_too_broad_message(area: str, suggestions: Sequence[str]) -> str:
    if suggestions:
        return f'"{area}" 지역은 범위가 너무 넓습니다. 다음 지역을 시도해 보세요: {", ".join(suggestions)}'
    return f'"{area}" 지역은 범위가 너무 넓습니다. 더 좁은 지역명을 입력해 주세요.'
