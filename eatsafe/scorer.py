"""
Deterministic trust score: per-indicator sub-scores combined with a named
weight profile, rounded half-up and mapped to an A-D grade.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Mapping, Optional, Tuple

from eatsafe.models import TrustScoreInput, TrustScoreResult

HYGIENE_GRADE = "hygiene_grade"
VIOLATION_HISTORY = "violation_history"
BUSINESS_DURATION = "business_duration"
RATING = "rating"
REVIEW_COUNT = "review_count"
FRANCHISE = "franchise"
CERTIFICATION = "certification"

# Fixed order used for tie-breaks and output
INDICATORS = (HYGIENE_GRADE, VIOLATION_HISTORY, BUSINESS_DURATION, RATING, REVIEW_COUNT, FRANCHISE, CERTIFICATION)

GRADE_SCORES = {"AAA": 100, "AA": 80, "A": 60}

# (min score, grade, message), best first
GRADE_THRESHOLDS = (
    (80, "A", "안심하고 가세요"),
    (60, "B", "가도 됩니다"),
    (40, "C", "참고하세요"),
    (0, "D", "주의가 필요합니다"),
)


def hygiene_grade_score(grade: Optional[str]) -> int:
    return GRADE_SCORES.get(grade or "", 40)


def violation_score(count: int) -> int:
    if count <= 0:
        return 100
    return 60 if count == 1 else 20


def business_duration_score(years: Optional[float]) -> int:
    if years is None:
        return 50
    if years >= 10:
        return 100
    if years >= 5:
        return 80
    if years >= 3:
        return 60
    if years >= 1:
        return 40
    return 20


def rating_score(rating: Optional[float]) -> int:
    if rating is None:
        return 50
    return min(100, round_half_up(Decimal(str(rating)) * 20))


def review_count_score(count: int) -> int:
    if count >= 1000:
        return 100
    if count >= 500:
        return 80
    if count >= 100:
        return 60
    if count >= 50:
        return 40
    return 20


def franchise_score(is_franchise: bool) -> int:
    return 70 if is_franchise else 50


def certification_score(is_certified: bool) -> int:
    return 100 if is_certified else 50


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def indicator_scores(data: TrustScoreInput) -> Dict[str, int]:
    """Every indicator sub-score for `data`, whichever profile ends up using them."""
    return {
        HYGIENE_GRADE: hygiene_grade_score(data.hygiene_grade),
        VIOLATION_HISTORY: violation_score(data.violation_count),
        BUSINESS_DURATION: business_duration_score(data.business_years),
        RATING: rating_score(data.rating),
        REVIEW_COUNT: review_count_score(data.review_count),
        FRANCHISE: franchise_score(data.is_franchise),
        CERTIFICATION: certification_score(data.is_certified),
    }


def determine_grade(score: int) -> Tuple[str, str]:
    """(grade, message) for a 0-100 score."""
    for minimum, grade, message in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade, message
    return GRADE_THRESHOLDS[-1][1], GRADE_THRESHOLDS[-1][2]


@dataclass(frozen=True)
class ScoringProfile:
    """
    Named indicator weights. Weights must sum to exactly 1.

    Args:
        name (str): Profile name reported in TrustScoreResult.profile.
        weights (Tuple[Tuple[str, str], ...]): (indicator, decimal weight string) pairs.
    """
    name: str
    weights: Tuple[Tuple[str, str], ...]

    def __post_init__(self):
        unknown = [key for key, _ in self.weights if key not in INDICATORS]
        if unknown:
            raise ValueError(f"Unknown indicators in profile {self.name}: {unknown}")
        total = sum((Decimal(weight) for _, weight in self.weights), Decimal("0"))
        if total != Decimal("1"):
            raise ValueError(f"Weights of profile {self.name} sum to {total}, expected 1")

    @property
    def weight_map(self) -> Dict[str, Decimal]:
        return {key: Decimal(weight) for key, weight in self.weights}

    @property
    def indicators(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.weights)

    def reweighted(self, name: str, weights: Mapping[str, str]) -> "ScoringProfile":
        """A new profile over the same indicators with the given weights."""
        return ScoringProfile(name=name, weights=tuple((key, weights[key]) for key in self.indicators))


SIX_INDICATOR = ScoringProfile(
    name="six_indicator",
    weights=(
        (HYGIENE_GRADE, "0.25"),
        (VIOLATION_HISTORY, "0.20"),
        (BUSINESS_DURATION, "0.20"),
        (RATING, "0.20"),
        (REVIEW_COUNT, "0.10"),
        (FRANCHISE, "0.05"),
    ),
)

FOUR_INDICATOR = ScoringProfile(
    name="four_indicator",
    weights=(
        (HYGIENE_GRADE, "0.35"),
        (VIOLATION_HISTORY, "0.30"),
        (CERTIFICATION, "0.25"),
        (FRANCHISE, "0.10"),
    ),
)

PROFILES = {SIX_INDICATOR.name: SIX_INDICATOR, FOUR_INDICATOR.name: FOUR_INDICATOR}


def _weighted(scores: Mapping[str, int], weights: Mapping[str, Decimal]) -> int:
    total = sum((weights[key] * scores[key] for key in weights), Decimal("0"))
    return max(0, min(100, round_half_up(total)))


class TrustScorer:
    """
    Scores TrustScoreInput with a single profile chosen at construction.

    Args:
        profile (ScoringProfile): Defaults to the six-indicator profile.
    """

    def __init__(self, profile: ScoringProfile = SIX_INDICATOR):
        self.profile = profile

    def score(self, data: TrustScoreInput) -> TrustScoreResult:
        all_scores = indicator_scores(data)
        used = {key: all_scores[key] for key in self.profile.indicators}
        total = _weighted(used, self.profile.weight_map)
        grade, message = determine_grade(total)
        return TrustScoreResult(
            score=total,
            grade=grade,
            message=message,
            indicator_scores=used,
            details=data,
            profile=self.profile.name,
        )

    def partial_score(self, data: TrustScoreInput, indicators: Iterable[str]) -> int:
        """
        Score restricted to a subset of the profile's indicators, with their
        weights renormalized to sum to 1. An empty subset falls back to the full score.
        """
        weights = self.profile.weight_map
        wanted = set(indicators)
        subset = [key for key in self.profile.indicators if key in wanted]
        if not subset:
            return self.score(data).score
        total_weight = sum((weights[key] for key in subset), Decimal("0"))
        scores = indicator_scores(data)
        return _weighted(scores, {key: weights[key] / total_weight for key in subset})
