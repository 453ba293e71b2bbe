"""
Typed data models for the restaurant resolution and scoring pipeline.
Records, entities and results are passed between pipeline stages as these types.
"""
from dataclasses import dataclass, field
import datetime
from typing import Dict, List, Optional, Tuple, Union

from eatsafe.errors import ErrorCode


@dataclass
class Query:
    """User's resolution request."""
    name: str
    region: str
    include_history: bool = True


@dataclass(frozen=True)
class HygieneGrade:
    """Normalized hygiene grade info. stars is 0 iff has_grade is False."""
    has_grade: bool
    grade: Optional[str] = None  # AAA / AA / A
    stars: int = 0
    label: Optional[str] = None  # 매우 우수 / 우수 / 좋음
    grade_date: Optional[str] = None  # YYYY-MM-DD
    valid_until: Optional[str] = None


NO_GRADE = HygieneGrade(has_grade=False)


@dataclass(frozen=True)
class CandidateRecord:
    """One registry row matching a query."""
    name: str
    address: str
    business_type: str = ""
    raw_grade: str = ""  # Registry label: 매우우수 / 우수 / 좋음
    license_no: str = ""
    road_address: Optional[str] = None
    hygiene: HygieneGrade = NO_GRADE


@dataclass(frozen=True)
class PartialSearchResult:
    """Relaxed registry search result."""
    items: Tuple[CandidateRecord, ...]
    total_count: int


@dataclass(frozen=True)
class ViolationItem:
    """One administrative action against an establishment."""
    date: Optional[datetime.date]
    type: str
    content: str = ""
    reason: str = ""
    period_start: Optional[datetime.date] = None
    period_end: Optional[datetime.date] = None


@dataclass(frozen=True)
class ViolationHistory:
    """Aggregated violations. recent_items holds at most the newest items inside the window."""
    total_count: int
    recent_items: Tuple[ViolationItem, ...] = ()
    has_more: bool = False


EMPTY_HISTORY = ViolationHistory(total_count=0, recent_items=(), has_more=False)


@dataclass(frozen=True)
class PlaceInfo:
    """One map/rating provider hit."""
    source: str
    name: str
    address: str = ""
    road_address: str = ""
    category: str = ""
    rating: Optional[float] = None  # 0-5
    review_count: int = 0
    price_range: Optional[str] = None  # low / medium / high
    phone: str = ""
    place_url: str = ""
    place_id: str = ""


@dataclass(frozen=True)
class AreaSearchResult:
    """Provider area listing. status is ready / too_many / not_found."""
    status: str
    total_count: int
    restaurants: Tuple[PlaceInfo, ...] = ()
    suggestions: Tuple[str, ...] = ()
    message: str = ""


@dataclass(frozen=True)
class SourceRating:
    """Rating reported by a single provider."""
    score: Optional[float]
    reviews: int = 0


@dataclass(frozen=True)
class UnifiedEntity:
    """
    Restaurant record fused from the registry and the map/rating providers.
    combined_rating is None iff every source rating is None.
    """
    name: str
    address: str
    category: str
    business_type: str
    license_no: str
    hygiene: HygieneGrade
    violations: ViolationHistory
    ratings: Dict[str, SourceRating]
    combined_rating: Optional[float]
    has_rating: bool
    review_count: int
    price_range: Optional[str]
    is_franchise: bool
    is_certified: bool = False


@dataclass(frozen=True)
class TrustScoreInput:
    """Raw indicator values fed into the scorer."""
    hygiene_grade: Optional[str]
    violation_count: int
    business_years: Optional[float] = None
    rating: Optional[float] = None
    review_count: int = 0
    is_franchise: bool = False
    is_certified: bool = False


@dataclass(frozen=True)
class TrustScoreResult:
    """Final scoring output."""
    score: int  # 0-100
    grade: str  # A-D
    message: str
    indicator_scores: Dict[str, int]
    details: TrustScoreInput
    profile: str


@dataclass(frozen=True)
class Candidate:
    """Disambiguation candidate shown to the caller."""
    name: str
    address: str
    grade: str  # grade or 등급없음
    score: float


@dataclass(frozen=True)
class Resolved:
    record: CandidateRecord
    violations: ViolationHistory


@dataclass(frozen=True)
class NotFound:
    name: str
    region: str
    message: str


@dataclass(frozen=True)
class Ambiguous:
    candidates: Tuple[Candidate, ...]
    total_count: int
    message: str


Resolution = Union[Resolved, NotFound, Ambiguous]


@dataclass
class RestaurantHygiene:
    """Successful single lookup payload."""
    record: CandidateRecord
    violations: ViolationHistory
    trust_score: Optional[TrustScoreResult] = None


@dataclass
class LookupFailure:
    code: ErrorCode
    message: str
    candidates: List[Candidate] = field(default_factory=list)
    source: Optional[str] = None


@dataclass
class HygieneLookup:
    """Result of resolve_hygiene: either data or error is set."""
    success: bool
    data: Optional[RestaurantHygiene] = None
    error: Optional[LookupFailure] = None


@dataclass(frozen=True)
class RestaurantIdentifier:
    name: str
    region: str


@dataclass
class ComparedRestaurant:
    """One resolved entity inside a comparison."""
    name: str
    address: str
    grade: Optional[str]
    stars: int
    has_violations: bool
    ratings: Dict[str, Optional[float]]
    combined_rating: Optional[float]
    review_count: int
    price_range: Optional[str]
    hygiene_score: int
    popularity_score: int
    overall_score: int


@dataclass
class ComparisonAnalysis:
    best_hygiene: Optional[str]
    best_rating: Optional[str]
    best_value: Optional[str]
    recommendation: str


@dataclass
class ComparisonResult:
    restaurants: List[ComparedRestaurant]
    analysis: ComparisonAnalysis


@dataclass
class CompareOutcome:
    """status is complete / partial. comparison is None unless two or more were found."""
    status: str
    message: str
    found: List[str]
    not_found: List[str]
    comparison: Optional[ComparisonResult] = None


@dataclass
class RecommendedRestaurant:
    rank: int
    name: str
    address: str
    category: str
    grade: Optional[str]
    stars: int
    has_violations: bool
    combined_rating: Optional[float]
    review_count: int
    price_range: Optional[str]
    score: int
    indicator_scores: Dict[str, int]
    reason: str
    highlights: List[str] = field(default_factory=list)


@dataclass
class RecommendationResult:
    """status is success / no_results / area_too_broad."""
    status: str
    area: str
    filters: Dict[str, Optional[str]]
    total_candidates: int
    recommendations: List[RecommendedRestaurant]
    message: str


@dataclass(frozen=True)
class RestaurantRef:
    """Input row for bulk hygiene checks."""
    name: str
    address: str


@dataclass
class BulkMatch:
    restaurant: RestaurantRef
    record: Optional[CandidateRecord]
    violations: Optional[ViolationHistory]
    match_reason: str


@dataclass
class BulkHygieneResult:
    total_checked: int
    matched_count: int
    results: List[BulkMatch]
