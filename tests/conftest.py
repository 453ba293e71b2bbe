import pytest
from unittest.mock import AsyncMock, MagicMock
from typing import Optional

from eatsafe.cache import Memoizer
from eatsafe.models import (
    EMPTY_HISTORY,
    NO_GRADE,
    CandidateRecord,
    HygieneGrade,
    PartialSearchResult,
    SourceRating,
    UnifiedEntity,
    ViolationHistory,
)
from eatsafe.sources import Collaborators

GRADES = {
    "AAA": HygieneGrade(has_grade=True, grade="AAA", stars=3, label="매우 우수"),
    "AA": HygieneGrade(has_grade=True, grade="AA", stars=2, label="우수"),
    "A": HygieneGrade(has_grade=True, grade="A", stars=1, label="좋음"),
}


def make_record(name: str, address: str = "서울특별시 강남구 역삼동 123", grade: Optional[str] = None) -> CandidateRecord:
    return CandidateRecord(
        name=name,
        address=address,
        business_type="일반음식점",
        license_no=f"LIC-{name}",
        hygiene=GRADES.get(grade, NO_GRADE),
    )


def make_entity(
    name: str,
    grade: Optional[str] = None,
    violations: int = 0,
    rating: Optional[float] = None,
    reviews: int = 0,
    price: Optional[str] = None,
    category: str = "음식점 > 한식",
    franchise: bool = False,
) -> UnifiedEntity:
    return UnifiedEntity(
        name=name,
        address=f"서울특별시 강남구 {name}",
        category=category,
        business_type="일반음식점",
        license_no="",
        hygiene=GRADES.get(grade, NO_GRADE),
        violations=ViolationHistory(total_count=violations) if violations else EMPTY_HISTORY,
        ratings={"kakao": SourceRating(score=rating, reviews=reviews)},
        combined_rating=rating,
        has_rating=rating is not None,
        review_count=reviews,
        price_range=price,
        is_franchise=franchise,
    )


@pytest.fixture
def registry():
    mock = MagicMock()
    mock.find_exact = AsyncMock(return_value=None)
    mock.search_partial = AsyncMock(return_value=PartialSearchResult(items=(), total_count=0))
    return mock


@pytest.fixture
def violations():
    mock = MagicMock()
    mock.get_history = AsyncMock(return_value=EMPTY_HISTORY)
    return mock


@pytest.fixture
def collaborators(registry, violations):
    return Collaborators(registry=registry, violations=violations, places=[], cache=Memoizer(enabled=True))
