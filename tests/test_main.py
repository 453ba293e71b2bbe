import pytest
from datetime import date
from unittest.mock import AsyncMock, patch

from conftest import make_record
from eatsafe.errors import ErrorCode
from eatsafe.models import (
    EMPTY_HISTORY,
    HygieneLookup,
    LookupFailure,
    Query,
    RestaurantHygiene,
    TrustScoreInput,
    TrustScoreResult,
    ViolationHistory,
    ViolationItem,
)
from main import load_queries_from_csv, process_query, to_row


def test_load_queries_from_csv(tmp_path):
    path = tmp_path / "restaurants.csv"
    path.write_text(
        "Name,Region,Address\n"
        "할머니국밥,강남구,\n"
        "스타벅스,,서울특별시 서초구 서초동 1\n",
        encoding="utf-8",
    )

    queries = load_queries_from_csv(str(path))

    assert queries == [Query(name="할머니국밥", region="강남구"), Query(name="스타벅스", region="서울특별시 서초구")]


def test_to_row_failure():
    lookup = HygieneLookup(success=False, error=LookupFailure(code=ErrorCode.NOT_FOUND, message="없음"))

    assert to_row(Query("x", "y"), lookup) == ["x", "y", "NOT_FOUND", "", "", "", "", "없음"]


@pytest.mark.asyncio
async def test_process_query():
    data = RestaurantHygiene(record=make_record("할머니국밥", grade="AA"), violations=EMPTY_HISTORY)
    with patch("main.resolve_hygiene", new=AsyncMock(return_value=HygieneLookup(success=True, data=data))) as mock_resolve:
        row = await process_query(None, Query("할머니국밥", "강남구"))

    assert row == [
        "할머니국밥",
        "강남구",
        "OK",
        "AA",
        "0",
        "",
        "",
        "🏆 위생등급: ★★☆ 우수 (AA) | ✅ 행정처분: 최근 3년간 처분 이력이 없습니다.",
    ]
    mock_resolve.assert_awaited_once_with(None, "할머니국밥", "강남구")


@pytest.mark.asyncio
async def test_process_query_rejects_blank_rows():
    row = await process_query(None, Query("", "강남구"))
    assert row[2] == "INVALID"


def test_to_row_summarizes_violations_and_trust_score():
    history = ViolationHistory(
        total_count=1,
        recent_items=(ViolationItem(date=date(2024, 3, 2), type="시정명령", content="시정명령", reason="위생적취급기준위반"),),
    )
    trust = TrustScoreResult(
        score=72,
        grade="B",
        message="양호",
        indicator_scores={},
        details=TrustScoreInput(hygiene_grade="AA", violation_count=1),
        profile="six_indicator",
    )
    data = RestaurantHygiene(record=make_record("할머니국밥", grade="AA"), violations=history, trust_score=trust)

    row = to_row(Query("할머니국밥", "강남구"), HygieneLookup(success=True, data=data))

    assert row[5:7] == ["72", "B"]
    assert row[7] == (
        "🏆 위생등급: ★★☆ 우수 (AA) | ⚠️ 행정처분: 1건 | - 2024.03.02 | 시정 명령 | 위생 기준 위반 | 🟡 신뢰도: B등급 (72점) - 양호"
    )
