import pytest
from unittest.mock import AsyncMock

from conftest import make_record
from eatsafe.bulk import batch_iter, bulk_hygiene_check, match_filter
from eatsafe.errors import ApiError, InvalidRequestError
from eatsafe.models import EMPTY_HISTORY, RestaurantRef, ViolationHistory

RECORDS = {
    "청결식당": make_record("청결식당", grade="AAA"),
    "우수식당": make_record("우수식당", grade="AA"),
    "좋음식당": make_record("좋음식당", grade="A"),
}
HISTORIES = {"우수식당": ViolationHistory(total_count=2)}


@pytest.fixture
def bulk_collaborators(collaborators, registry, violations):
    registry.find_exact = AsyncMock(side_effect=lambda name, region: RECORDS.get(name))
    violations.get_history = AsyncMock(side_effect=lambda name, region: HISTORIES.get(name, EMPTY_HISTORY))
    return collaborators


def _refs(*names):
    return [RestaurantRef(name=name, address=f"서울특별시 강남구 역삼동 {i}") for i, name in enumerate(names)]


def test_batch_iter():
    assert list(batch_iter([1, 2, 3, 4, 5], 2)) == [(0, [1, 2]), (2, [3, 4]), (4, [5])]


def test_match_filter_reasons():
    record = make_record("청결식당", grade="AAA")
    assert match_filter("all", None, None) == (True, "전체 조회")
    assert match_filter("clean", record, EMPTY_HISTORY) == (True, "AAA 등급, 행정처분 없음")
    assert match_filter("with_violations", record, ViolationHistory(total_count=3)) == (True, "행정처분 3건")
    assert match_filter("no_grade", None, None) == (True, "위생등급 미등록")
    assert match_filter("no_grade", record, None) == (False, "")


@pytest.mark.asyncio
async def test_bulk_clean_filter(bulk_collaborators, registry):
    result = await bulk_hygiene_check(bulk_collaborators, _refs("청결식당", "우수식당", "좋음식당", "모르는식당"), "clean")

    assert result.total_checked == 4
    assert [match.restaurant.name for match in result.results] == ["청결식당"]
    registry.find_exact.assert_any_await("청결식당", "강남구")


@pytest.mark.asyncio
async def test_bulk_with_violations_and_no_grade(bulk_collaborators):
    refs = _refs("청결식당", "우수식당", "좋음식당", "모르는식당")

    with_violations = await bulk_hygiene_check(bulk_collaborators, refs, "with_violations")
    no_grade = await bulk_hygiene_check(bulk_collaborators, refs, "no_grade")

    assert [m.restaurant.name for m in with_violations.results] == ["우수식당"]
    assert with_violations.results[0].match_reason == "행정처분 2건"
    assert [m.restaurant.name for m in no_grade.results] == ["모르는식당"]


@pytest.mark.asyncio
async def test_bulk_stops_at_limit(bulk_collaborators):
    refs = _refs(*[f"식당{i}" for i in range(12)])

    result = await bulk_hygiene_check(bulk_collaborators, refs, "all", limit=3)

    assert result.matched_count == 3
    assert result.total_checked == 5
    assert [m.restaurant.name for m in result.results] == ["식당0", "식당1", "식당2"]


@pytest.mark.asyncio
async def test_bulk_failed_lookup_counts_as_checked(bulk_collaborators, violations):
    violations.get_history = AsyncMock(side_effect=ApiError("down", "HTTP_ERROR", "food_safety", 500))

    result = await bulk_hygiene_check(bulk_collaborators, _refs("청결식당"), "all")

    assert result.total_checked == 1
    assert result.results[0].record.name == "청결식당"
    assert result.results[0].violations is None


@pytest.mark.asyncio
@pytest.mark.parametrize("filter_name, limit", [("dirty", 10), ("all", 0)])
async def test_bulk_validation(collaborators, filter_name, limit):
    with pytest.raises(InvalidRequestError):
        await bulk_hygiene_check(collaborators, _refs("청결식당"), filter_name, limit)
