import pytest
from unittest.mock import AsyncMock, MagicMock

from conftest import make_record
from eatsafe.engine import compare_restaurants, get_unified_entity, recommend_restaurants
from eatsafe.errors import ApiError, InvalidRequestError
from eatsafe.models import AreaSearchResult, PlaceInfo, RestaurantIdentifier

KNOWN = {
    "청결식당": make_record("청결식당", grade="AAA"),
    "보통식당": make_record("보통식당", grade="A"),
    "위생식당": make_record("위생식당", grade="AA"),
}


@pytest.fixture
def known_registry(registry):
    registry.find_exact = AsyncMock(side_effect=lambda name, region: KNOWN.get(name))
    return registry


def _ids(*names):
    return [RestaurantIdentifier(name=name, region="강남구") for name in names]


def _area_provider(result):
    provider = MagicMock()
    provider.source = "kakao"
    provider.search_by_name = AsyncMock(return_value=None)
    provider.search_by_area = AsyncMock(return_value=result)
    return provider


def _listing(*names, category="음식점 > 한식"):
    places = tuple(PlaceInfo(source="kakao", name=name, address=f"서울 강남구 {name}", category=category) for name in names)
    return AreaSearchResult(status="ready", total_count=len(places), restaurants=places)


@pytest.mark.asyncio
async def test_compare_all_found(collaborators, known_registry):
    outcome = await compare_restaurants(collaborators, _ids("청결식당", "보통식당"))

    assert outcome.status == "complete"
    assert outcome.found == ["청결식당", "보통식당"]
    assert outcome.not_found == []
    assert outcome.comparison.analysis.best_hygiene == "청결식당"
    assert outcome.message == "2개 식당 비교 완료"


@pytest.mark.asyncio
async def test_compare_partial(collaborators, known_registry):
    outcome = await compare_restaurants(collaborators, _ids("청결식당", "없는식당", "보통식당"))

    assert outcome.status == "partial"
    assert outcome.found == ["청결식당", "보통식당"]
    assert outcome.not_found == ["없는식당"]
    assert outcome.comparison is not None
    assert "없는식당" in outcome.message


@pytest.mark.asyncio
async def test_compare_needs_two_found(collaborators, known_registry):
    outcome = await compare_restaurants(collaborators, _ids("청결식당", "없는식당", "모르는식당"))

    assert outcome.comparison is None
    assert outcome.found == ["청결식당"]
    assert outcome.not_found == ["없는식당", "모르는식당"]
    assert sorted(outcome.found + outcome.not_found) == sorted(["청결식당", "없는식당", "모르는식당"])


@pytest.mark.asyncio
async def test_compare_treats_api_failure_as_not_found(collaborators, registry):
    def lookup(name, region):
        if name == "고장식당":
            raise ApiError("down", "HTTP_ERROR", "food_safety", 500)
        return KNOWN.get(name)

    registry.find_exact = AsyncMock(side_effect=lookup)

    outcome = await compare_restaurants(collaborators, _ids("청결식당", "고장식당", "보통식당"))

    assert outcome.not_found == ["고장식당"]
    assert outcome.comparison is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "names, criteria",
    [
        (["청결식당"], None),
        (["가", "나", "다", "라", "마", "바"], None),
        (["청결식당", "보통식당"], []),
        (["청결식당", "보통식당"], ["parking"]),
        (["청결식당", " "], None),
    ],
)
async def test_compare_validation(collaborators, names, criteria):
    with pytest.raises(InvalidRequestError):
        await compare_restaurants(collaborators, _ids(*names), criteria)


@pytest.mark.asyncio
async def test_get_unified_entity(collaborators, known_registry):
    entity = await get_unified_entity(collaborators, "청결식당", "강남구")
    missing = await get_unified_entity(collaborators, "없는식당", "강남구")

    assert entity.hygiene.grade == "AAA"
    assert missing is None


@pytest.mark.asyncio
async def test_recommend_success(collaborators, known_registry):
    provider = _area_provider(_listing("보통식당", "청결식당", "모르는식당", "청결식당"))
    collaborators.places = [provider]

    result = await recommend_restaurants(collaborators, "역삼동", limit=2)

    assert result.status == "success"
    assert result.total_candidates == 3
    assert [r.name for r in result.recommendations] == ["청결식당", "보통식당"]
    assert result.message == '"역삼동" 추천 Top 2 (균형 모드)'
    provider.search_by_area.assert_awaited_once_with("역삼동", "restaurant")


@pytest.mark.asyncio
async def test_recommend_filters_category(collaborators, known_registry):
    provider = _area_provider(_listing("청결식당", category="음식점 > 카페"))
    collaborators.places = [provider]

    result = await recommend_restaurants(collaborators, "역삼동", category="한식")

    assert result.status == "no_results"
    assert result.recommendations == []


@pytest.mark.asyncio
async def test_recommend_cafe_listing(collaborators, known_registry):
    provider = _area_provider(_listing("청결식당", category="음식점 > 카페"))
    collaborators.places = [provider]

    result = await recommend_restaurants(collaborators, "역삼동", category="카페")

    assert result.status == "success"
    provider.search_by_area.assert_awaited_once_with("역삼동", "cafe")


@pytest.mark.asyncio
async def test_recommend_area_too_broad(collaborators):
    collaborators.places = [
        _area_provider(AreaSearchResult(status="too_many", total_count=300, suggestions=("역삼역", "강남역")))
    ]

    result = await recommend_restaurants(collaborators, "강남구")

    assert result.status == "area_too_broad"
    assert result.total_candidates == 300
    assert "역삼역, 강남역" in result.message


@pytest.mark.asyncio
async def test_recommend_no_results(collaborators):
    collaborators.places = [_area_provider(AreaSearchResult(status="not_found", total_count=0))]

    result = await recommend_restaurants(collaborators, "없는동네")

    assert result.status == "no_results"
    assert result.recommendations == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs",
    [
        {"area": "", "limit": 5},
        {"area": "역삼동", "limit": 0},
        {"area": "역삼동", "limit": 11},
        {"area": "역삼동", "priority": "cheap"},
        {"area": "역삼동", "budget": "free"},
        {"area": "역삼동", "purpose": "소개팅"},
        {"area": "역삼동", "category": "태국"},
    ],
)
async def test_recommend_validation(collaborators, kwargs):
    with pytest.raises(InvalidRequestError):
        await recommend_restaurants(collaborators, **kwargs)


@pytest.mark.asyncio
async def test_recommend_station_area_looks_up_each_place_in_its_district(collaborators, known_registry):
    collaborators.places = [_area_provider(_listing("청결식당", "보통식당"))]

    result = await recommend_restaurants(collaborators, "역삼역")

    assert result.status == "success"
    assert result.recommendations[0].name == "청결식당"
    assert result.recommendations[0].grade == "AAA"
    known_registry.find_exact.assert_any_await("청결식당", "강남구")
    assert all(call.args[1] == "강남구" for call in known_registry.find_exact.await_args_list)
