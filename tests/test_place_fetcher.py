import pytest
from unittest.mock import AsyncMock, MagicMock

from eatsafe.errors import ApiError
from eatsafe.place_fetcher import (
    KakaoPlaces,
    NaverPlaces,
    area_suggestions,
    estimate_price_range,
    strip_html,
)


def _doc(place_id, name, category="음식점 > 카페"):
    return {
        "id": place_id, "place_name": name, "category_name": category,
        "address_name": "서울 강남구 역삼동 1", "road_address_name": "서울 강남구 테헤란로 1",
    }


def _kakao_client(**kwargs):
    client = MagicMock()
    client.is_available = MagicMock(return_value=True)
    client.keyword_search = AsyncMock(**kwargs)
    return client


def test_helpers():
    assert strip_html("<b>스타벅스</b> 역삼점") == "스타벅스 역삼점"
    assert estimate_price_range("음식점 > 분식") == "low"
    assert estimate_price_range("양식", "파인다이닝 코스") == "high"
    assert estimate_price_range("한식") == "medium"
    assert area_suggestions("서울 강남구")[0] == "역삼역"
    assert area_suggestions("어딘가") == ["어딘가 역 근처", "어딘가 중심가", "어딘가 동쪽", "어딘가 서쪽"]


@pytest.mark.asyncio
async def test_kakao_search_by_name_picks_best_document():
    responses = {
        "FD6": {"documents": [_doc("1", "스타벅스리저브 강남"), _doc("2", "스타벅스 역삼점")]},
        "CE7": {"documents": [_doc("2", "스타벅스 역삼점"), _doc("3", "투썸플레이스")]},
    }
    client = _kakao_client(side_effect=lambda query, category, **kwargs: responses[category])

    place = await KakaoPlaces(client).search_by_name("스타벅스", "강남구")

    assert place.place_id == "2"
    assert place.source == "kakao"
    assert place.rating is None
    assert client.keyword_search.await_count == 2


@pytest.mark.asyncio
async def test_kakao_search_by_name_tolerates_one_failed_category():
    def search(query, category, **kwargs):
        if category == "CE7":
            raise ApiError("Request timeout", "TIMEOUT", "kakao")
        return {"documents": [_doc("1", "할머니국밥", "음식점 > 한식")]}

    place = await KakaoPlaces(_kakao_client(side_effect=search)).search_by_name("할머니국밥", "강남구")

    assert place.name == "할머니국밥"


@pytest.mark.asyncio
async def test_kakao_search_by_name_raises_when_all_fail():
    client = _kakao_client(side_effect=ApiError("down", "HTTP_ERROR", "kakao", 500))

    with pytest.raises(ApiError):
        await KakaoPlaces(client).search_by_name("할머니국밥", "강남구")


@pytest.mark.asyncio
async def test_kakao_unavailable_returns_none():
    client = _kakao_client()
    client.is_available.return_value = False

    assert await KakaoPlaces(client).search_by_name("할머니국밥", "강남구") is None
    client.keyword_search.assert_not_awaited()


@pytest.mark.asyncio
async def test_kakao_area_pages_until_end():
    client = _kakao_client(side_effect=[
        {"meta": {"total_count": 20, "is_end": False}, "documents": [_doc(str(i), f"식당{i}") for i in range(15)]},
        {"meta": {"total_count": 20, "is_end": True}, "documents": [_doc(str(i), f"식당{i}") for i in range(14, 20)]},
    ])

    result = await KakaoPlaces(client).search_by_area("역삼동")

    assert result.status == "ready"
    assert result.total_count == 20
    assert client.keyword_search.await_count == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("total, status", [(0, "not_found"), (46, "too_many")])
async def test_kakao_area_edge_statuses(total, status):
    client = _kakao_client(return_value={"meta": {"total_count": total, "is_end": True}, "documents": []})

    result = await KakaoPlaces(client).search_by_area("강남구", "cafe")

    assert result.status == status
    assert client.keyword_search.await_args.args[1] == "CE7"
    if status == "too_many":
        assert "역삼역" in result.suggestions


def test_naver_find_best_match():
    items = [
        {"title": "<b>할머니</b>국밥집", "address": "서울특별시 강남구 역삼동 1", "category": "한식>국밥"},
        {"title": "<b>할머니국밥</b>", "address": "서울특별시 강남구 역삼동 2", "category": "음식점>한식"},
    ]

    best = NaverPlaces.find_best_match(items, "할머니국밥", "강남구")

    assert best is items[1]
    assert NaverPlaces.find_best_match(items, "스타벅스", "부산") is None


def test_naver_to_place():
    place = NaverPlaces.to_place({
        "title": "<b>할머니국밥</b>", "link": "https://map.naver.com/p/entry/place/12345",
        "category": "한식>국밥", "address": "서울특별시 강남구 역삼동 1", "mapx": "1", "mapy": "2",
    })
    fallback = NaverPlaces.to_place({"title": "국밥", "mapx": "1", "mapy": "2"})

    assert place.name == "할머니국밥"
    assert place.place_id == "12345"
    assert place.price_range == "medium"
    assert fallback.place_id == "naver-1-2"


@pytest.mark.asyncio
async def test_naver_search_by_area():
    client = MagicMock()
    client.local_search = AsyncMock(return_value={"total": 2, "items": [{"title": "가"}, {"title": "나"}]})

    result = await NaverPlaces(client).search_by_area("역삼동")

    assert result.status == "ready"
    assert [place.name for place in result.restaurants] == ["가", "나"]
    client.local_search.assert_awaited_once_with("역삼동 맛집")
