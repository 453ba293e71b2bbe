"""
Map / rating providers: Kakao Local and Naver local search.

Neither public API exposes star ratings, so hits carry rating None and the
aggregator treats them as "no rating" rather than zero.
"""
import asyncio
import re
import time
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from eatsafe.clients import KakaoClient, NaverClient
from eatsafe.clients.kakao_client import CAFE_CATEGORY, RESTAURANT_CATEGORY
from eatsafe.config import KAKAO_AREA_MAX_PAGES, KAKAO_AREA_PAGE_SIZE, KAKAO_SEARCH_PAGE_SIZE
from eatsafe.matchers.classical_matcher import match_name
from eatsafe.models import AreaSearchResult, PlaceInfo

AREA_SUGGESTIONS = {
    "강남구": ("역삼역", "강남역", "삼성역", "선릉역", "청담동", "논현동", "신사동"),
    "서초구": ("강남역", "서초역", "교대역", "양재역", "방배동", "반포동"),
    "마포구": ("홍대입구역", "합정역", "망원동", "연남동", "상수역"),
    "송파구": ("잠실역", "석촌역", "송파역", "문정동", "방이동"),
    "영등포구": ("여의도역", "영등포역", "당산역", "문래동"),
    "종로구": ("광화문역", "종각역", "안국역", "삼청동", "북촌"),
    "중구": ("명동역", "을지로역", "충무로역", "동대문역"),
    "용산구": ("이태원역", "녹사평역", "한남동", "용산역"),
    "성동구": ("성수역", "왕십리역", "서울숲역", "뚝섬역"),
    "광진구": ("건대입구역", "구의역", "아차산역"),
    "구로구": ("신도림역", "구로디지털단지역", "대림역"),
}

HIGH_PRICE_KEYWORDS = ("파인다이닝", "오마카세", "코스요리", "스테이크", "한우", "와인바", "프렌치", "이탈리안")
LOW_PRICE_KEYWORDS = ("분식", "김밥", "떡볶이", "컵밥", "도시락", "패스트푸드", "편의점")

# Area listings above this many hits are reported as too broad
MAX_AREA_RESULTS = KAKAO_AREA_PAGE_SIZE * KAKAO_AREA_MAX_PAGES

_HTML_TAG = re.compile(r"<[^>]*>")
_NAVER_PLACE_ID = re.compile(r"place/(\d+)")


def area_suggestions(area: str) -> List[str]:
    """Narrower areas to try when `area` returns too many restaurants."""
    for district, suggestions in AREA_SUGGESTIONS.items():
        if district in area:
            return list(suggestions)
    return [f"{area} 역 근처", f"{area} 중심가", f"{area} 동쪽", f"{area} 서쪽"]


def strip_html(text: str) -> str:
    return _HTML_TAG.sub("", text or "")


def estimate_price_range(category: str, description: str = "") -> str:
    """Keyword-based low / medium / high guess from category and description text."""
    haystack = f"{category} {description}".lower()
    if any(keyword in haystack for keyword in HIGH_PRICE_KEYWORDS):
        return "high"
    if any(keyword in haystack for keyword in LOW_PRICE_KEYWORDS):
        return "low"
    return "medium"


def _not_found(area: str) -> AreaSearchResult:
    return AreaSearchResult(
        status="not_found",
        total_count=0,
        message=f'"{area}" 지역에서 식당을 찾을 수 없습니다. 지역명을 다시 확인해주세요.',
    )


def _too_many(area: str, total: int) -> AreaSearchResult:
    return AreaSearchResult(
        status="too_many",
        total_count=total,
        suggestions=tuple(area_suggestions(area)),
        message=f'"{area}" 지역에 식당이 너무 많습니다 ({total}개). 더 구체적인 지역을 입력해주세요.',
    )


def _ready(area: str, places: Sequence[PlaceInfo]) -> AreaSearchResult:
    return AreaSearchResult(
        status="ready",
        total_count=len(places),
        restaurants=tuple(places),
        message=f'"{area}" 지역에서 {len(places)}개의 식당을 찾았습니다.',
    )


class KakaoPlaces:
    """
    Kakao Local provider. Name lookups search restaurants (FD6) and cafes
    (CE7) concurrently and keep the document whose name matches best.
    """
    source = "kakao"

    def __init__(self, client: KakaoClient):
        self.client = client

    @staticmethod
    def to_place(doc: Dict[str, Any]) -> PlaceInfo:
        return PlaceInfo(
            source="kakao",
            name=doc.get("place_name") or "",
            address=doc.get("address_name") or "",
            road_address=doc.get("road_address_name") or "",
            category=doc.get("category_name") or "",
            phone=doc.get("phone") or "",
            place_url=doc.get("place_url") or "",
            place_id=str(doc.get("id") or ""),
        )

    async def search_by_name(self, name: str, region: str) -> Optional[PlaceInfo]:
        if not self.client.is_available():
            return None

        start = time.perf_counter()
        query = f"{name} {region}"
        responses = await asyncio.gather(
            self.client.keyword_search(query, RESTAURANT_CATEGORY, size=KAKAO_SEARCH_PAGE_SIZE),
            self.client.keyword_search(query, CAFE_CATEGORY, size=KAKAO_SEARCH_PAGE_SIZE),
            return_exceptions=True,
        )
        failures = [r for r in responses if isinstance(r, BaseException)]
        if len(failures) == len(responses):
            raise failures[0]
        for failure in failures:
            logger.debug(f"⚠️ Kakao category search failed for '{query}': {failure}")

        seen = set()
        docs = []
        for response in responses:
            if isinstance(response, BaseException):
                continue
            for doc in response.get("documents") or []:
                if doc.get("id") in seen:
                    continue
                seen.add(doc.get("id"))
                docs.append(doc)

        best, best_score = None, 0.0
        for doc in docs:
            score = match_name(doc.get("place_name") or "", name)
            if score > best_score:
                best, best_score = doc, score
        logger.debug(
            f"🗺️ Kakao '{query}': {len(docs)} docs, best={best and best.get('place_name')} "
            f"in {time.perf_counter() - start:.2f}s"
        )
        return self.to_place(best) if best else None

    async def search_by_area(self, area: str, category: Optional[str] = None) -> AreaSearchResult:
        """
        List restaurants (or cafes when category is "cafe") in an area.

        Returns:
            AreaSearchResult: not_found for no hits, too_many with narrower
            suggestions above MAX_AREA_RESULTS, otherwise up to three pages.
        """
        code = CAFE_CATEGORY if category == "cafe" else RESTAURANT_CATEGORY
        first = await self.client.keyword_search(area, code, page=1, size=KAKAO_AREA_PAGE_SIZE)
        meta = first.get("meta") or {}
        total = int(meta.get("total_count") or 0)
        if total == 0:
            return _not_found(area)
        if total > MAX_AREA_RESULTS:
            return _too_many(area, total)

        docs = list(first.get("documents") or [])
        page = 1
        while not meta.get("is_end", True) and page < KAKAO_AREA_MAX_PAGES:
            page += 1
            response = await self.client.keyword_search(area, code, page=page, size=KAKAO_AREA_PAGE_SIZE)
            docs.extend(response.get("documents") or [])
            meta = response.get("meta") or {}

        places = list({doc.get("id"): self.to_place(doc) for doc in docs}.values())
        return _ready(area, places)


class NaverPlaces:
    """Naver local search provider with score-based best-match selection."""
    source = "naver"

    def __init__(self, client: NaverClient):
        self.client = client

    @staticmethod
    def _score(item: Dict[str, Any], name: str, address: str) -> int:
        item_name = "".join(strip_html(item.get("title")).lower().split())
        item_address = "".join((item.get("address") or item.get("roadAddress") or "").lower().split())
        wanted_name = "".join(name.lower().split())
        wanted_address = "".join(address.lower().split())

        score = 0
        if item_name == wanted_name:
            score += 100
        elif item_name and wanted_name and (wanted_name in item_name or item_name in wanted_name):
            score += 50
        if item_address and wanted_address and (wanted_address in item_address or item_address in wanted_address):
            score += 30
        category = item.get("category") or ""
        if "음식점" in category or "카페" in category:
            score += 10
        return score

    @classmethod
    def find_best_match(cls, items: Sequence[Dict[str, Any]], name: str, address: str) -> Optional[Dict[str, Any]]:
        """Highest scoring item; at least a name or address hit (30 points) is required."""
        best, best_score = None, 0
        for item in items:
            score = cls._score(item, name, address)
            if score > best_score:
                best, best_score = item, score
        return best if best_score >= 30 else None

    @staticmethod
    def to_place(item: Dict[str, Any]) -> PlaceInfo:
        link = item.get("link") or ""
        match = _NAVER_PLACE_ID.search(link)
        place_id = match.group(1) if match else f"naver-{item.get('mapx')}-{item.get('mapy')}"
        category = item.get("category") or ""
        return PlaceInfo(
            source="naver",
            name=strip_html(item.get("title")),
            address=item.get("address") or "",
            road_address=item.get("roadAddress") or "",
            category=category,
            price_range=estimate_price_range(category, item.get("description") or ""),
            phone=item.get("telephone") or "",
            place_url=link,
            place_id=place_id,
        )

    async def search_by_name(self, name: str, region: str) -> Optional[PlaceInfo]:
        if not self.client.is_available():
            return None
        start = time.perf_counter()
        response = await self.client.local_search(f"{name} {region}")
        best = self.find_best_match(response.get("items") or [], name, region)
        logger.debug(f"🧭 Naver '{name} {region}': best={best and strip_html(best.get('title'))} in {time.perf_counter() - start:.2f}s")
        return self.to_place(best) if best else None

    async def search_by_area(self, area: str, category: Optional[str] = None) -> AreaSearchResult:
        keyword = "카페" if category == "cafe" else "맛집"
        response = await self.client.local_search(f"{area} {keyword}")
        total = int(response.get("total") or 0)
        if total == 0:
            return _not_found(area)
        if total > MAX_AREA_RESULTS:
            return _too_many(area, total)
        return _ready(area, [self.to_place(item) for item in response.get("items") or []])
