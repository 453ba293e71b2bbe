"""
Client for the Kakao Local keyword search API.
"""
from typing import Any, Dict, Optional

from eatsafe.clients.base_client import JsonApiClient
from eatsafe.config import KAKAO_API_KEY, KAKAO_API_TIMEOUT, KAKAO_URL
from eatsafe.errors import NO_API_KEY, ApiError

RESTAURANT_CATEGORY = "FD6"
CAFE_CATEGORY = "CE7"


class KakaoClient(JsonApiClient):
    source = "kakao"

    def __init__(self, api_key: Optional[str] = KAKAO_API_KEY, base_url: str = KAKAO_URL):
        super().__init__(timeout=KAKAO_API_TIMEOUT)
        self.api_key = api_key
        self.base_url = base_url

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def keyword_search(
        self,
        query: str,
        category: Optional[str] = None,
        page: int = 1,
        size: int = 15,
        sort: str = "accuracy",
    ) -> Dict[str, Any]:
        """
        Run one keyword search page.

        Args:
            query (str): Free-text query, e.g. "스타벅스 강남구".
            category (Optional[str]): Category group code (FD6 restaurants, CE7 cafes).
            page (int): 1-based page number.
            size (int): Documents per page (max 15).
            sort (str): "accuracy" or "distance".

        Returns:
            Dict[str, Any]: {"documents": [...], "meta": {"total_count", "pageable_count", "is_end"}}
        """
        if not self.api_key:
            raise ApiError("KAKAO_API_KEY is not configured", NO_API_KEY, self.source)

        params = {"query": query, "page": page, "size": size, "sort": sort}
        if category:
            params["category_group_code"] = category
        return await self._get_json(self.base_url, params=params, headers={"Authorization": f"KakaoAK {self.api_key}"})
