"""
Client for the Naver local search API.
"""
from typing import Any, Dict, Optional

from eatsafe.clients.base_client import JsonApiClient
from eatsafe.config import NAVER_API_TIMEOUT, NAVER_CLIENT_ID, NAVER_CLIENT_SECRET, NAVER_MAX_RESULTS, NAVER_URL
from eatsafe.errors import NO_API_KEY, ApiError


class NaverClient(JsonApiClient):
    source = "naver"

    def __init__(
        self,
        client_id: Optional[str] = NAVER_CLIENT_ID,
        client_secret: Optional[str] = NAVER_CLIENT_SECRET,
        base_url: str = NAVER_URL,
    ):
        super().__init__(timeout=NAVER_API_TIMEOUT)
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url

    def is_available(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def local_search(self, query: str, display: int = NAVER_MAX_RESULTS) -> Dict[str, Any]:
        """Similarity-sorted local search. Returns {"total", "items": [...]}."""
        if not self.is_available():
            raise ApiError("NAVER_CLIENT_ID or NAVER_CLIENT_SECRET is not configured", NO_API_KEY, self.source)

        headers = {
            "X-Naver-Client-Id": self.client_id,
            "X-Naver-Client-Secret": self.client_secret,
        }
        params = {"query": query, "display": display, "sort": "sim"}
        return await self._get_json(self.base_url, params=params, headers=headers)
