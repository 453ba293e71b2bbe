"""
Client for the Food Safety Korea open API (foodsafetykorea.go.kr).
"""
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from loguru import logger

from eatsafe.clients.base_client import JsonApiClient
from eatsafe.config import FOOD_API_KEY, FOOD_API_MAX_RESULTS, FOOD_API_TIMEOUT, FOOD_API_URL
from eatsafe.errors import INFO_NO_DATA, INFO_OK, NO_API_KEY, ApiError

# Service ids
HYGIENE_GRADE_SERVICE = "C004"
VIOLATION_SERVICE = "I2630"


class FoodSafetyClient(JsonApiClient):
    """
    Fetches rows from a Food Safety Korea service.

    Responses are wrapped as {"<service>": {"RESULT": {"CODE", "MSG"}, "row": [...]}}.
    INFO-000 means success and INFO-200 means no matching rows; any other
    result code is raised as ApiError.
    """
    source = "food_safety"

    def __init__(self, api_key: Optional[str] = FOOD_API_KEY, base_url: str = FOOD_API_URL):
        super().__init__(timeout=FOOD_API_TIMEOUT)
        self.api_key = api_key
        self.base_url = base_url

    def build_url(
        self,
        service_id: str,
        params: Optional[Dict[str, str]] = None,
        start: int = 1,
        end: int = FOOD_API_MAX_RESULTS,
    ) -> str:
        url = f"{self.base_url}/{self.api_key}/{service_id}/json/{start}/{end}"
        pairs = [f"{key}={quote(str(value))}" for key, value in (params or {}).items() if value]
        if pairs:
            url += "/" + "&".join(pairs)
        return url

    async def fetch_rows(self, service_id: str, params: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
        """
        Fetch the rows of one service call.

        Args:
            service_id (str): e.g. "C004" for hygiene grades, "I2630" for violations.
            params (Optional[Dict[str, str]]): Service filters appended as K=V path segments.

        Returns:
            List[Dict[str, Any]]: Raw rows, empty when the service reports no data.
        """
        if not self.api_key:
            raise ApiError("FOOD_API_KEY is not configured", NO_API_KEY, self.source)

        logger.debug(f"▶️ {service_id} request {params or {}}")
        data = await self._get_json(self.build_url(service_id, params), headers={"Accept": "application/json"})
        payload = data.get(service_id) or {}
        result = payload.get("RESULT") or data.get("RESULT") or {}
        code = result.get("CODE")

        if code == INFO_NO_DATA:
            return []
        if code and code != INFO_OK:
            raise ApiError(result.get("MSG") or "API error", code, self.source)

        rows = payload.get("row") or []
        logger.debug(f"📄 {service_id} returned {len(rows)} rows")
        return rows if isinstance(rows, list) else []
