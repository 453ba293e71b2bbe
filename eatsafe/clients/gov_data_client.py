"""
Client for data.go.kr services (HACCP certified company list).
"""
from typing import Any, Dict, List, Optional

from eatsafe.clients.base_client import JsonApiClient
from eatsafe.config import GOV_DATA_API_KEY, GOV_DATA_API_TIMEOUT, GOV_DATA_URL
from eatsafe.errors import NO_API_KEY, ApiError

HACCP_ENDPOINT = "/B553748/CertCompanyListService2/getCertCompanyListService2"


class GovDataClient(JsonApiClient):
    source = "gov_data"

    def __init__(self, api_key: Optional[str] = GOV_DATA_API_KEY, base_url: str = GOV_DATA_URL):
        super().__init__(timeout=GOV_DATA_API_TIMEOUT)
        self.api_key = api_key
        self.base_url = base_url

    async def search_haccp(self, company: str, page: int = 1, rows: int = 10) -> Dict[str, Any]:
        """
        Search HACCP certified companies by name.

        Returns:
            Dict[str, Any]: {"total_count": int, "items": List[dict]}; the raw
            API returns a single item as a dict, which is normalized to a list.
        """
        if not self.api_key:
            raise ApiError("GOV_DATA_API_KEY is not configured", NO_API_KEY, self.source)

        params = {
            "ServiceKey": self.api_key,
            "returnType": "json",
            "company": company,
            "pageNo": str(page),
            "numOfRows": str(rows),
        }
        data = await self._get_json(f"{self.base_url}{HACCP_ENDPOINT}", params=params, headers={"Accept": "application/json"})
        body = data.get("body") or {}
        try:
            total = int(body.get("totalCount") or 0)
        except (TypeError, ValueError):
            total = 0

        raw = (body.get("items") or {}).get("item") if isinstance(body.get("items"), dict) else body.get("items")
        items: List[Dict[str, Any]]
        if not raw:
            items = []
        elif isinstance(raw, dict):
            items = [raw]
        else:
            items = list(raw)
        return {"total_count": total, "items": items}
