"""HTTP clients for the hygiene registry, map providers and certification data."""
from eatsafe.clients.food_safety_client import FoodSafetyClient
from eatsafe.clients.gov_data_client import GovDataClient
from eatsafe.clients.kakao_client import KakaoClient
from eatsafe.clients.naver_client import NaverClient

__all__ = ["FoodSafetyClient", "GovDataClient", "KakaoClient", "NaverClient"]
