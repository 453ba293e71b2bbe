# eatsafe/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# API Keys
FOOD_API_KEY = os.getenv("FOOD_API_KEY")
KAKAO_API_KEY = os.getenv("KAKAO_API_KEY")
NAVER_CLIENT_ID = os.getenv("NAVER_CLIENT_ID")
NAVER_CLIENT_SECRET = os.getenv("NAVER_CLIENT_SECRET")
GOV_DATA_API_KEY = os.getenv("GOV_DATA_API_KEY")

# Runtime parameters
BATCH_SIZE = 5
CONCURRENCY = 10
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CACHE_ENABLED = os.getenv("CACHE_ENABLED", "true").lower() != "false"

# Request timeouts (seconds)
FOOD_API_TIMEOUT = 10
KAKAO_API_TIMEOUT = 5
NAVER_API_TIMEOUT = 5
GOV_DATA_API_TIMEOUT = 10

# Cache TTLs (seconds)
HYGIENE_CACHE_TTL = 7 * 24 * 60 * 60
VIOLATION_CACHE_TTL = 7 * 24 * 60 * 60
PLACE_CACHE_TTL = 24 * 60 * 60
CERTIFICATION_CACHE_TTL = 7 * 24 * 60 * 60
ENTITY_CACHE_TTL = 24 * 60 * 60

# Matching policy
NAME_WEIGHT = 0.7
ADDRESS_WEIGHT = 0.3
MATCH_THRESHOLD = 0.7
BRANCH_STRIPPED_SCORE = 0.9
CONTAINMENT_SCORE = 0.8
FUZZY_FALLBACK_CAP = 0.6
MAX_CANDIDATES = 5

# Registry / violations
FOOD_API_MAX_RESULTS = 100
MAX_RECENT_VIOLATIONS = 3
VIOLATION_WINDOW_YEARS = 3

# Area search
KAKAO_SEARCH_PAGE_SIZE = 5
KAKAO_AREA_PAGE_SIZE = 15
KAKAO_AREA_MAX_PAGES = 3
NAVER_MAX_RESULTS = 5

# URLs
FOOD_API_URL = "http://openapi.foodsafetykorea.go.kr/api"
KAKAO_URL = "https://dapi.kakao.com/v2/local/search/keyword.json"
NAVER_URL = "https://openapi.naver.com/v1/search/local.json"
GOV_DATA_URL = "https://apis.data.go.kr"

# File names
INPUT_CSV = "restaurants.csv"
OUTPUT_CSV = "restaurants_checked.csv"
