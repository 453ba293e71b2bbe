"""
Text canonicalization for restaurant names, regions and registry dates.
"""
import re
import unicodedata
from datetime import date, datetime
from typing import Optional

FRANCHISE_BRANDS = (
    "스타벅스", "STARBUCKS", "투썸플레이스", "이디야", "빽다방", "메가커피",
    "컴포즈커피", "더벤티", "커피빈", "폴바셋", "할리스", "엔제리너스",
    "파스쿠찌", "카페베네", "탐앤탐스", "공차", "쥬시",
    "맥도날드", "버거킹", "롯데리아", "KFC", "맘스터치", "노브랜드버거",
    "서브웨이", "파파이스", "쉐이크쉑", "파이브가이즈",
    "BBQ", "BHC", "굽네치킨", "교촌치킨", "네네치킨", "또래오래",
    "페리카나", "호식이두마리치킨", "지코바", "푸라닭",
    "도미노피자", "피자헛", "미스터피자", "파파존스", "피자스쿨", "7번가피자",
    "본죽", "김밥천국", "김가네", "죽이야기", "놀부", "명륜진사갈비",
    "새마을식당", "백종원", "홍콩반점", "역전우동", "하남돼지집",
    "죠스떡볶이", "신전떡볶이", "청년다방", "응급실떡볶이",
    "스시로", "쿠우쿠우", "미소야",
    "이삭토스트", "뚜레쥬르", "파리바게뜨", "SPC", "CJ",
)

_WHITESPACE = re.compile(r"\s+")
_PAREN_SUFFIX = re.compile(r"\s*[(\[][^()\[\]]*[)\]]\s*$")
_BRANCH_SUFFIX = re.compile(r"\s*(본점|직영점|\d+호점)$")
_DATE_DIGITS = re.compile(r"^\d{8}$")

# A truncated brand ("도미노" for "도미노피자") must be a prefix of at least this many characters
_MIN_REVERSE_MATCH = 3


def _strip_branch(text: str) -> str:
    previous = None
    while text and text != previous:
        previous = text
        text = _PAREN_SUFFIX.sub("", text).strip()
        text = _BRANCH_SUFFIX.sub("", text).strip()
        tokens = text.split(" ")
        if len(tokens) > 1 and len(tokens[-1]) >= 3 and tokens[-1].endswith("점"):
            text = " ".join(tokens[:-1])
    return text


def normalize(text: str) -> str:
    """
    Canonicalize a free-text name for matching.

    Applies NFKC, case folding and whitespace collapsing, and strips trailing
    branch qualifiers such as "(역삼점)", "본점", "2호점" or "강남역점".

    Args:
        text (str): Raw name as typed by a user or returned by the registry.

    Returns:
        str: Canonical form. Empty or blank input is returned unchanged.
    """
    if not text or not text.strip():
        return text
    folded = unicodedata.normalize("NFKC", text).casefold()
    folded = _WHITESPACE.sub(" ", folded).strip()
    stripped = _strip_branch(folded)
    return stripped or folded


def fold(text: str) -> str:
    """NFKC, case-folded form with all whitespace removed; branch qualifiers are kept."""
    if not text:
        return ""
    return _WHITESPACE.sub("", unicodedata.normalize("NFKC", text).casefold())


def compact(text: str) -> str:
    """Normalized form with all whitespace removed."""
    if not text:
        return ""
    return _WHITESPACE.sub("", normalize(text))


def _brand_key(text: str) -> str:
    return _WHITESPACE.sub("", unicodedata.normalize("NFKC", text)).upper()


_BRAND_KEYS = tuple(_brand_key(brand) for brand in FRANCHISE_BRANDS)


def is_franchise(name: str) -> bool:
    """
    Check a restaurant name against the franchise brand list.

    A name matches when a brand is contained in it, or when the whole name is
    the start of a brand (e.g. "도미노" for "도미노피자"). Generic food words
    such as "피자" or "김밥" are too short to match that way.
    """
    if not name or not name.strip():
        return False
    key = _brand_key(name)
    for brand in _BRAND_KEYS:
        if brand in key:
            return True
        if len(key) >= _MIN_REVERSE_MATCH and brand.startswith(key):
            return True
    return False


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a registry YYYYMMDD string into a date, or None if it is not one."""
    if not value or not _DATE_DIGITS.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y%m%d").date()
    except ValueError:
        return None


def format_date(value: Optional[str]) -> Optional[str]:
    """
    Convert a registry date to ISO form.

    Args:
        value (Optional[str]): Eight-digit date, e.g. "20240115".

    Returns:
        Optional[str]: "2024-01-15", or None for anything that is not exactly
        eight digits forming a valid calendar date.
    """
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None
