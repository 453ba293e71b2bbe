"""
Region and address helpers: sido alias expansion, address parsing and
region containment checks against registry addresses.
"""
import re
from dataclasses import dataclass
from typing import List, Optional

SIDO_ALIASES = {
    "서울": ("서울특별시", "서울시"),
    "부산": ("부산광역시", "부산시"),
    "대구": ("대구광역시", "대구시"),
    "인천": ("인천광역시", "인천시"),
    "광주": ("광주광역시",),  # 광주시 is a city in 경기도
    "대전": ("대전광역시", "대전시"),
    "울산": ("울산광역시", "울산시"),
    "세종": ("세종특별자치시", "세종시"),
    "경기": ("경기도",),
    "강원": ("강원도", "강원특별자치도"),
    "충북": ("충청북도",),
    "충남": ("충청남도",),
    "전북": ("전라북도", "전북특별자치도"),
    "전남": ("전라남도",),
    "경북": ("경상북도",),
    "경남": ("경상남도",),
    "제주": ("제주특별자치도", "제주도"),
}

_OFFICIAL_SIDO = (
    "서울특별시", "부산광역시", "대구광역시", "인천광역시", "광주광역시", "대전광역시",
    "울산광역시", "세종특별자치시", "경기도", "강원특별자치도", "강원도", "충청북도",
    "충청남도", "전북특별자치도", "전라북도", "전라남도", "경상북도", "경상남도",
    "제주특별자치도", "제주도",
)
_SIDO_NAMES = set(_OFFICIAL_SIDO) | set(SIDO_ALIASES) | {name for names in SIDO_ALIASES.values() for name in names}
_SIDO_PATTERN = re.compile(r"^(" + "|".join(sorted(_SIDO_NAMES, key=lambda name: (-len(name), name))) + r")(?=\s|$)")
_SIGUNGU_PATTERN = re.compile(r"^([가-힣]+[시군구])")
_EUPMYEONDONG_PATTERN = re.compile(r"^([가-힣0-9]+[읍면동가로])")
_DONG_NUMBER = re.compile(r"(?<=[가-힣])제?\d+동$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ParsedAddress:
    full: str
    sido: Optional[str] = None
    sigungu: Optional[str] = None
    eupmyeondong: Optional[str] = None


def parse_address(address: str) -> ParsedAddress:
    """
    Split a Korean address into sido / sigungu / eupmyeondong.

    Args:
        address (str): Full address, e.g. "서울특별시 강남구 역삼동 123-4" or the
            abbreviated "서울 강남구 역삼동 123-4" used by map providers.

    Returns:
        ParsedAddress: Parts that could be recognized, the rest left as None.
    """
    address = (address or "").strip()
    sido_match = _SIDO_PATTERN.match(address)
    if not sido_match:
        return ParsedAddress(full=address)

    sido = sido_match.group(1)
    rest = address[sido_match.end():].strip()
    sigungu_match = _SIGUNGU_PATTERN.match(rest)
    if not sigungu_match:
        return ParsedAddress(full=address, sido=sido)

    sigungu = sigungu_match.group(1)
    rest = rest[len(sigungu):].strip()
    dong_match = _EUPMYEONDONG_PATTERN.match(rest)
    return ParsedAddress(
        full=address,
        sido=sido,
        sigungu=sigungu,
        eupmyeondong=dong_match.group(1) if dong_match else None,
    )


def region_of(address: str) -> str:
    """Most specific region usable for a registry query (sigungu, else sido)."""
    parsed = parse_address(address)
    return parsed.sigungu or parsed.sido or ""


def canonical_dong(token: str) -> str:
    """역삼1동 / 역삼제1동 -> 역삼동."""
    return _DONG_NUMBER.sub("동", token)


def canonical_sido(token: str) -> str:
    """Expand a sido abbreviation ("서울", "서울시") to its official name."""
    for alias, names in SIDO_ALIASES.items():
        if token == alias or token in names:
            return names[0]
    return token


def normalize_region(region: str) -> List[str]:
    """
    Variants of a user-typed region that may appear inside a registry address.

    Args:
        region (str): e.g. "서울 강남", "강남구", "역삼1동".

    Returns:
        List[str]: The region itself, alias expansions, and for bare names the
        "구"/"동" suffixed forms, deduplicated in insertion order.
    """
    region = (region or "").strip()
    variants = [region]
    for alias, names in SIDO_ALIASES.items():
        if alias in region:
            for name in names:
                if name not in region:
                    variants.append(region.replace(alias, name, 1))
    if region and not region.endswith(("구", "시", "동")):
        variants.append(f"{region}구")
        variants.append(f"{region}동")
    return list(dict.fromkeys(variants))


def _compact_region(text: str) -> str:
    tokens = _WHITESPACE.split(text.lower().strip())
    return "".join(canonical_dong(token) for token in tokens if token)


def address_in_region(address: str, region: str) -> bool:
    """True if any region variant is contained in the address (spaces and dong numbers ignored)."""
    if not address or not region or not region.strip():
        return False
    target = _compact_region(address)
    return any(_compact_region(variant) in target for variant in normalize_region(region))
