"""
Hygiene registry, violation history and HACCP collaborators backed by the
Food Safety Korea and data.go.kr clients.
"""
import time
from datetime import date
from typing import Callable, Dict, List, Optional

from loguru import logger

from eatsafe.clients import FoodSafetyClient, GovDataClient
from eatsafe.clients.food_safety_client import HYGIENE_GRADE_SERVICE, VIOLATION_SERVICE
from eatsafe.config import MAX_RECENT_VIOLATIONS, VIOLATION_WINDOW_YEARS
from eatsafe.matchers.region_matcher import address_in_region
from eatsafe.models import (
    NO_GRADE,
    CandidateRecord,
    HygieneGrade,
    PartialSearchResult,
    ViolationHistory,
    ViolationItem,
)
from eatsafe.normalizer import compact, fold, format_date, parse_date

# Registry label -> (grade, display label, stars)
GRADE_MAP = {
    "매우우수": ("AAA", "매우 우수", 3),
    "우수": ("AA", "우수", 2),
    "좋음": ("A", "좋음", 1),
}


def parse_hygiene_grade(row: Dict[str, str]) -> HygieneGrade:
    info = GRADE_MAP.get((row.get("HG_ASGN_LV") or "").strip())
    if info is None:
        return NO_GRADE
    grade, label, stars = info
    return HygieneGrade(
        has_grade=True,
        grade=grade,
        stars=stars,
        label=label,
        grade_date=format_date(row.get("ASGN_FROM")),
        valid_until=format_date(row.get("ASGN_TO")),
    )


def parse_registry_row(row: Dict[str, str]) -> CandidateRecord:
    """Map one C004 row onto a CandidateRecord."""
    return CandidateRecord(
        name=(row.get("BSSH_NM") or "").strip(),
        address=(row.get("ADDR") or "").strip(),
        business_type=(row.get("INDUTY_NM") or "").strip(),
        raw_grade=(row.get("HG_ASGN_LV") or "").strip(),
        license_no=(row.get("LCNS_NO") or "").strip(),
        hygiene=parse_hygiene_grade(row),
    )


def parse_violation_row(row: Dict[str, str]) -> ViolationItem:
    """Map one I2630 row onto a ViolationItem; DSPSCN wins over the type name for content."""
    start, end = parse_date(row.get("DSPS_BGNDT")), parse_date(row.get("DSPS_ENDDT"))
    return ViolationItem(
        date=parse_date(row.get("DSPS_DCSNDT")),
        type=row.get("DSPS_TYPECD_NM") or "",
        content=row.get("DSPSCN") or row.get("DSPS_TYPECD_NM") or "",
        reason=row.get("VILTCN") or "",
        period_start=start if start and end else None,
        period_end=end if start and end else None,
    )


def names_overlap(name: str, other: str) -> bool:
    """Compacted containment either way."""
    a, b = compact(name), compact(other)
    return bool(a and b) and (a in b or b in a)


def _years_before(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # Feb 29 -> Feb 28
        return today.replace(year=today.year - years, day=28)


class FoodSafetyRegistry:
    """
    Hygiene grade registry (service C004) filtered by region on our side.

    Args:
        client (FoodSafetyClient): Transport for the open API.
    """

    def __init__(self, client: FoodSafetyClient):
        self.client = client

    async def _search_region(self, name: str, region: str) -> List[CandidateRecord]:
        start = time.perf_counter()
        rows = await self.client.fetch_rows(HYGIENE_GRADE_SERVICE, {"UPSO_NM": name})
        records = [parse_registry_row(row) for row in rows]
        in_region = [record for record in records if address_in_region(record.address, region)]
        logger.debug(
            f"🏷️ Registry '{name}' in '{region}': {len(in_region)}/{len(records)} rows "
            f"in {time.perf_counter() - start:.2f}s"
        )
        return in_region

    async def find_exact(self, name: str, region: str) -> Optional[CandidateRecord]:
        """
        The one registry record named `name` inside `region`.

        Names are first compared as typed (case and spacing ignored), so a
        full branch name such as "스타벅스 강남역점" picks that branch. Only when
        nothing matches literally are branch qualifiers stripped from both
        sides. Returns None when there is no such record or when several
        share the name, leaving disambiguation to the partial search stage.
        """
        records = await self._search_region(name, region)
        literal = fold(name)
        exact = [record for record in records if fold(record.name) == literal]
        if not exact:
            key = compact(name)
            exact = [record for record in records if compact(record.name) == key]
        if len(exact) > 1:
            logger.debug(f"🔀 {len(exact)} exact registry matches for '{name}' in '{region}'")
        return exact[0] if len(exact) == 1 else None

    async def search_partial(self, name: str, region: str) -> PartialSearchResult:
        matches = tuple(record for record in await self._search_region(name, region) if names_overlap(record.name, name))
        return PartialSearchResult(items=matches, total_count=len(matches))


class FoodSafetyViolations:
    """
    Administrative actions (service I2630) for a restaurant.

    Args:
        client (FoodSafetyClient): Transport for the open API.
        today (Callable[[], date]): Reference date for the recent window.
    """

    def __init__(self, client: FoodSafetyClient, today: Callable[[], date] = date.today):
        self.client = client
        self._today = today

    async def get_history(self, name: str, region: str) -> ViolationHistory:
        start = time.perf_counter()
        rows = await self.client.fetch_rows(VIOLATION_SERVICE, {"PRCSCITYPOINT_BSSHNM": name})
        matched = [
            parse_violation_row(row)
            for row in rows
            if names_overlap(row.get("PRCSCITYPOINT_BSSHNM") or "", name)
            and address_in_region(row.get("ADDR") or "", region)
        ]

        cutoff = _years_before(self._today(), VIOLATION_WINDOW_YEARS)
        recent = sorted(
            (item for item in matched if item.date is not None and item.date >= cutoff),
            key=lambda item: item.date,
            reverse=True,
        )[:MAX_RECENT_VIOLATIONS]

        logger.debug(
            f"📋 Violations for '{name}' in '{region}': {len(matched)} total, {len(recent)} recent "
            f"in {time.perf_counter() - start:.2f}s"
        )
        return ViolationHistory(
            total_count=len(matched),
            recent_items=tuple(recent),
            has_more=len(matched) > len(recent),
        )


class HaccpCertifications:
    """HACCP certification lookup; a company counts as certified while any certificate is unexpired."""

    def __init__(self, client: GovDataClient, today: Callable[[], date] = date.today):
        self.client = client
        self._today = today

    async def is_certified(self, name: str) -> bool:
        result = await self.client.search_haccp(name, rows=10)
        today = self._today().strftime("%Y%m%d")
        for item in result["items"]:
            expires = (item.get("issueenddate") or "").replace("-", "")
            if expires and expires >= today and names_overlap(item.get("company") or "", name):
                return True
        return False
