"""
Human-readable Korean summaries for hygiene lookups and trust scores.
"""
from typing import Dict, List, Optional

from eatsafe.models import HygieneGrade, RestaurantHygiene, TrustScoreResult, ViolationHistory, ViolationItem

GRADE_ICONS = {"A": "🟢", "B": "🟡", "C": "🟠", "D": "🔴"}

INDICATOR_NAMES = {
    "hygiene_grade": "위생등급",
    "violation_history": "행정처분",
    "business_duration": "영업기간",
    "rating": "평점",
    "review_count": "리뷰수",
    "franchise": "프랜차이즈",
    "certification": "HACCP인증",
}

VIOLATION_TYPE_TERMS = {
    "영업허가취소": "영업허가 취소",
    "영업소폐쇄": "영업소 폐쇄",
    "시설개수명령": "시설 개선 명령",
    "품목제조정지": "해당 품목 제조 금지",
    "시정명령": "시정 명령",
}

VIOLATION_REASON_TERMS = {
    "위생적취급기준위반": "위생 기준 위반",
    "식품위생법위반": "식품위생법 위반",
    "원산지표시위반": "원산지 표시 위반",
    "유통기한경과": "유통기한 경과",
    "무허가영업": "무허가 영업",
    "허위표시": "허위 표시",
}

MAX_DISPLAYED_VIOLATIONS = 3


def format_stars(stars: int) -> str:
    """
    Render a 0-3 hygiene star count.

    Args:
        stars (int): Number of filled stars.

    Returns:
        str: "" for 0, otherwise filled and empty stars, e.g. "★★☆".
    """
    if stars <= 0:
        return ""
    stars = min(stars, 3)
    return "★" * stars + "☆" * (3 - stars)


def format_score_bar(score: int) -> str:
    """Five-cell bar for a 0-100 indicator score."""
    filled = max(0, min(5, int(score / 20 + 0.5)))
    return "█" * filled + "░" * (5 - filled)


def format_trust_score_header(result: TrustScoreResult) -> str:
    icon = GRADE_ICONS.get(result.grade, "")
    return f"{icon} 신뢰도: {result.grade}등급 ({result.score}점) - {result.message}"


def format_indicator_details(scores: Dict[str, int]) -> List[str]:
    lines = []
    for key, value in scores.items():
        name = INDICATOR_NAMES.get(key, key)
        lines.append(f"   {name}: {format_score_bar(value)} {value}점")
    return lines


def format_trust_score(result: TrustScoreResult, include_details: bool = True) -> str:
    header = format_trust_score_header(result)
    if not include_details:
        return header
    return "\n".join([header] + format_indicator_details(result.indicator_scores))


def format_hygiene_grade(grade: HygieneGrade) -> str:
    if not grade.has_grade:
        return "ℹ️ 위생등급: 등급 미보유 (미신청 업소)"
    return f"🏆 위생등급: {format_stars(grade.stars)} {grade.label} ({grade.grade})"


def convert_violation_type(value: str) -> str:
    return VIOLATION_TYPE_TERMS.get(value, value)


def convert_violation_reason(value: str) -> str:
    """Plain-language reason, keeping a leading "(YYYYMMDD)" prefix if present."""
    if not value:
        return value
    prefix = ""
    if value.startswith("(") and len(value) >= 10 and value[1:9].isdigit() and value[9] == ")":
        prefix, value = value[:10], value[10:].strip()
    converted = VIOLATION_REASON_TERMS.get(value, value)
    return f"{prefix} {converted}".strip() if prefix else converted


def _format_violation_item(item: ViolationItem) -> str:
    when = item.date.strftime("%Y.%m.%d") if item.date else ""
    return f"   - {when} | {convert_violation_type(item.type)} | {convert_violation_reason(item.reason)}"


def format_violations(violations: Optional[ViolationHistory]) -> str:
    """
    Summarize administrative actions.

    Args:
        violations (Optional[ViolationHistory]): None when the lookup failed.

    Returns:
        str: One header line plus up to three item lines and an "외 N건" tail.
    """
    if violations is None:
        return "❓ 행정처분: 현재 조회할 수 없습니다."
    if violations.total_count == 0:
        return "✅ 행정처분: 최근 3년간 처분 이력이 없습니다."

    lines = [f"⚠️ 행정처분: {violations.total_count}건"]
    displayed = violations.recent_items[:MAX_DISPLAYED_VIOLATIONS]
    lines.extend(_format_violation_item(item) for item in displayed)
    remaining = violations.total_count - len(displayed)
    if remaining > 0:
        lines.append(f"   (외 {remaining}건)")
    return "\n".join(lines)


def format_summary(data: RestaurantHygiene) -> str:
    sections = [format_hygiene_grade(data.record.hygiene), format_violations(data.violations)]
    if data.trust_score is not None:
        sections.append(format_trust_score_header(data.trust_score))
    return "\n".join(sections)
