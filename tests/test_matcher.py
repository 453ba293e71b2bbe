import pytest

from conftest import make_record
from eatsafe.matchers.classical_matcher import match_address, match_name, match_restaurant, rank_candidates
from eatsafe.matchers.region_matcher import (
    address_in_region,
    canonical_dong,
    canonical_sido,
    normalize_region,
    parse_address,
    region_of,
)
from eatsafe.models import Query


def test_match_name_exact_after_normalization():
    assert match_name("스타벅스", "스타벅스") == 1.0
    assert match_name("스타벅스 강남역점", "스타벅스 강남역점") == 1.0
    assert match_name("STARBUCKS", "starbucks") == 1.0


def test_match_name_branch_stripped_equality_scores_below_literal():
    assert match_name("스타벅스 강남역점", "스타벅스") == 0.9
    assert match_name("할머니국밥 본점", "할머니국밥") == 0.9


def test_match_name_containment():
    assert match_name("스타벅스리저브", "스타벅스") == 0.8


def test_match_name_fuzzy_fallback_is_capped():
    score = match_name("맛있는 김밥", "김밥 맛집")
    assert 0.0 <= score <= 0.6


def test_match_name_empty_side():
    assert match_name("", "스타벅스") == 0.0
    assert match_name("스타벅스", "") == 0.0


def test_match_address_canonicalizes_sido_and_dong():
    assert match_address("서울특별시 강남구 역삼1동 123", "서울 강남구 역삼동") == 1.0


def test_match_address_disjoint():
    assert match_address("서울특별시 서초구 서초동", "강남구") == 0.0
    assert match_address("", "강남구") == 0.0


def test_match_restaurant_uses_region_as_address():
    query = Query(name="스타벅스", region="강남구")

    in_region = match_restaurant(make_record("스타벅스리저브"), query)
    out_of_region = match_restaurant(make_record("스타벅스리저브", "서울특별시 서초구 서초동 1"), query)

    assert in_region.is_match is True
    assert in_region.score == pytest.approx(0.86)
    assert out_of_region.is_match is False
    assert out_of_region.score == pytest.approx(0.56)


def test_rank_candidates_sorts_descending_and_keeps_ties_in_order():
    query = Query(name="스타벅스", region="강남구")
    records = [
        make_record("스타벅스리저브", "서울특별시 서초구 서초동 1"),
        make_record("스타벅스 역삼점"),
        make_record("스타벅스 선릉점"),
    ]

    ranked = rank_candidates(records, query)

    assert [record.name for record, _ in ranked] == ["스타벅스 역삼점", "스타벅스 선릉점", "스타벅스리저브"]
    scores = [decision.score for _, decision in ranked]
    assert scores == sorted(scores, reverse=True)


def test_parse_address():
    parsed = parse_address("서울특별시 강남구 역삼동 123-4")
    assert parsed.sido == "서울특별시"
    assert parsed.sigungu == "강남구"
    assert parsed.eupmyeondong == "역삼동"


def test_parse_address_abbreviated_sido():
    parsed = parse_address("서울 강남구 역삼동 123-4")
    assert parsed.sido == "서울"
    assert parsed.sigungu == "강남구"
    assert region_of("서울 강남구 테헤란로 1") == "강남구"


def test_parse_address_unknown_sido():
    parsed = parse_address("어딘가 123")
    assert parsed.sido is None
    assert parsed.sigungu is None


def test_region_of():
    assert region_of("경기도 성남시 분당구 정자동 1") == "성남시"
    assert region_of("서울특별시") == "서울특별시"
    assert region_of("unknown") == ""


def test_canonical_sido_keeps_gyeonggi_gwangju_apart():
    assert canonical_sido("광주") == "광주광역시"
    assert canonical_sido("광주시") == "광주시"
    assert canonical_sido("서울시") == "서울특별시"


def test_canonical_dong():
    assert canonical_dong("역삼1동") == "역삼동"
    assert canonical_dong("역삼제1동") == "역삼동"
    assert canonical_dong("123") == "123"


def test_normalize_region_expands_aliases_and_suffixes():
    variants = normalize_region("서울 강남")
    assert variants[0] == "서울 강남"
    assert "서울특별시 강남" in variants
    assert "서울 강남구" in variants


@pytest.mark.parametrize(
    "address, region, expected",
    [
        ("서울특별시 강남구 역삼1동 123", "역삼동", True),
        ("서울특별시 강남구 역삼동 123", "강남", True),
        ("서울특별시 강남구 역삼동 123", "서울 강남구", True),
        ("서울특별시 서초구 서초동 1", "강남구", False),
        ("", "강남구", False),
        ("서울특별시 강남구", "  ", False),
    ],
)
def test_address_in_region(address, region, expected):
    assert address_in_region(address, region) is expected


def test_rank_candidates_puts_literal_branch_first():
    query = Query(name="스타벅스 강남역점", region="강남구")
    records = [make_record("스타벅스 역삼점"), make_record("스타벅스 강남역점")]

    ranked = rank_candidates(records, query)

    assert ranked[0][0].name == "스타벅스 강남역점"
    assert ranked[0][1].score > ranked[1][1].score
