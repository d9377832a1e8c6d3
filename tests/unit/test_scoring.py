"""Tests for contact relevance scoring."""

import pytest

from leadgen.enrich.scoring import (
    department_points,
    normalize_confidence,
    role_hint_points,
    score_contact,
    seniority_points,
)


class TestSeniority:
    @pytest.mark.parametrize(
        ("position", "points"),
        [
            ("CEO", 8),
            ("Co-Founder", 8),
            ("HR Business Partner", 7),
            ("Talent Acquisition Specialist", 7),
            ("Head of Marketing", 6),
            ("Creative Director", 6),
            ("Product Manager", 5),
            ("Team Lead Frontend", 5),
            ("Designer", 0),
            ("", 0),
        ],
    )
    def test_tiers(self, position: str, points: int) -> None:
        assert seniority_points(position) == points

    def test_highest_tier_wins(self) -> None:
        # "founder" and "director" both match; only the founder tier counts.
        assert seniority_points("Founder & Managing Director") == 8


class TestRoleHint:
    def test_design_hint(self) -> None:
        assert role_hint_points("Senior UX Designer", "ux designer") == 10

    def test_developer_hint(self) -> None:
        assert role_hint_points("CTO", "python developer") == 8

    def test_marketing_hint(self) -> None:
        assert role_hint_points("Brand Manager", "marketing specialist") == 8

    def test_no_match(self) -> None:
        assert role_hint_points("Accountant", "ux designer") == 0
        assert role_hint_points("Designer", "") == 0

    def test_at_most_one_category(self) -> None:
        # Hint matches design and developer; position matches both lists.
        assert role_hint_points("UX Engineering Lead", "ux developer") == 10


class TestDepartment:
    def test_design(self) -> None:
        assert department_points("Design") == 3

    def test_people(self) -> None:
        assert department_points("HR") == 2

    def test_additive(self) -> None:
        assert department_points("Product & People") == 5

    def test_none(self) -> None:
        assert department_points("Finance") == 0


class TestScoreContact:
    def test_ceo_without_hint(self) -> None:
        assert score_contact("CEO", "", "unknown") == 8

    def test_ceo_verified(self) -> None:
        assert score_contact("CEO", "", "high") == 10

    def test_ux_designer_for_ux_search(self) -> None:
        assert score_contact("UX Designer", "", "unknown", "ux designer wanted") == 10

    def test_all_components(self) -> None:
        # head 6 + design hint 10 + design dept 3 + high 2
        assert score_contact("Head of Design", "Design", "high", "UX Designer") == 21

    def test_medium_confidence(self) -> None:
        assert score_contact("Recruiter", "", "medium") == 1

    def test_case_insensitive(self) -> None:
        lower = score_contact("ceo", "DESIGN", "unknown")
        assert lower == score_contact("CEO", "design", "unknown")


class TestNormalizeConfidence:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("high", "high"),
            ("deliverable", "high"),
            ("valid", "high"),
            ("Risky", "medium"),
            ("accept_all", "medium"),
            ("low", "low"),
            ("unknown", "unknown"),
            ("webmail", "unknown"),
            (None, "unknown"),
            (42, "unknown"),
        ],
    )
    def test_mapping(self, raw: object, expected: str) -> None:
        assert normalize_confidence(raw) == expected
