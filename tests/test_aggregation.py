# =============================================================================
# tests/test_aggregation.py - Rating Aggregation Tests
# =============================================================================
# Pure functions from core.aggregation, tested on lightweight stand-ins
# for ORM objects:
# - Per-dimension averages (missing values, inactive dimensions)
# - Level classification and the text summary
# - Tasting summary and user profile payloads
# =============================================================================

from types import SimpleNamespace

import pytest

from core.aggregation import (
    LEVEL_MODERATE,
    LEVEL_STRONG,
    LEVEL_WEAK,
    average_by_dimension,
    build_tasting_summary,
    build_user_profile,
    classify_level,
    describe_profile,
)


def make_dimension(code, name, min_value=0, max_value=10, is_active=True):
    return SimpleNamespace(
        code=code, name=name, min_value=min_value, max_value=max_value, is_active=is_active
    )


def make_rating(user_id, tea_sample_id, data, comment=None):
    return SimpleNamespace(user_id=user_id, tea_sample_id=tea_sample_id, data=data, comment=comment)


@pytest.fixture
def dimensions():
    return [
        make_dimension("aroma", "Аромат"),
        make_dimension("sweetness", "Сладость"),
        make_dimension("astringency", "Терпкость", min_value=1, max_value=5),
    ]


@pytest.fixture
def tasting(dimensions):
    samples = [
        SimpleNamespace(id=11, position=1, name="Да Хун Пао"),
        SimpleNamespace(id=12, position=2, name="Те Гуань Инь"),
    ]
    return SimpleNamespace(id=1, title="Улуны", samples=samples, dimensions=dimensions)


# =============================================================================
# Averages
# =============================================================================

class TestAverageByDimension:
    """Tests for average_by_dimension."""

    def test_single_rating_equals_values(self, dimensions):
        averages = average_by_dimension([{"aroma": 7, "sweetness": 5}], dimensions)

        assert averages == {"aroma": 7, "sweetness": 5}

    def test_missing_values_are_skipped(self, dimensions):
        rows = [{"aroma": 8}, {"aroma": 6, "sweetness": 3}]

        averages = average_by_dimension(rows, dimensions)

        assert averages == {"aroma": 7, "sweetness": 3}

    def test_rounding(self, dimensions):
        rows = [{"aroma": 1}, {"aroma": 2}, {"aroma": 2}]

        assert average_by_dimension(rows, dimensions)["aroma"] == 1.67

    def test_inactive_dimension_ignored(self):
        dims = [make_dimension("aroma", "Аромат"), make_dimension("old", "Старое", is_active=False)]

        averages = average_by_dimension([{"aroma": 4, "old": 9}], dims)

        assert averages == {"aroma": 4}

    def test_keys_follow_dimension_order(self, dimensions):
        averages = average_by_dimension([{"astringency": 2, "aroma": 5}], dimensions)

        assert list(averages) == ["aroma", "astringency"]

    def test_no_rows(self, dimensions):
        assert average_by_dimension([], dimensions) == {}


# =============================================================================
# Text summary
# =============================================================================

class TestDescribeProfile:
    """Tests for classify_level and describe_profile."""

    @pytest.mark.parametrize(
        "value, expected",
        [(10, LEVEL_STRONG), (7, LEVEL_STRONG), (5, LEVEL_MODERATE), (4, LEVEL_WEAK), (0, LEVEL_WEAK)],
    )
    def test_classify_level(self, value, expected):
        assert classify_level(value, make_dimension("aroma", "Аромат")) == expected

    def test_level_uses_dimension_range(self):
        # 4 на шкале 1..5 это 0.75 диапазона
        dim = make_dimension("astringency", "Терпкость", min_value=1, max_value=5)

        assert classify_level(4, dim) == LEVEL_STRONG

    def test_empty_profile(self, dimensions):
        assert describe_profile({}, dimensions) == "Оценок пока нет."

    def test_strongest_dimension_first(self, dimensions):
        text = describe_profile({"aroma": 8.5, "sweetness": 5}, dimensions)

        lines = text.split("\n")
        assert lines[0] == "Сильнее всего выражено: Аромат."
        assert lines[1] == "Аромат: ярко выражено (8.5 из 10)"
        assert lines[2] == "Сладость: умеренно (5 из 10)"

    def test_summary_is_deterministic(self, dimensions):
        averages = {"aroma": 3, "sweetness": 9, "astringency": 2}

        assert describe_profile(averages, dimensions) == describe_profile(averages, dimensions)


# =============================================================================
# Payloads
# =============================================================================

class TestBuildTastingSummary:
    """Tests for build_tasting_summary."""

    def test_summary_payload(self, tasting):
        ratings = [
            make_rating(1, 11, {"aroma": 8, "sweetness": 4}),
            make_rating(2, 11, {"aroma": 6}),
            make_rating(1, 12, {"aroma": 2, "sweetness": 6}),
        ]

        summary = build_tasting_summary(tasting, ratings)

        assert summary["tasting"] == {"id": 1, "title": "Улуны"}
        assert summary["participants"] == 2
        assert summary["ratings_count"] == 3
        assert [d["code"] for d in summary["dimensions"]] == ["aroma", "sweetness", "astringency"]

        first, second = summary["samples"]
        assert first["name"] == "Да Хун Пао"
        assert first["ratings_count"] == 2
        assert first["averages"] == {"aroma": 7, "sweetness": 4}
        assert first["overall"] == 5.5
        assert second["averages"] == {"aroma": 2, "sweetness": 6}

        assert summary["averages"] == {"aroma": 5.33, "sweetness": 5}

    def test_sample_without_ratings(self, tasting):
        summary = build_tasting_summary(tasting, [])

        assert summary["participants"] == 0
        assert all(s["ratings_count"] == 0 for s in summary["samples"])
        assert all(s["overall"] is None for s in summary["samples"])
        assert summary["summary_text"] == "Оценок пока нет."


class TestBuildUserProfile:
    """Tests for build_user_profile."""

    def test_profile_payload(self, tasting):
        user = SimpleNamespace(id=1, display_name="Анна")
        mine = [
            make_rating(1, 12, {"aroma": 9, "sweetness": 9}, comment="Цветочный"),
            make_rating(1, 11, {"aroma": 3, "sweetness": 5}),
        ]
        everyone = mine + [make_rating(2, 11, {"aroma": 5, "sweetness": 5})]

        profile = build_user_profile(tasting, user, mine, everyone)

        assert profile["user"] == {"id": 1, "name": "Анна"}
        assert [s["position"] for s in profile["samples"]] == [1, 2]
        assert profile["samples"][1]["comment"] == "Цветочный"
        assert profile["averages"] == {"aroma": 6, "sweetness": 7}
        assert profile["group_averages"] == {"aroma": 5.67, "sweetness": 6.33}
        assert profile["favorite_sample"] == {"id": 12, "name": "Те Гуань Инь", "overall": 9}
        assert profile["summary_text"].startswith("Сильнее всего выражено: Сладость.")

    def test_profile_without_ratings(self, tasting):
        user = SimpleNamespace(id=3, display_name="@guest")

        profile = build_user_profile(tasting, user, [], [])

        assert profile["samples"] == []
        assert profile["favorite_sample"] is None
        assert profile["averages"] == {}
