import pytest

from faculty_review.services import scoring


def test_normalize_rounds_to_percentage():
    rubric = {"[A] x": 5, "[A] y": 5, "[B] z": 1}
    assert scoring.normalize(rubric) == 73


def test_normalize_empty_rubric_is_none():
    assert scoring.normalize({}) is None
    assert scoring.normalize(None) is None


def test_normalize_rounds_half_up():
    # 101 / 200 = 50.5%
    rubric = {f"[A] three {i}": 3 for i in range(21)}
    rubric.update({f"[A] two {i}": 2 for i in range(19)})
    assert scoring.normalize(rubric) == 51
    assert scoring.round_half_up(50.5) == 51
    assert scoring.round_half_up(73.33) == 73


def test_normalize_restricted_to_categories():
    rubric = {
        "[Leadership] Planning": 5,
        "[Service] Community": 3,
        "[Unrelated] Ignored": 1,
    }
    assert scoring.normalize(rubric, scoring.HOD_PERFORMANCE_CATEGORIES) == 80
    assert scoring.normalize({"[Unrelated] Only": 4}, scoring.HOD_PERFORMANCE_CATEGORIES) is None


def test_default_hod_rubric_is_sixty_percent():
    assert scoring.normalize(scoring.DEFAULT_HOD_RUBRIC, scoring.HOD_PERFORMANCE_CATEGORIES) == 60


def test_categorize_groups_by_prefix():
    grouped = scoring.categorize({"[Engagement] Clubs": 4, "[Development] Training": 2, "[Engagement] Events": 5})
    assert grouped == {
        "Engagement": {"Clubs": 4, "Events": 5},
        "Development": {"Training": 2},
    }


def test_category_subtotals_skip_empty_categories():
    subtotals = scoring.category_subtotals({"[A] x": 4, "[A] y": 2}, ["A", "B"])
    assert subtotals == {"A": {"raw": 6, "max": 10, "items": 2}}


def test_weighted_total_excludes_empty_categories():
    rubric = {"[A] x": 5, "[B] y": 1}
    assert scoring.weighted_total(rubric, {"A": 3, "B": 1}) == 80
    # C has no items, so its weight drops out
    assert scoring.weighted_total(rubric, {"A": 3, "B": 1, "C": 10}) == 80
    assert scoring.weighted_total({}, {"A": 1}) is None


@pytest.mark.parametrize("rubric", [
    {"no brackets": 3},
    {"[A] x": 0},
    {"[A] x": 6},
    {"[A] x": "5"},
    {"[A] x": True},
])
def test_validate_rubric_rejects_bad_input(rubric):
    with pytest.raises(ValueError):
        scoring.validate_rubric(rubric)


def test_validate_rubric_accepts_well_formed():
    scoring.validate_rubric({"[Professionalism] Compliance": 1, "[Service] Outreach": 5})


def test_effective_total_prefers_stored_value():
    assert scoring.effective_total(42, {"[A] x": 5}) == 42
    assert scoring.effective_total(None, {"[A] x": 5}) == 100
    assert scoring.effective_total(None, None) is None


def test_combined_score_and_percentage():
    assert scoring.combined_score(None, 8, 7) == 15
    assert scoring.combined_score(12, 8, 7) == 12
    assert scoring.combined_score(None, None, 7) == 7
    assert scoring.performance_percentage(15, 20) == 75
    assert scoring.performance_percentage(15, 0) is None


@pytest.mark.parametrize("pct,band", [
    (95, "Excellent"),
    (90, "Excellent"),
    (85, "Very Good"),
    (70, "Good"),
    (50, "Average"),
    (49, "Weak"),
    (None, None),
])
def test_performance_band(pct, band):
    assert scoring.performance_band(pct) == band
