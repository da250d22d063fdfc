"""Tests for weighted daily challenge selection."""
import random
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from challenges import (
    CHALLENGE_TEMPLATES,
    BusinessTier,
    ChallengeCategory,
    ChallengeSelector,
    Difficulty,
    UserChallengeContext,
    beat_yesterday_challenge,
    select_challenge,
)
from classifiers import ConstraintType
from core import ChallengeSettings, TelemetryClient, TelemetryEvent, TemplateError

FIXED_NOW = datetime(2024, 5, 1, 15, 30, tzinfo=timezone.utc)


class StubTelemetry(TelemetryClient):
    def __init__(self) -> None:
        self.events: list[TelemetryEvent] = []
        self.metrics: list[tuple] = []
        self.exceptions: list[tuple] = []

    def emit_event(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def emit_metric(self, name: str, value: float, *, attributes=None) -> None:
        self.metrics.append((name, value, dict(attributes or {})))

    def capture_exception(self, error: BaseException, *, attributes=None) -> None:
        self.exceptions.append((error, dict(attributes or {})))


def make_selector(seed: int = 7, **kwargs) -> ChallengeSelector:
    kwargs.setdefault("telemetry_client", StubTelemetry())
    return ChallengeSelector(
        ChallengeSettings(),
        rng=random.Random(seed),
        clock=lambda: FIXED_NOW,
        **kwargs,
    )


def make_context(**overrides) -> UserChallengeContext:
    values = {"user_id": "user-1"}
    values.update(overrides)
    return UserChallengeContext(**values)


def test_new_leads_constrained_user_gets_easy_supporting_challenges() -> None:
    selector = make_selector()
    context = make_context(
        business_tier=BusinessTier.LEVEL0,
        current_streak=1,
        primary_constraint=ConstraintType.LEADS,
    )

    weights = selector.category_weights(context)
    base = ChallengeSelector.BASE_WEIGHTS

    for category in (ChallengeCategory.HABIT, ChallengeCategory.LEARNING, ChallengeCategory.CONSTRAINT):
        assert weights[category] > base[category]
    assert weights[ChallengeCategory.REVENUE] < base[ChallengeCategory.REVENUE]
    assert weights[ChallengeCategory.CONSTRAINT] == pytest.approx(0.40)
    assert weights[ChallengeCategory.REVENUE] == pytest.approx(0.10)
    assert weights[ChallengeCategory.LEARNING] == pytest.approx(0.20)

    for _ in range(20):
        assert selector.select(context).difficulty is Difficulty.EASY


def test_advanced_tier_boosts_team_weight() -> None:
    weights = make_selector().category_weights(make_context(business_tier=BusinessTier.LEVEL4))
    assert weights[ChallengeCategory.TEAM] == pytest.approx(0.15)
    assert weights[ChallengeCategory.REVENUE] == pytest.approx(0.30)


def test_negative_weights_floor_at_zero() -> None:
    class RevenueAverse(ChallengeSelector):
        EARLY_TIER_ADJUSTMENTS = {ChallengeCategory.REVENUE: -1.0}

    selector = RevenueAverse(ChallengeSettings(), rng=random.Random(1), telemetry_client=StubTelemetry())
    context = make_context(business_tier=BusinessTier.LEVEL1)

    assert selector.category_weights(context)[ChallengeCategory.REVENUE] == 0.0
    drawn = {selector.select_category(context) for _ in range(300)}
    assert ChallengeCategory.REVENUE not in drawn


def test_preferred_types_restrict_the_category() -> None:
    selector = make_selector()
    context = make_context(preferred_types=(ChallengeCategory.HABIT,), current_streak=30)

    for _ in range(20):
        challenge = selector.select(context)
        assert challenge.category is ChallengeCategory.HABIT


def test_long_streak_draws_uniformly_over_all_categories() -> None:
    selector = make_selector(seed=3)
    context = make_context(current_streak=8)

    drawn = {selector.select_category(context) for _ in range(600)}
    assert drawn == set(ChallengeCategory)


def test_preferred_difficulty_wins() -> None:
    selector = make_selector()
    context = make_context(current_streak=0, preferred_difficulty=Difficulty.HARD)
    assert selector.select_difficulty(context) is Difficulty.HARD


@pytest.mark.parametrize(
    "streak, tier, expected",
    [
        (0, BusinessTier.LEVEL4, {Difficulty.EASY}),
        (2, BusinessTier.LEVEL2, {Difficulty.EASY}),
        (4, BusinessTier.LEVEL2, {Difficulty.EASY, Difficulty.MEDIUM}),
        (9, BusinessTier.LEVEL1, {Difficulty.MEDIUM, Difficulty.HARD}),
        (20, BusinessTier.LEVEL2, {Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD}),
        (5, BusinessTier.LEVEL3, {Difficulty.MEDIUM, Difficulty.HARD}),
        (40, BusinessTier.LEVEL4, {Difficulty.MEDIUM, Difficulty.HARD}),
    ],
)
def test_difficulty_ramps_with_streak(streak, tier, expected) -> None:
    selector = make_selector(seed=11)
    context = make_context(current_streak=streak, business_tier=tier)

    drawn = {selector.select_difficulty(context) for _ in range(300)}
    assert drawn == expected


def test_same_seed_and_clock_reproduce_the_same_challenge() -> None:
    context = make_context(current_streak=5, primary_constraint=ConstraintType.PROFIT)

    first = make_selector(seed=99).select(context)
    second = make_selector(seed=99).select(context)

    assert first.to_dict() == second.to_dict()


@pytest.mark.parametrize("zone", [None, "Asia/Tokyo", "America", "Etc"])
@pytest.mark.parametrize("streak", [0, 365])
def test_selection_is_total_without_preferences(streak, zone) -> None:
    broken = {category.value: {"broken": {"title": "Broken", "difficulties": [1]}} for category in ChallengeCategory}
    for seed in range(40):
        templates = broken if seed % 2 else CHALLENGE_TEMPLATES
        selector = make_selector(seed=seed, templates=templates)
        challenge = selector.select(make_context(current_streak=streak, timezone=zone))
        assert challenge.title
        assert challenge.xp_reward > 0
        assert challenge.deadline.hour == 23
        assert challenge.deadline > FIXED_NOW
        assert challenge.completed is False
        assert challenge.category in ChallengeCategory


def test_challenge_id_and_deadline_follow_the_clock() -> None:
    challenge = make_selector().select(make_context(preferred_types=(ChallengeCategory.LEARNING,)))

    assert challenge.id == f"learning-framework-deep-dive-{int(FIXED_NOW.timestamp() * 1000)}"
    assert challenge.deadline == datetime(2024, 5, 1, 23, 59, 59, 999000, tzinfo=timezone.utc)
    assert challenge.time_required == "20 minutes"
    assert "/business-templates" in challenge.related_resources


def test_deadline_uses_the_user_time_zone() -> None:
    selector = make_selector()

    tokyo = selector.deadline(make_context(timezone="Asia/Tokyo"))
    assert (tokyo.year, tokyo.month, tokyo.day) == (2024, 5, 2)
    assert tokyo.utcoffset() == timedelta(hours=9)
    assert (tokyo.hour, tokyo.minute, tokyo.second, tokyo.microsecond) == (23, 59, 59, 999000)

    new_york = selector.deadline(make_context(timezone="America/New_York"))
    assert new_york.day == 1
    assert new_york.utcoffset() == timedelta(hours=-4)


@pytest.mark.parametrize("zone", ["Mars/Olympus_Mons", "America", "Europe", "Etc", "../etc", ""])
def test_unknown_time_zone_falls_back_to_the_clock_zone(zone) -> None:
    deadline = make_selector().deadline(make_context(timezone=zone))
    assert deadline == datetime(2024, 5, 1, 23, 59, 59, 999000, tzinfo=timezone.utc)


def test_team_category_falls_back_to_default_challenge() -> None:
    telemetry = StubTelemetry()
    selector = make_selector(telemetry_client=telemetry)

    challenge = selector.select(make_context(preferred_types=(ChallengeCategory.TEAM,)))

    assert challenge.category is ChallengeCategory.REVENUE
    assert challenge.template_key == "beat_yesterday"
    assert challenge.xp_reward == 25
    names = [event.name for event in telemetry.events]
    assert names == ["challenge.fallback", "challenge.generated"]
    assert telemetry.events[0].attributes["category"] == "team"
    assert telemetry.metrics == [("challenge.fallback", 1, {"category": "team", "reason": "template_error"})]
    assert len(telemetry.exceptions) == 1
    error, attributes = telemetry.exceptions[0]
    assert isinstance(error, TemplateError)
    assert attributes == {"user_id": "user-1", "category": "team"}


@pytest.mark.parametrize(
    "difficulties",
    [
        {"easy": {"xp": 0}},
        {"hard": {"xp": 40}},
        {"easy": "not a mapping"},
        [{"xp": 10}],
        "easy",
        None,
        {"easy": {"xp": 10, "multiplier": "x"}},
        {"easy": {"xp": 10, "amount": "lots"}},
        {"easy": {"xp": 10, "count": [5]}},
        {"easy": {"xp": True}},
    ],
)
def test_broken_templates_fall_back_instead_of_raising(difficulties) -> None:
    telemetry = StubTelemetry()
    library = {
        "habit": {
            "broken": {
                "title": "Broken",
                "description": "Broken template",
                "success_criteria": "Never",
                "difficulties": difficulties,
            }
        }
    }
    selector = make_selector(templates=library, telemetry_client=telemetry)

    challenge = selector.select(make_context(preferred_types=(ChallengeCategory.HABIT,)))

    assert challenge.category is ChallengeCategory.REVENUE
    assert challenge.xp_reward > 0
    assert [name for name, _, _ in telemetry.metrics] == ["challenge.fallback"]


def test_malformed_template_entry_falls_back() -> None:
    selector = make_selector(templates={"habit": {"broken": {"title": "Missing fields"}}})
    challenge = selector.select(make_context(preferred_types=(ChallengeCategory.HABIT,)))
    assert challenge.template_key == "beat_yesterday"


def test_difficulty_values_are_interpolated() -> None:
    library = {"habit": {"follow_up_blitz": CHALLENGE_TEMPLATES["habit"]["follow_up_blitz"]}}
    selector = make_selector(templates=library)

    challenge = selector.select(make_context(preferred_types=(ChallengeCategory.HABIT,)))

    assert challenge.success_criteria == "Follow up with 5 prospects"
    assert challenge.xp_reward == 25


def test_beat_yesterday_target_is_derived_from_monthly_revenue() -> None:
    library = {"revenue": {"beat_yesterday": CHALLENGE_TEMPLATES["revenue"]["beat_yesterday"]}}
    selector = make_selector(templates=library)

    with_revenue = selector.select(
        make_context(preferred_types=(ChallengeCategory.REVENUE,), monthly_revenue=3_000)
    )
    without_revenue = selector.select(make_context(preferred_types=(ChallengeCategory.REVENUE,)))

    assert with_revenue.success_criteria == "Revenue today > $105"
    assert without_revenue.success_criteria == "Revenue today > yesterday's revenue"


def test_history_decay_favours_fresh_variants() -> None:
    selector = make_selector(seed=5)
    repeated = tuple(f"habit-morning-planning-{index}" for index in range(10))
    context = make_context(completed_challenges=repeated)

    picks = Counter(selector.select_template_key(ChallengeCategory.HABIT, context) for _ in range(300))

    assert picks["morning_planning"] < 5
    assert picks["follow_up_blitz"] > 100
    assert picks["metrics_review"] > 100


def test_beat_yesterday_challenge_uses_the_explicit_figure() -> None:
    challenge = make_selector().beat_yesterday_challenge(make_context(current_streak=0), 200)

    assert challenge.id == f"revenue-beat-yesterday-{int(FIXED_NOW.timestamp() * 1000)}"
    assert challenge.difficulty is Difficulty.EASY
    assert challenge.description == "Generate at least $210 today (5% more than yesterday's $200)"
    assert challenge.success_criteria == "Revenue today > $210"
    assert challenge.time_required == "Throughout the day"
    assert challenge.xp_reward == 25


def test_module_level_helpers_accept_seed_and_time() -> None:
    context = make_context(current_streak=10)

    first = select_challenge(context, random.Random(4), FIXED_NOW)
    second = select_challenge(context, random.Random(4), FIXED_NOW)
    assert first.to_dict() == second.to_dict()

    revenue = beat_yesterday_challenge(make_context(preferred_difficulty=Difficulty.HARD), 1_000, now=FIXED_NOW)
    assert revenue.success_criteria == "Revenue today > $1,250"
    assert revenue.xp_reward == 100


def test_completed_beat_yesterday_challenges_decay_that_template() -> None:
    selector = make_selector(seed=2)
    issued = selector.beat_yesterday_challenge(make_context(), 500)
    context = make_context(completed_challenges=(issued.id,) * 8)

    picks = Counter(selector.select_template_key(ChallengeCategory.REVENUE, context) for _ in range(300))

    assert picks["beat_yesterday"] < 5
    assert picks["transaction_volume"] > 100
    assert picks["upsell_focus"] > 100


@pytest.mark.parametrize("zone", ["America", "Europe", "Etc"])
def test_beat_yesterday_deadline_survives_zone_folders(zone) -> None:
    challenge = make_selector().beat_yesterday_challenge(make_context(timezone=zone), 200)
    assert challenge.deadline == datetime(2024, 5, 1, 23, 59, 59, 999000, tzinfo=timezone.utc)
