"""
Tests for the decompression scheduler and the plan_dive entry points.

Scenarios cover no-stop dives, mandatory stops, last stop options, GF
conservatism ordering, multi-gas ascents and safety failures.
"""

import pytest

from decoplanner.buhlmann_constants import GradientFactors
from decoplanner.exceptions import (
    DecompressionRunawayError,
    InvalidInputError,
    UnsafePlanError,
)
from decoplanner.gas import AIR, OXYGEN, GasSwitch, MultiGasPlan, nitrox, trimix
from decoplanner.multi_gas import standard_deco_gases
from decoplanner.planner import (
    DecoPlanner,
    Phase,
    PlannerConfig,
    plan_dive,
    plan_dive_multi_gas,
)

# Oxygen at 6m is 1.613 bar; this admits it under a 1.6 bar limit
OXYGEN_AT_6M_TOLERANCE = 0.02


def assert_well_formed(plan):
    """Stops are 3m multiples, strictly shallower, each with positive time."""
    depths = [stop.depth for stop in plan.stops]
    assert depths == sorted(depths, reverse=True)
    assert len(set(depths)) == len(depths)
    for stop in plan.stops:
        assert stop.depth % 3 == 0
        assert stop.time > 0
        assert stop.depth > 0
    assert plan.total_dive_time == pytest.approx(plan.descent_time + plan.bottom_time + plan.tts)


class TestPlannerConfig:
    """Config validation."""

    def test_defaults(self):
        """Documented defaults."""
        cfg = PlannerConfig()
        assert cfg.last_stop_depth == 3
        assert cfg.min_last_stop_minutes == 0
        assert cfg.time_step_minutes == 0.5
        assert cfg.calculate_o2_toxicity is None
        assert cfg.po2_tolerance == 0.0
        assert cfg.ascent_rate == 9.0
        assert cfg.descent_rate == 19.0

    def test_last_stop_must_be_3_or_6(self):
        """Other last stop depths are rejected."""
        with pytest.raises(InvalidInputError, match="last_stop_depth must be 3 or 6"):
            PlannerConfig(last_stop_depth=4)

    def test_negative_min_last_stop(self):
        """Minimum last stop time cannot be negative."""
        with pytest.raises(InvalidInputError, match="min_last_stop_minutes"):
            PlannerConfig(min_last_stop_minutes=-1)

    def test_time_step_must_be_positive(self):
        """Zero or negative time steps are rejected."""
        with pytest.raises(InvalidInputError, match="time_step_minutes must be > 0"):
            PlannerConfig(time_step_minutes=0.0)
        with pytest.raises(InvalidInputError, match="time_step_minutes must be > 0"):
            PlannerConfig(time_step_minutes=-0.5)

    def test_time_step_above_one_minute(self):
        """Coarse steps above 1 minute are valid input."""
        assert PlannerConfig(time_step_minutes=2.0).time_step_minutes == 2.0
        plan = plan_dive(40, 10, AIR, 85, 85, time_step_minutes=2.0)
        assert_well_formed(plan)
        for stop in plan.stops:
            assert stop.time % 2.0 == pytest.approx(0.0)

    def test_negative_po2_tolerance(self):
        """The PO2 tolerance cannot be negative."""
        with pytest.raises(InvalidInputError, match="po2_tolerance must be >= 0"):
            PlannerConfig(po2_tolerance=-0.01)


class TestNoDecompression:
    """Shallow dives that need no stops."""

    def test_shallow_air_dive_has_no_stops(self):
        """18m for 30 min on air at GF 85/85 ascends directly."""
        plan = plan_dive(18, 30, AIR, 85, 85)
        assert plan.stops == ()
        assert not plan.requires_deco
        assert plan.first_stop_depth == 0.0
        assert plan.tts <= 3.0
        assert plan.tts == pytest.approx(18.0 / 9.0)

    def test_descent_time(self):
        """Descent is depth / descent rate and excluded from TTS."""
        plan = plan_dive(18, 30, AIR, 85, 85)
        assert plan.descent_time == pytest.approx(18.0 / 19.0)
        assert plan.total_dive_time == pytest.approx(18.0 / 19.0 + 30.0 + plan.tts)

    def test_forced_last_stop(self):
        """A minimum last stop time creates a 3m stop even without a ceiling."""
        plan = plan_dive(18, 30, AIR, 85, 85, min_last_stop_minutes=3)
        assert len(plan.stops) == 1
        assert plan.stops[0].depth == 3.0
        assert plan.stops[0].time >= 3.0
        assert plan.tts == pytest.approx(18.0 / 9.0 + 3.0)

    def test_zero_depth(self):
        """A surface 'dive' has nothing to plan."""
        plan = plan_dive(0, 10, AIR, 30, 70)
        assert plan.stops == ()
        assert plan.tts == 0.0
        assert plan.descent_time == 0.0

    def test_zero_bottom_time(self):
        """Zero bottom time is allowed."""
        plan = plan_dive(10, 0, AIR, 30, 70)
        assert plan.bottom_time == 0.0
        assert_well_formed(plan)


class TestMandatoryStops:
    """Dives with a ceiling."""

    def test_moderate_dive_needs_shallow_stop(self):
        """40m for 10 min on air at GF 85/85 needs a stop at 3m."""
        plan = plan_dive(40, 10, AIR, 85, 85)
        assert plan.requires_deco
        assert plan.stops[-1].depth == 3.0
        assert_well_formed(plan)

    def test_min_last_stop_time_respected(self):
        """The last stop lasts at least the configured minimum."""
        plan = plan_dive(40, 10, AIR, 85, 85, min_last_stop_minutes=1)
        assert plan.stops[-1].depth == 3.0
        assert plan.stops[-1].time >= 1.0

    def test_last_stop_at_6m(self):
        """With last_stop_depth=6 no stop is shallower than 6m."""
        plan = plan_dive(40, 10, AIR, 85, 85, last_stop_depth=6)
        assert plan.requires_deco
        assert plan.stops[-1].depth == 6.0
        assert all(stop.depth >= 6.0 for stop in plan.stops)
        assert_well_formed(plan)

    def test_last_stop_at_6m_with_minimum(self):
        """A 6m last stop with a 1 min minimum lasts at least 1 min."""
        plan = plan_dive(40, 10, AIR, 85, 85, last_stop_depth=6, min_last_stop_minutes=1)
        assert plan.stops[-1].depth == 6.0
        assert plan.stops[-1].time >= 1.0

    def test_deep_dive_has_multiple_stops(self):
        """50m for 20 min at GF 30/70 needs at least two stops, the first below 3m."""
        plan = plan_dive(50, 20, AIR, 30, 70)
        assert len(plan.stops) >= 2
        assert plan.first_stop_depth > 3.0
        assert plan.first_stop_depth == plan.stops[0].depth
        assert_well_formed(plan)

    def test_stop_gf_increases_towards_surface(self):
        """GF recorded at each stop rises from gf_low towards gf_high."""
        plan = plan_dive(50, 20, AIR, 30, 70)
        gfs = [stop.gf for stop in plan.stops]
        assert gfs == sorted(gfs)
        assert all(0.3 - 1e-9 <= gf <= 0.7 + 1e-9 for gf in gfs)

    def test_gf_conservatism_ordering(self):
        """Lower gradient factors never shorten the ascent."""
        conservative = plan_dive(40, 20, AIR, 30, 70)
        moderate = plan_dive(40, 20, AIR, 40, 85)
        aggressive = plan_dive(40, 20, AIR, 85, 85)
        assert conservative.tts >= moderate.tts >= aggressive.tts

    def test_nitrox_not_slower_than_air(self):
        """EAN32 loads less nitrogen, so its ascent is no longer than air's."""
        air = plan_dive(30, 30, AIR, 30, 70)
        ean32 = plan_dive(30, 30, nitrox(0.32), 30, 70)
        assert ean32.tts <= air.tts

    def test_planner_is_reusable(self):
        """Repeated calls on one planner give identical results."""
        planner = DecoPlanner(GradientFactors(0.3, 0.7))
        first = planner.plan(45, 25, MultiGasPlan(AIR))
        second = planner.plan(45, 25, MultiGasPlan(AIR))
        assert first.stops == second.stops
        assert first.tts == second.tts


class TestSegments:
    """Simulated segment log."""

    def test_segments_sum_to_runtime(self):
        """Every simulated minute appears in exactly one segment."""
        plan = plan_dive(40, 20, AIR, 30, 70)
        assert sum(seg.minutes for seg in plan.segments) == pytest.approx(plan.total_dive_time)

    def test_phases_in_order(self):
        """Descent comes first and the dive ends with an ascent to the surface."""
        plan = plan_dive(40, 20, AIR, 30, 70)
        assert plan.segments[0].phase is Phase.DESCENT
        assert plan.segments[-1].phase is Phase.ASCENT
        assert plan.segments[-1].depth == 0.0
        assert any(seg.phase is Phase.BOTTOM for seg in plan.segments)

    def test_stop_segments_match_stops(self):
        """Each recorded stop has one STOP segment."""
        plan = plan_dive(50, 20, AIR, 30, 70)
        stop_segments = [seg for seg in plan.segments if seg.phase is Phase.STOP]
        assert [seg.depth for seg in stop_segments] == [stop.depth for stop in plan.stops]


class TestOxygenToxicity:
    """Optional O2 exposure on single-gas plans."""

    def test_off_by_default(self):
        """Single-gas plans skip O2 accounting unless asked."""
        assert plan_dive(30, 20, AIR, 30, 70).oxygen_toxicity is None

    def test_enabled(self):
        """Air at 40m runs the CNS clock."""
        plan = plan_dive(40, 20, AIR, 30, 70, calculate_o2_toxicity=True)
        assert plan.oxygen_toxicity is not None
        assert plan.oxygen_toxicity.cns > 0
        assert plan.oxygen_toxicity.otu > 0
        assert plan.oxygen_toxicity.max_po2 == pytest.approx(5.01325 * 0.21)


class TestMultiGas:
    """Gas switches during the ascent."""

    def test_trimix_with_standard_deco_gases(self):
        """Tx18/45 at 45m uses more than one gas at the stops."""
        plan = plan_dive_multi_gas(
            45, 20, MultiGasPlan(trimix(0.18, 0.45), standard_deco_gases()), 30, 70,
            po2_tolerance=OXYGEN_AT_6M_TOLERANCE,
        )
        assert_well_formed(plan)
        assert len({stop.gas_name for stop in plan.stops}) > 1
        assert plan.oxygen_toxicity is not None

    def test_oxygen_used_at_6m(self):
        """Stops at 6m and shallower breathe oxygen."""
        plan = plan_dive_multi_gas(
            45, 20, MultiGasPlan(trimix(0.18, 0.45), standard_deco_gases()), 30, 70,
            po2_tolerance=OXYGEN_AT_6M_TOLERANCE,
        )
        for stop in plan.stops:
            if stop.depth <= 6.0:
                assert stop.gas == OXYGEN

    def test_deco_gases_shorten_ascent(self):
        """Adding EAN50 and oxygen never lengthens the ascent."""
        single = plan_dive(45, 20, AIR, 30, 70)
        multi = plan_dive_multi_gas(
            45, 20, MultiGasPlan(AIR, standard_deco_gases()), 30, 70,
            po2_tolerance=OXYGEN_AT_6M_TOLERANCE,
        )
        assert multi.tts <= single.tts

    def test_unsafe_oxygen_switch_rejected(self):
        """Oxygen from 20m is rejected before simulation."""
        gas_plan = MultiGasPlan(AIR, [GasSwitch(depth=20.0, gas=OXYGEN)])
        with pytest.raises(UnsafePlanError, match="Invalid multi-gas plan"):
            plan_dive_multi_gas(40, 20, gas_plan, 30, 70)

    def test_gas_warnings_included(self):
        """Validation warnings appear first in the plan warnings."""
        gas_plan = MultiGasPlan(AIR, [
            GasSwitch(depth=9.0, gas=nitrox(0.80)),
            GasSwitch(depth=21.0, gas=nitrox(0.50)),
        ])
        plan = plan_dive_multi_gas(40, 20, gas_plan, 30, 70)
        assert plan.warnings[0] == "Deco gases should be sorted by descending switch depth"

    def test_oxygen_at_6m_needs_tolerance(self):
        """With a strict 1.6 bar limit the standard oxygen switch is rejected."""
        gas_plan = MultiGasPlan(trimix(0.18, 0.45), standard_deco_gases())
        with pytest.raises(UnsafePlanError, match=r"Oxygen \(100% O2\) used too deep"):
            plan_dive_multi_gas(45, 20, gas_plan, 30, 70)

    def test_tolerance_reported_in_warnings(self):
        """A gas admitted through the tolerance is named in the plan warnings."""
        plan = plan_dive_multi_gas(
            45, 20, MultiGasPlan(trimix(0.18, 0.45), standard_deco_gases()), 30, 70,
            po2_tolerance=OXYGEN_AT_6M_TOLERANCE,
        )
        assert any("accepted only by the 0.02 bar tolerance" in w for w in plan.warnings)

    def test_po2_warnings_not_repeated(self):
        """Each PO2 warning appears once although stops span many time steps."""
        plan = plan_dive_multi_gas(
            45, 20, MultiGasPlan(trimix(0.18, 0.45), standard_deco_gases()), 30, 70,
            po2_tolerance=OXYGEN_AT_6M_TOLERANCE,
        )
        assert len(plan.warnings) == len(set(plan.warnings))
        assert sum(w.startswith("Elevated PO2 1.61 bar at 6m") for w in plan.warnings) == 1

    def test_oxygen_toxicity_default_with_config(self):
        """A config that leaves calculate_o2_toxicity unset still gets O2 figures."""
        gas_plan = MultiGasPlan(AIR, [GasSwitch(depth=21.0, gas=nitrox(0.50))])
        plan = plan_dive_multi_gas(40, 20, gas_plan, 30, 70, config=PlannerConfig(last_stop_depth=6))
        assert plan.oxygen_toxicity is not None

    def test_oxygen_toxicity_explicitly_off(self):
        """An explicit False in the config is honoured."""
        gas_plan = MultiGasPlan(AIR, [GasSwitch(depth=21.0, gas=nitrox(0.50))])
        config = PlannerConfig(calculate_o2_toxicity=False)
        plan = plan_dive_multi_gas(40, 20, gas_plan, 30, 70, config=config)
        assert plan.oxygen_toxicity is None


class TestFailures:
    """Invalid input and runaway stops."""

    def test_negative_depth(self):
        """Depth below zero is invalid."""
        with pytest.raises(InvalidInputError, match="depth must be >= 0"):
            plan_dive(-5, 10, AIR, 30, 70)

    def test_negative_bottom_time(self):
        """Negative bottom time is invalid."""
        with pytest.raises(InvalidInputError, match="bottom_time must be >= 0"):
            plan_dive(30, -1, AIR, 30, 70)

    def test_invalid_gf(self):
        """GF 0 is out of range."""
        with pytest.raises(InvalidInputError):
            plan_dive(30, 20, AIR, 0, 70)

    def test_unknown_option(self):
        """Misspelled options are reported."""
        with pytest.raises(InvalidInputError, match="Unknown planner options: last_stop"):
            plan_dive(30, 20, AIR, 30, 70, last_stop=6)

    def test_runaway_stop(self):
        """A stop bound shorter than the required hold raises."""
        with pytest.raises(DecompressionRunawayError) as excinfo:
            plan_dive(50, 20, AIR, 30, 70, max_stop_minutes=1.0)
        assert excinfo.value.held_minutes >= 1.0
        assert excinfo.value.depth > 0


class TestToDict:
    """Plain-data export."""

    def test_keys(self):
        """Presentation keys are camelCase."""
        data = plan_dive(40, 10, AIR, 85, 85).to_dict()
        assert data["firstStopDepth"] == 3.0
        assert data["gfLow"] == pytest.approx(0.85)
        assert data["stops"][0]["depth"] == 3.0
        assert "oxygenToxicity" not in data
        assert "segments" not in data
