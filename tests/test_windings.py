"""
Tests for terminals, windings and the coil arrangement.

Validates:
1. Leg volts and amps for each connection
2. Winding types, static rings and space factors by BIL
3. Arrangement order, tap windings and propagation of axial gaps
4. Arranged windings are immutable and do not share gap records
"""

import dataclasses
import math

import pytest

from design_data import BILLevel
from windings import (
    AxialGap,
    Connection,
    ImpedancePair,
    Terminal,
    TerminalBIL,
    Winding,
    WindingBIL,
    WindingType,
    coil_arrangement_for_terminals,
    needs_static_ring,
    winding_types_for_bil,
)


def bil(level):
    return TerminalBIL(line=level, neutral=level)


class TestTerminal:

    def test_star(self, lv_terminal):
        assert lv_terminal.leg_volts == pytest.approx(13800.0 / math.sqrt(3.0))
        assert lv_terminal.leg_amps[1] == pytest.approx(10.0e6 / 3.0 / lv_terminal.leg_volts)
        assert lv_terminal.line_amps[1] == pytest.approx(lv_terminal.leg_amps[1])

    def test_delta(self, hv_terminal):
        assert hv_terminal.leg_volts == pytest.approx(69000.0)
        assert hv_terminal.line_amps[1] == pytest.approx(hv_terminal.leg_amps[1] * math.sqrt(3.0))

    def test_single_phase_series(self):
        terminal = Terminal("HV", (1.0e6, 1.0e6), 20000.0, 1, Connection.ONE_PHASE_TWO_LEG_SERIES,
                            bil(BILLevel.KV125))
        assert terminal.leg_volts == pytest.approx(10000.0)
        assert terminal.leg_amps[0] == pytest.approx(50.0)

    def test_single_phase_parallel(self):
        terminal = Terminal("LV", (1.0e6, 1.0e6), 1000.0, 1, Connection.ONE_PHASE_TWO_LEG_PARALLEL,
                            bil(BILLevel.KV30))
        assert terminal.leg_volts == pytest.approx(1000.0)
        assert terminal.leg_amps[0] == pytest.approx(500.0)

    def test_invalid_phases(self):
        with pytest.raises(ValueError):
            Terminal("X", (1.0, 1.0), 100.0, 2, Connection.STAR, bil(BILLevel.KV10))


class TestWindingRules:

    def test_types_for_bil(self):
        assert winding_types_for_bil(BILLevel.KV30) == [WindingType.SHEET, WindingType.LAYER, WindingType.HELIX]
        assert winding_types_for_bil(BILLevel.KV110)[0] == WindingType.LAYER
        assert winding_types_for_bil(BILLevel.KV200) == [WindingType.HELIX, WindingType.DISC]
        assert winding_types_for_bil(BILLevel.KV550) == [WindingType.DISC]

    def test_static_ring(self):
        assert not needs_static_ring(BILLevel.KV150)
        assert needs_static_ring(BILLevel.KV170)

    def test_bil_max(self):
        wbil = WindingBIL(BILLevel.KV95, BILLevel.KV10, BILLevel.KV350)
        assert wbil.max == BILLevel.KV350

    def test_impedance_pair_contains(self):
        pair = ImpedancePair("LV", "HV", 0.08, 1.0e6)
        assert pair.contains("HV")
        assert not pair.contains("HVRV")


class TestSpaceFactors:

    def make(self, winding_type):
        return Winding("W", 0, 1000.0, 100.0, winding_type, 50000.0,
                       WindingBIL(BILLevel.KV350, BILLevel.KV350, BILLevel.KV350))

    def test_axial(self, clearances):
        disc = self.make(WindingType.DISC).axial_space_factor(BILLevel.KV350, clearances)
        layer = self.make(WindingType.LAYER).axial_space_factor(BILLevel.KV350, clearances)
        sheet = self.make(WindingType.SHEET).axial_space_factor(BILLevel.KV350, clearances)
        assert 0.0 < disc < layer < sheet == 1.0

    def test_radial_conductor_choice(self, clearances):
        winding = self.make(WindingType.DISC)
        single = winding.radial_space_factor(BILLevel.KV350, 50.0, clearances)
        twin = winding.radial_space_factor(BILLevel.KV350, 100.0, clearances)
        ctc = winding.radial_space_factor(BILLevel.KV350, 1000.0, clearances)
        assert single < twin < ctc < 1.0
        assert winding.radial_space_factor(BILLevel.KV110, 1000.0, clearances) > single


class TestArrangement:

    def test_two_windings(self, terminals, clearances):
        windings = coil_arrangement_for_terminals(terminals, 50000.0, 10.0e6, clearances)
        assert [w.term_name for w in windings] == ["LV", "HV"]
        assert [w.position for w in windings] == [0, 1]
        assert windings[1].winding_type == WindingType.DISC
        assert windings[1].static_rings == 2
        assert all(len(w.axial_gaps) == 3 for w in windings)
        assert all(w.total_axial_gaps == 0.0 for w in windings)

    def test_tertiary_goes_inside(self, terminals, clearances):
        tertiary = Terminal("TV", (3.0e6, 3.0e6), 4160.0, 3, Connection.DELTA, bil(BILLevel.KV60))
        windings = coil_arrangement_for_terminals(terminals + [tertiary], 50000.0, 10.0e6, clearances)
        assert [w.term_name for w in windings] == ["TV", "LV", "HV"]
        assert windings[0].ni_per_l == pytest.approx(50000.0 * 0.3)

    def test_offload_taps_gap_propagates(self, lv_terminal, hv_terminal, clearances):
        hv_terminal.offload_taps = [-0.05, -0.025, 0.0, 0.025, 0.05]
        windings = coil_arrangement_for_terminals([lv_terminal, hv_terminal], 50000.0, 10.0e6, clearances)
        lv, hv = windings
        assert hv.axial_gaps[1].this_coil == pytest.approx(0.025)
        assert lv.axial_gaps[1].this_coil == pytest.approx(0.075)
        assert hv.axial_gaps[0].this_coil == 0.0

    def test_high_bil_tap_gap(self, lv_terminal, clearances):
        hv = Terminal("HV", (10.0e6, 10.0e6), 138000.0, 3, Connection.STAR, bil(BILLevel.KV550),
                      offload_taps=[0.95, 1.0, 1.05])
        windings = coil_arrangement_for_terminals([lv_terminal, hv], 50000.0, 10.0e6, clearances)
        assert windings[1].axial_gaps[1].this_coil == pytest.approx(0.0375)

    def test_dual_voltage_gaps(self, lv_terminal, clearances):
        hv = Terminal("HV", (10.0e6, 10.0e6), 69000.0, 3, Connection.DELTA,
                      TerminalBIL(BILLevel.KV350, BILLevel.KV350, dv=BILLevel.KV200),
                      offload_taps=[0.95, 1.05], has_dual_voltage=True)
        windings = coil_arrangement_for_terminals([lv_terminal, hv], 50000.0, 10.0e6, clearances)
        hv_winding = windings[1]
        assert hv_winding.axial_gaps[1].this_coil == pytest.approx(clearances.edge_distance(BILLevel.KV200))
        assert hv_winding.axial_gaps[0].this_coil == pytest.approx(0.025)
        assert hv_winding.axial_gaps[2].this_coil == pytest.approx(0.025)
        assert hv_winding.static_rings == 4

    def test_onload_taps(self, lv_terminal, hv_terminal, clearances):
        hv_terminal.onload_taps = [-0.1, 0.0, 0.1]
        windings = coil_arrangement_for_terminals([lv_terminal, hv_terminal], 50000.0, 10.0e6, clearances)
        assert [w.term_name for w in windings] == ["LV", "HV", "HVRV"]
        rv = windings[2]
        assert rv.is_taps
        assert rv.winding_type == WindingType.DISC
        assert rv.volts == pytest.approx(0.1 * 69000.0 * 2.0)
        assert rv.ni_per_l == pytest.approx(50000.0 * 0.1 / 0.8)
        # delta regulating winding needs a centre gap, which opens the main coils too
        assert rv.axial_gaps[1].this_coil == pytest.approx(0.2)
        assert windings[0].axial_gaps[1].this_coil == pytest.approx(0.05)
        assert windings[1].axial_gaps[1].this_coil == pytest.approx(0.05)

    def test_inner_onload_taps(self, lv_terminal, hv_terminal, clearances):
        lv_terminal.onload_taps = [-0.1, 0.1]
        windings = coil_arrangement_for_terminals([lv_terminal, hv_terminal], 50000.0, 10.0e6, clearances)
        assert [w.term_name for w in windings] == ["LVRV", "LV", "HV"]
        assert windings[0].winding_type == WindingType.MULTISTART

    def test_needs_two_terminals(self, lv_terminal, clearances):
        with pytest.raises(ValueError):
            coil_arrangement_for_terminals([lv_terminal], 50000.0, 10.0e6, clearances)

    def test_axial_gap_defaults(self):
        assert AxialGap() == AxialGap(0.0, 0.0)

    def test_arranged_windings_are_frozen(self, lv_terminal, hv_terminal, clearances):
        windings = coil_arrangement_for_terminals([lv_terminal, hv_terminal], 50000.0, 10.0e6, clearances)
        with pytest.raises(dataclasses.FrozenInstanceError):
            windings[0].ni_per_l = 1.0
        with pytest.raises(dataclasses.FrozenInstanceError):
            windings[0].axial_gaps[1].this_coil = 1.0
        assert isinstance(windings[0].axial_gaps, tuple)

    def test_gaps_not_shared_between_windings(self, lv_terminal, hv_terminal, clearances):
        hv_terminal.offload_taps = [-0.05, 0.0, 0.05]
        windings = coil_arrangement_for_terminals([lv_terminal, hv_terminal], 50000.0, 10.0e6, clearances)
        lv, hv = windings
        assert lv.axial_gaps is not hv.axial_gaps
        assert lv.axial_gaps[1] != hv.axial_gaps[1]

    def test_arrangement_repeatable(self, lv_terminal, hv_terminal, clearances):
        first = coil_arrangement_for_terminals([lv_terminal, hv_terminal], 50000.0, 10.0e6, clearances)
        second = coil_arrangement_for_terminals([lv_terminal, hv_terminal], 50000.0, 10.0e6, clearances)
        assert first == second
