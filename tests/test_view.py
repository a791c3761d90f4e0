"""Smoke tests for the result figures (Agg backend)."""

from dataclasses import replace

import matplotlib.pyplot as plt
import pytest

from core_geometry import Core, CoreCircle, CoreStep
from design_data import BILLevel
from design_search import ActivePartCandidate
from disk_section import DiskSection, Rect
from view import plot_active_part, plot_cost_ranking, plot_series_convergence
from windings import AxialGap, WindingType

from test_design_search import make_coil


@pytest.fixture
def candidate(design_data):
    lv = make_coil(design_data, "LV", 7967.0, 418.4, 0.492, 0.044, WindingType.LAYER, BILLevel.KV110)
    hv = make_coil(design_data, "HV", 69000.0, 48.31, 0.660, 0.056, WindingType.DISC, BILLevel.KV350)
    hv = replace(hv, winding=replace(hv.winding, axial_gaps=(AxialGap(), AxialGap(0.05, 0.05), AxialGap())))
    circle = CoreCircle(diameter=0.46, steps=(CoreStep(0.43, 0.2), CoreStep(0.3, 0.12)),
                        steel=design_data.core_steels[0])
    core = Core(circle=circle, window_height=1.15, leg_centers=0.9)
    return ActivePartCandidate([lv, hv], core, design_data.costs)


def test_active_part(candidate, tmp_path):
    path = tmp_path / "active_part.png"
    fig = plot_active_part(candidate, save_path=str(path))
    assert path.exists()
    # core leg plus one LV section and two HV sections
    assert len(fig.axes[0].patches) == 4
    plt.close(fig)


def test_series_convergence(tmp_path):
    section = DiskSection(0, Rect(0.3, 0.2, 0.04, 0.6), 100.0, 2.0e6, 1.0, 0.25)
    path = tmp_path / "series.png"
    fig = plot_series_convergence(section, num_terms=20, save_path=str(path))
    assert path.exists()
    assert len(fig.axes) == 2
    plt.close(fig)


def test_cost_ranking(candidate, loss_evaluation, tmp_path):
    path = tmp_path / "ranking.png"
    fig = plot_cost_ranking([candidate, candidate], loss_evaluation, save_path=str(path))
    assert path.exists()
    assert len(fig.axes[0].patches) == 6
    plt.close(fig)
