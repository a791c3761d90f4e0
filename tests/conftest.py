"""Shared fixtures for the transformer design tests."""

import matplotlib
matplotlib.use("Agg")

import pytest

from design_data import BILLevel, load_design_data
from windings import Connection, ImpedancePair, LossEvaluation, Terminal, TerminalBIL


@pytest.fixture(scope="session")
def design_data():
    return load_design_data()


@pytest.fixture(scope="session")
def clearances(design_data):
    return design_data.clearances


@pytest.fixture
def lv_terminal():
    """13.8 kV star LV, 10 MVA three-phase."""
    return Terminal(name="LV", va=(10.0e6, 10.0e6), line_volts=13800.0, num_phases=3,
                    connection=Connection.STAR,
                    bil=TerminalBIL(line=BILLevel.KV110, neutral=BILLevel.KV110))


@pytest.fixture
def hv_terminal():
    """69 kV delta HV, 10 MVA three-phase."""
    return Terminal(name="HV", va=(10.0e6, 10.0e6), line_volts=69000.0, num_phases=3,
                    connection=Connection.DELTA,
                    bil=TerminalBIL(line=BILLevel.KV350, neutral=BILLevel.KV350))


@pytest.fixture
def terminals(lv_terminal, hv_terminal):
    return [lv_terminal, hv_terminal]


@pytest.fixture
def impedance_targets():
    return [ImpedancePair("LV", "HV", 0.075, 10.0e6 / 3.0)]


@pytest.fixture
def loss_evaluation():
    return LossEvaluation(no_load=5000.0, onan_load=1500.0, onaf_load=1500.0, ll_temp=85.0)
