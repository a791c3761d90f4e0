"""
Active-Part Visualization

Figures for reviewing search results:

- cross-section of one core window with the core leg, every coil and its axial gaps
- partial sums of the Rabin's method self-inductance series of a disk section
- bar chart of the evaluated cost breakdown of the ranked designs
"""

import logging

import matplotlib.patches as patches
import matplotlib.pyplot as plt
import numpy as np

from disk_section import DEFAULT_NUM_TERMS, DEFAULT_WIND_HT_FACTOR

logger = logging.getLogger(__name__)

COIL_COLORS = ['tab:orange', 'tab:blue', 'tab:green', 'tab:red', 'tab:purple', 'tab:brown']


def _finish(fig, save_path, show, what):
    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')
        logger.info("%s saved to: %s", what, save_path)
    if show:
        plt.show()
    return fig


def plot_active_part(candidate, save_path=None, show=False):
    """
    Draw the right-hand half of one core window with the coils of a candidate.

    Args:
        candidate: ActivePartCandidate
        save_path: Path to save the figure (optional)
        show: Call plt.show() after drawing

    Returns:
        The matplotlib Figure
    """
    core = candidate.core
    window = core.window_height * 1000
    core_radius = core.radius * 1000

    fig, ax = plt.subplots(figsize=(8, 10))
    fig.suptitle(f'Active Part: {candidate.vpn:.2f} V/N, {candidate.bmax:.3f} T, '
                 f'{core.circle.steel.name}', fontsize=14, fontweight='bold')

    # Core leg and yokes
    ax.add_patch(patches.Rectangle((0, 0), core_radius, window, linewidth=1,
                                   edgecolor='gray', facecolor='lightgray', label='Core leg'))
    ax.axhline(0, color='gray', linewidth=3)
    ax.axhline(window, color='gray', linewidth=3)

    for i, coil in enumerate(candidate.coils):
        color = COIL_COLORS[i % len(COIL_COLORS)]
        for j, section in enumerate(coil.to_disk_sections(i, core.window_height, core.radius)):
            rect = section.rect
            ax.add_patch(patches.Rectangle(
                (rect.x * 1000, rect.y * 1000), rect.width * 1000, rect.height * 1000,
                linewidth=1.5, edgecolor=color, facecolor=color, alpha=0.4,
                label=coil.winding.term_name if j == 0 else None))

    # Leg centre of the neighbouring phase
    ax.axvline(core.leg_centers * 1000 / 2, color='black', linestyle=':', alpha=0.7,
               label='Mid-point between legs')

    ax.set_xlim(0, core.leg_centers * 1000 / 2 * 1.05)
    ax.set_ylim(-0.05 * window, 1.05 * window)
    ax.set_xlabel('Radial Position (mm)')
    ax.set_ylabel('Axial Position (mm)')
    ax.set_aspect('equal')
    ax.legend(loc='upper right', fontsize=9)
    ax.grid(True, alpha=0.3)

    return _finish(fig, save_path, show, "Active part plot")


def plot_series_convergence(section, wind_ht_factor=DEFAULT_WIND_HT_FACTOR, num_terms=DEFAULT_NUM_TERMS,
                            save_path=None, show=False):
    """
    Plot the running sum and the magnitude of each term of the self-inductance series.

    Args:
        section: DiskSection
        wind_ht_factor: Window height multiplier
        num_terms: Number of harmonics
        save_path: Path to save the figure (optional)
        show: Call plt.show() after drawing

    Returns:
        The matplotlib Figure
    """
    constant, terms = section.self_inductance_terms(wind_ht_factor, num_terms)
    n = np.arange(1, len(terms) + 1)
    running = constant + np.cumsum(terms)

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 8))
    fig.suptitle(f'Self Inductance Series (factor {wind_ht_factor:g})', fontsize=14, fontweight='bold')

    ax1.plot(n, running * 1000, 'b-', linewidth=2)
    ax1.axhline(constant * 1000, color='gray', linestyle='--', label='Constant term')
    ax1.set_xlabel('Harmonic n')
    ax1.set_ylabel('Partial sum (mH)')
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    ax2.semilogy(n, np.abs(terms) + 1e-30, 'r.', markersize=4)
    ax2.set_xlabel('Harmonic n')
    ax2.set_ylabel('|term| (H)')
    ax2.grid(True, alpha=0.3)

    return _finish(fig, save_path, show, "Series convergence plot")


def plot_cost_ranking(candidates, evaluation, save_path=None, show=False):
    """
    Stacked bars of material cost and capitalized losses for ranked designs.

    Args:
        candidates: ActivePartCandidates, cheapest first
        evaluation: LossEvaluation used by the search
        save_path: Path to save the figure (optional)
        show: Call plt.show() after drawing

    Returns:
        The matplotlib Figure
    """
    materials = np.array([c.material_costs() for c in candidates])
    totals = np.array([c.evaluated_cost(c.bmax, evaluation) for c in candidates])
    no_load = np.array([c.core.loss_at_bmax(c.bmax) / 1000.0 * evaluation.no_load for c in candidates])
    load = totals - materials - no_load

    x = np.arange(1, len(candidates) + 1)
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.bar(x, materials, label='Materials')
    ax.bar(x, load, bottom=materials, label='Load loss')
    ax.bar(x, no_load, bottom=materials + load, label='No-load loss')
    ax.set_xlabel('Rank')
    ax.set_ylabel('Evaluated cost')
    ax.set_title('Evaluated Cost of Ranked Designs')
    ax.set_xticks(x)
    ax.legend()
    ax.grid(True, axis='y', alpha=0.3)

    return _finish(fig, save_path, show, "Cost ranking plot")
