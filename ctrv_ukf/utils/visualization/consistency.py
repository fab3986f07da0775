"""
Visualization of filter consistency statistics.
"""
import numpy as np
import matplotlib.pyplot as plt

from ..metrics import nis_bound, nis_consistency


def plot_nis(ax, t, nis, dim, prob=0.95, title=None, color='tab:blue'):
    """
    Plot NIS over time against its chi-squared bound.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
    t : ndarray [T]
        Time of each NIS value
    nis : ndarray [T]
        NIS values; NaN entries are skipped
    dim : int
        Measurement dimension (chi-squared degrees of freedom)
    prob : float
        Bound probability
    title : str, optional
    color : str
    """
    t = np.asarray(t)
    nis = np.asarray(nis, dtype=float)
    valid = np.isfinite(nis)
    bound = nis_bound(dim, prob)
    frac = nis_consistency(nis, dim, prob)

    ax.plot(t[valid], nis[valid], color=color, lw=1, alpha=0.8)
    ax.axhline(bound, color='r', ls='--', lw=2,
               label=f'chi2({dim}) {100 * prob:.0f}% = {bound:.2f}')
    ax.set_xlabel('Time [s]')
    ax.set_ylabel('NIS')
    ax.set_title(title or f'NIS ({100 * frac:.1f}% below bound)')
    if valid.any():
        ax.set_ylim([0, max(2 * bound, np.percentile(nis[valid], 99))])
    ax.legend()
    ax.grid(True, alpha=0.3)


def plot_nis_by_sensor(t, nis_dict, dims, prob=0.95, save_path=None):
    """
    Plot one NIS panel per sensor.

    Parameters
    ----------
    t : ndarray [T]
    nis_dict : dict
        Sensor name -> NIS array [T] (NaN where the sensor did not update)
    dims : dict
        Sensor name -> measurement dimension
    prob : float
    save_path : str, optional
        Path to save figure
    """
    n = len(nis_dict)
    fig, axes = plt.subplots(n, 1, figsize=(12, 4 * n), squeeze=False)

    for ax, (name, nis) in zip(axes[:, 0], nis_dict.items()):
        frac = nis_consistency(nis, dims[name], prob)
        plot_nis(ax, t, nis, dims[name], prob,
                 title=f'{name} NIS ({100 * frac:.1f}% below bound)')

    plt.suptitle('NIS (should stay below the bound ~95% of the time)',
                 fontsize=14, fontweight='bold')
    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
