"""
Visualization utilities for tracking and trajectory plots.

Functions for plotting:
- Covariance ellipses
- True vs estimated 2D trajectories with sensor measurements
- Position error over time
"""
from typing import Dict, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Ellipse

from ...ssm.measurement import SensorType

DEFAULT_COLORS = ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd']


def plot_covariance_ellipse(
    ax: plt.Axes,
    mean: np.ndarray,
    cov: np.ndarray,
    n_std: float = 2.0,
    **kwargs
) -> Ellipse:
    """
    Plot the position covariance ellipse of an estimate.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axis to plot on
    mean : ndarray [>=2]
        Estimate; the first two entries are the center (px, py)
    cov : ndarray [>=2, >=2]
        Covariance; the top-left 2x2 block is used
    n_std : float
        Number of standard deviations for ellipse size
    **kwargs
        Additional arguments passed to matplotlib.patches.Ellipse

    Returns
    -------
    ellipse : matplotlib.patches.Ellipse
    """
    eigenvalues, eigenvectors = np.linalg.eigh(np.asarray(cov)[:2, :2])
    order = eigenvalues.argsort()[::-1]
    eigenvalues = np.maximum(eigenvalues[order], 0.0)
    eigenvectors = eigenvectors[:, order]

    angle = np.degrees(np.arctan2(eigenvectors[1, 0], eigenvectors[0, 0]))
    width, height = 2 * n_std * np.sqrt(eigenvalues)

    kwargs.setdefault('fill', False)
    ellipse = Ellipse(np.asarray(mean)[:2], width, height, angle=angle, **kwargs)
    ax.add_patch(ellipse)
    return ellipse


def measurements_to_xy(measurements) -> Dict[SensorType, np.ndarray]:
    """Cartesian positions [N, 2] of the measurements of each sensor."""
    points = {s: [] for s in SensorType}
    for meas in measurements:
        if meas.sensor_type is SensorType.POSITION:
            points[meas.sensor_type].append(meas.raw[:2])
        else:
            rho, phi = meas.raw[0], meas.raw[1]
            points[meas.sensor_type].append([rho * np.cos(phi), rho * np.sin(phi)])
    return {s: np.array(p).reshape(-1, 2) for s, p in points.items()}


def plot_trajectory_comparison(
    ax: plt.Axes,
    xs_true: np.ndarray,
    estimates: dict,
    measurements: Optional[Sequence] = None,
    P_filt: Optional[np.ndarray] = None,
    ellipse_every: int = 20,
    colors: Optional[dict] = None,
    show_rmse: bool = True,
) -> None:
    """
    Plot 2D trajectory comparison between true and estimated paths.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axis to plot on
    xs_true : ndarray [T, 5]
        True states
    estimates : dict
        Mapping of run names to estimated states [T, 5]
    measurements : sequence of Measurement, optional
        Raw measurements to scatter (range measurements converted to x/y)
    P_filt : ndarray [T, 5, 5], optional
        Covariances of the first estimate; draws 2-sigma ellipses
    ellipse_every : int
        Ellipse spacing in time steps
    colors : dict, optional
        Color mapping for runs
    show_rmse : bool
        Show position RMSE in legend labels
    """
    colors = colors or {}

    ax.plot(xs_true[:, 0], xs_true[:, 1], color='black', linewidth=2, label='True', alpha=0.8)
    ax.scatter(xs_true[0, 0], xs_true[0, 1], color='black', marker='o', s=80, zorder=10)
    ax.scatter(xs_true[-1, 0], xs_true[-1, 1], color='black', marker='x', s=80, zorder=10)

    if measurements is not None:
        points = measurements_to_xy(measurements)
        ax.scatter(*points[SensorType.POSITION].T, s=8, color='tab:green', alpha=0.4,
                   label='Position sensor')
        ax.scatter(*points[SensorType.RANGE].T, s=8, color='tab:red', alpha=0.4,
                   label='Range sensor')

    for idx, (name, est) in enumerate(estimates.items()):
        color = colors.get(name, DEFAULT_COLORS[idx % len(DEFAULT_COLORS)])
        label = name
        if show_rmse:
            rmse = np.sqrt(np.mean(np.sum((est[:, :2] - xs_true[:, :2])**2, axis=1)))
            label = f'{name} (pos RMSE={rmse:.2f})'
        ax.plot(est[:, 0], est[:, 1], color=color, linestyle='--', linewidth=1.5,
                label=label, alpha=0.8)

        if P_filt is not None and idx == 0:
            for t in range(0, len(est), ellipse_every):
                plot_covariance_ellipse(ax, est[t], P_filt[t], color=color, alpha=0.5)

    ax.set_xlabel('px')
    ax.set_ylabel('py')
    ax.legend(loc='best', fontsize=8)
    ax.grid(True, alpha=0.3)
    ax.set_aspect('equal', adjustable='datalim')


def plot_error_over_time(
    ax: plt.Axes,
    t: np.ndarray,
    xs_true: np.ndarray,
    estimates: dict,
    colors: Optional[dict] = None,
) -> None:
    """
    Plot position error over time for multiple runs.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
    t : ndarray [T]
    xs_true : ndarray [T, 5]
    estimates : dict
        Mapping of run names to estimated states [T, 5]
    colors : dict, optional
    """
    colors = colors or {}
    for idx, (name, est) in enumerate(estimates.items()):
        error = np.linalg.norm(est[:, :2] - xs_true[:, :2], axis=1)
        color = colors.get(name, DEFAULT_COLORS[idx % len(DEFAULT_COLORS)])
        ax.plot(t, error, color=color, linewidth=1.5, label=name, alpha=0.8)

    ax.set_xlabel('Time [s]')
    ax.set_ylabel('Position Error')
    ax.legend(loc='best', fontsize=8)
    ax.grid(True, alpha=0.3)
