"""
Visualization utilities for CTRV tracking results.

This module provides plotting functions organized by domain:
- tracking: Trajectory and spatial plots (ellipses, trajectory comparison, errors)
- consistency: NIS plots against chi-squared bounds
"""
from .tracking import (
    plot_covariance_ellipse,
    plot_trajectory_comparison,
    plot_error_over_time,
    measurements_to_xy,
    DEFAULT_COLORS,
)

from .consistency import (
    plot_nis,
    plot_nis_by_sensor,
)

__all__ = [
    # tracking
    'plot_covariance_ellipse',
    'plot_trajectory_comparison',
    'plot_error_over_time',
    'measurements_to_xy',
    'DEFAULT_COLORS',
    # consistency
    'plot_nis',
    'plot_nis_by_sensor',
]
