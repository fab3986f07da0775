"""
Utility Functions.

This module contains utility functions for:
- Accuracy and consistency metrics
- Visualization (organized in visualization/ subfolder)
"""
from .metrics import (
    compute_mse,
    compute_rmse,
    compute_nees,
    nis_bound,
    nis_consistency,
    state_error,
)

__all__ = [
    'compute_mse',
    'compute_rmse',
    'compute_nees',
    'nis_bound',
    'nis_consistency',
    'state_error',
]
