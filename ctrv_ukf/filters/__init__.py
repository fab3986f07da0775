"""Unscented Kalman filter for CTRV sensor fusion."""
from .ukf import (
    ukf_predict,
    ukf_weights,
    augmented_sigma_points,
    update_position,
    update_range,
)
from .fusion import FusionUKF, FilterState, FilterStep, run_fusion_filter
from .common import (
    normalize_angle,
    wrap_angles,
    symmetrize,
    FilterError,
    CovarianceNotPositiveDefiniteError,
    SingularInnovationError,
    OutOfOrderMeasurementError,
)

__all__ = [
    # Dispatcher
    'FusionUKF',
    'FilterState',
    'FilterStep',
    'run_fusion_filter',
    # UKF components
    'ukf_predict',
    'ukf_weights',
    'augmented_sigma_points',
    'update_position',
    'update_range',
    # Utilities
    'normalize_angle',
    'wrap_angles',
    'symmetrize',
    # Errors
    'FilterError',
    'CovarianceNotPositiveDefiniteError',
    'SingularInnovationError',
    'OutOfOrderMeasurementError',
]
