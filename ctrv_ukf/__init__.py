"""
CTRV Sensor Fusion with an Unscented Kalman Filter

This package contains implementations of:
- The CTRV motion model and the position / range sensor models
- UKF prediction and measurement updates
- A measurement dispatcher fusing both sensors
- Consistency metrics and plotting utilities
"""
from .config import FilterConfig
from .filters import FusionUKF, run_fusion_filter
from .ssm import Measurement, SensorType

__version__ = '0.1.0'

__all__ = [
    'FilterConfig',
    'FusionUKF',
    'run_fusion_filter',
    'Measurement',
    'SensorType',
]
