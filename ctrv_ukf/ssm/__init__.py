"""State Space Model and measurement definitions."""
from .measurement import Measurement, SensorType
from .ctrv import CTRVModel, ctrv_transition, h_position, h_range

__all__ = [
    'Measurement',
    'SensorType',
    'CTRVModel',
    'ctrv_transition',
    'h_position',
    'h_range',
]
