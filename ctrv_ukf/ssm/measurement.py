"""Measurement records consumed by the fusion filter."""
from dataclasses import dataclass
from enum import Enum

import numpy as np


class SensorType(Enum):
    """Sensor modality of a measurement."""
    POSITION = 'position'  # [px, py]
    RANGE = 'range'        # [range, bearing, range_rate]

    @property
    def dim(self):
        return 2 if self is SensorType.POSITION else 3


@dataclass(frozen=True)
class Measurement:
    """
    A single timestamped sensor reading.

    Attributes
    ----------
    sensor_type : SensorType
        Which sensor produced the reading
    timestamp : float
        Acquisition time, in the unit selected by FilterConfig.time_scale
    raw : ndarray [2] or [3]
        Raw measurement values
    """
    sensor_type: SensorType
    timestamp: float
    raw: np.ndarray

    def __post_init__(self):
        if not isinstance(self.sensor_type, SensorType):
            raise ValueError(f"Unknown sensor type: {self.sensor_type!r}")
        raw = np.asarray(self.raw, dtype=float).ravel()
        if raw.shape != (self.sensor_type.dim,):
            raise ValueError(
                f"{self.sensor_type.value} measurement needs {self.sensor_type.dim} "
                f"values, got {raw.size}"
            )
        if not np.all(np.isfinite(raw)):
            raise ValueError(f"{self.sensor_type.value} measurement has non-finite values: {raw}")
        if not np.isfinite(self.timestamp):
            raise ValueError(f"Measurement timestamp must be finite, got {self.timestamp}")
        raw.setflags(write=False)
        object.__setattr__(self, 'raw', raw)

    @classmethod
    def position(cls, timestamp, px, py):
        """Build a position sensor measurement."""
        return cls(SensorType.POSITION, timestamp, np.array([px, py]))

    @classmethod
    def range(cls, timestamp, rho, phi, rho_dot):
        """Build a range sensor measurement."""
        return cls(SensorType.RANGE, timestamp, np.array([rho, phi, rho_dot]))
