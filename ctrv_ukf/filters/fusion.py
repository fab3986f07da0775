"""Sensor-fusion UKF: state store and measurement dispatcher."""
import logging
from typing import Dict, Iterable, List, NamedTuple, Optional

import numpy as np

from ..config import FilterConfig
from ..ssm.measurement import Measurement, SensorType
from .common import OutOfOrderMeasurementError
from .ukf import N_AUG, N_X, ukf_predict, ukf_weights, update_position, update_range

logger = logging.getLogger(__name__)


def _owned(array):
    """Read-only private copy, so callers cannot alter the stored estimate."""
    array = np.array(array, dtype=float, copy=True)
    array.setflags(write=False)
    return array


class FilterState(NamedTuple):
    """Current estimate: mean, covariance and the time it refers to."""
    x: np.ndarray
    P: np.ndarray
    timestamp: float


class FilterStep(NamedTuple):
    """Outcome of processing one measurement after initialization."""
    sensor_type: SensorType
    dt: float
    x_pred: np.ndarray
    P_pred: np.ndarray
    Xsig_pred: np.ndarray
    x: np.ndarray
    P: np.ndarray
    nis: Optional[float]  # None when the sensor update is disabled


class FusionUKF:
    """
    Unscented Kalman Filter fusing position and range measurements of one
    object moving under the CTRV model.

    Each measurement is predicted to and then applied in full before the
    state is replaced, so readers never see a half-updated estimate.

    Parameters
    ----------
    config : FilterConfig, optional
        Process noise, sensor flags and numerical thresholds

    Examples
    --------
    >>> ukf = FusionUKF()
    >>> ukf.process_measurement(Measurement.position(0.0, 1.0, 1.0))
    >>> step = ukf.process_measurement(Measurement.position(0.1, 1.1, 1.0))
    >>> ukf.x.shape, step.nis is not None
    ((5,), True)
    """

    def __init__(self, config: Optional[FilterConfig] = None):
        self.config = config if config is not None else FilterConfig()
        self.weights, _ = ukf_weights(N_AUG)
        self._state: Optional[FilterState] = None
        self.nis_history: Dict[SensorType, List[float]] = {s: [] for s in SensorType}

    @property
    def is_initialized(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> Optional[FilterState]:
        return self._state

    @property
    def x(self) -> Optional[np.ndarray]:
        return None if self._state is None else self._state.x.copy()

    @property
    def P(self) -> Optional[np.ndarray]:
        return None if self._state is None else self._state.P.copy()

    @property
    def timestamp(self) -> Optional[float]:
        return None if self._state is None else self._state.timestamp

    def reset(self) -> None:
        """Return to the uninitialized state."""
        self._state = None
        for values in self.nis_history.values():
            values.clear()

    def process_measurement(self, measurement: Measurement) -> Optional[FilterStep]:
        """
        Consume one measurement.

        The first measurement initializes the filter and returns None.
        Later measurements run prediction to the measurement time, then the
        sensor-specific update if that sensor is enabled.

        Raises
        ------
        OutOfOrderMeasurementError
            If the measurement is older than the current estimate. The state
            is left unchanged.
        """
        if self._state is None:
            self._state = self._initial_state(measurement)
            logger.debug("Initialized from %s measurement at t=%s: x=%s",
                         measurement.sensor_type.value, measurement.timestamp, self._state.x)
            return None

        dt = (measurement.timestamp - self._state.timestamp) * self.config.time_scale
        if dt < 0:
            logger.warning("Rejected %s measurement at t=%s, filter is at t=%s",
                           measurement.sensor_type.value, measurement.timestamp,
                           self._state.timestamp)
            raise OutOfOrderMeasurementError(
                f"Measurement at t={measurement.timestamp} precedes filter time "
                f"t={self._state.timestamp}"
            )

        step = self.step(self._state, measurement, dt)
        self._state = FilterState(_owned(step.x), _owned(step.P), measurement.timestamp)
        if step.nis is not None:
            self.nis_history[step.sensor_type].append(step.nis)
        return step

    def step(self, state: FilterState, measurement: Measurement, dt: float) -> FilterStep:
        """Predict state by dt and apply measurement; does not modify the filter."""
        cfg = self.config
        x_pred, P_pred, Xsig_pred = ukf_predict(
            state.x, state.P, dt, cfg.std_a, cfg.std_yawdd, cfg.yaw_rate_eps
        )

        sensor_type = measurement.sensor_type
        if sensor_type is SensorType.POSITION and cfg.use_position:
            x, P, nis = update_position(x_pred, P_pred, Xsig_pred, self.weights,
                                        measurement.raw, cfg.position_noise_std)
        elif sensor_type is SensorType.RANGE and cfg.use_range:
            x, P, nis = update_range(x_pred, P_pred, Xsig_pred, self.weights,
                                     measurement.raw, cfg.range_noise_std, cfg.range_eps)
        else:
            logger.debug("Skipping disabled %s update at t=%s",
                         sensor_type.value, measurement.timestamp)
            x, P, nis = x_pred, P_pred, None

        if nis is not None:
            logger.debug("%s update: dt=%.4f NIS=%.3f", sensor_type.value, dt, nis)
        return FilterStep(sensor_type, dt, x_pred, P_pred, Xsig_pred, x, P, nis)

    def _initial_state(self, measurement: Measurement) -> FilterState:
        cfg = self.config
        x = np.zeros(N_X)
        if measurement.sensor_type is SensorType.POSITION:
            x[:2] = measurement.raw
            var_px, var_py = np.square(cfg.position_noise_std)
        else:
            rho, phi = measurement.raw[0], measurement.raw[1]
            x[0] = rho * np.cos(phi)
            x[1] = rho * np.sin(phi)
            var_px = var_py = cfg.range_noise_std[0]**2

        P = np.diag([var_px, var_py, cfg.init_var_v, cfg.init_var_yaw, cfg.init_var_yaw_rate])
        return FilterState(_owned(x), _owned(P), measurement.timestamp)


def run_fusion_filter(measurements: Iterable[Measurement], config: Optional[FilterConfig] = None):
    """
    Run the fusion UKF over a measurement sequence.

    Parameters
    ----------
    measurements : iterable of Measurement
        Time-ordered measurements
    config : FilterConfig, optional

    Returns
    -------
    m_filt : ndarray [T, 5]
        Estimate after each measurement
    P_filt : ndarray [T, 5, 5]
    nis : ndarray [T]
        NIS of each update, NaN for the initializing measurement and for
        skipped updates
    """
    ukf = FusionUKF(config)
    m_filt, P_filt, nis = [], [], []

    for measurement in measurements:
        step = ukf.process_measurement(measurement)
        m_filt.append(ukf.x)
        P_filt.append(ukf.P)
        nis.append(np.nan if step is None or step.nis is None else step.nis)

    return np.array(m_filt).reshape(-1, N_X), np.array(P_filt).reshape(-1, N_X, N_X), np.array(nis)
