"""Constant Turn Rate and Velocity (CTRV) State Space Model."""
import numpy as np

from ..config import STD_LASPX, STD_LASPY, STD_RADR, STD_RADPHI, STD_RADRD
from .measurement import Measurement, SensorType

YAW_RATE_EPS = 1e-3
RANGE_EPS = 1e-6


def ctrv_transition(x_aug, dt, yaw_rate_eps=YAW_RATE_EPS):
    """
    Propagate augmented state(s) through the CTRV model.

    Parameters
    ----------
    x_aug : ndarray [7] or [N, 7]
        Augmented state(s) [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]
    dt : float
        Elapsed time
    yaw_rate_eps : float
        Below this |yaw_rate| the straight-line motion is used

    Returns
    -------
    ndarray [5] or [N, 5]
        Propagated state(s) [px, py, v, yaw, yaw_rate]
    """
    x_aug = np.asarray(x_aug, dtype=float)
    px, py, v, yaw, yawd, nu_a, nu_yawdd = np.moveaxis(x_aug, -1, 0)

    turning = np.abs(yawd) > yaw_rate_eps
    safe_yawd = np.where(turning, yawd, 1.0)
    yaw_end = yaw + yawd * dt

    # Arc motion, straight line when the turn rate is too small to divide by
    dpx = np.where(turning,
                   v / safe_yawd * (np.sin(yaw_end) - np.sin(yaw)),
                   v * np.cos(yaw) * dt)
    dpy = np.where(turning,
                   v / safe_yawd * (np.cos(yaw) - np.cos(yaw_end)),
                   v * np.sin(yaw) * dt)

    half_dt2 = 0.5 * dt * dt
    return np.stack([
        px + dpx + half_dt2 * np.cos(yaw) * nu_a,
        py + dpy + half_dt2 * np.sin(yaw) * nu_a,
        v + dt * nu_a,
        yaw_end + half_dt2 * nu_yawdd,
        yawd + dt * nu_yawdd,
    ], axis=-1)


def h_position(x):
    """Position sensor model: [px, py]."""
    return np.asarray(x, dtype=float)[..., :2]


def h_range(x, range_eps=RANGE_EPS):
    """
    Range sensor model: [range, bearing, range_rate].

    Parameters
    ----------
    x : ndarray [5] or [N, 5]
        State(s) [px, py, v, yaw, yaw_rate]
    range_eps : float
        Lower bound on the range used as range-rate denominator

    Returns
    -------
    ndarray [3] or [N, 3]
    """
    x = np.asarray(x, dtype=float)
    px, py, v, yaw = x[..., 0], x[..., 1], x[..., 2], x[..., 3]
    rho = np.hypot(px, py)
    phi = np.arctan2(py, px)
    rho_dot = (px * v * np.cos(yaw) + py * v * np.sin(yaw)) / np.maximum(rho, range_eps)
    return np.stack([rho, phi, rho_dot], axis=-1)


class CTRVModel:
    """CTRV ground-truth model observed by a position and a range sensor.

    State: [px, py, v, yaw, yaw_rate]
    Measurements alternate between the position sensor [px, py] and the
    range sensor [range, bearing, range_rate], one every dt.

    Parameters
    ----------
    std_a : float
        Longitudinal acceleration noise std
    std_yawdd : float
        Yaw acceleration noise std
    dt : float
        Time between consecutive measurements
    """

    def __init__(self, std_a=3.0, std_yawdd=1.0, dt=0.05):
        """Initialize model with given parameters."""
        self.std_a = std_a
        self.std_yawdd = std_yawdd
        self.dt = dt

        self.R_position = np.diag([STD_LASPX**2, STD_LASPY**2])
        self.R_range = np.diag([STD_RADR**2, STD_RADPHI**2, STD_RADRD**2])

        self.m0 = np.array([5.0, 2.0, 2.0, 0.5, 0.1])

    def f(self, x, dt=None, noise=None):
        """State transition with optional [nu_a, nu_yawdd] noise."""
        dt = self.dt if dt is None else dt
        noise = np.zeros(2) if noise is None else np.asarray(noise, dtype=float)
        return ctrv_transition(np.concatenate([x, noise]), dt)

    def h(self, x, sensor_type):
        """Noise-free measurement of state x by the given sensor."""
        if sensor_type is SensorType.POSITION:
            return h_position(x)
        return h_range(x)

    def simulate(self, T, rng, x0=None, t0=0.0, sensors=None):
        """Generate true states and noisy measurements.

        Parameters
        ----------
        T : int
            Number of time steps
        rng : numpy.random.Generator
            Random number generator
        x0 : ndarray [5], optional
            Initial state. If None, uses self.m0.
        t0 : float
            Timestamp of the first measurement
        sensors : sequence of SensorType, optional
            Sensor cycle. Defaults to alternating position/range.

        Returns
        -------
        ts : ndarray [T]
            Timestamps
        xs : ndarray [T, 5]
            True states
        measurements : list of Measurement
        """
        if x0 is None:
            x0 = self.m0.copy()
        if sensors is None:
            sensors = (SensorType.POSITION, SensorType.RANGE)

        ts = t0 + self.dt * np.arange(T)
        xs = np.zeros((T, 5))
        measurements = []
        x = np.asarray(x0, dtype=float).copy()

        for t in range(T):
            if t > 0:
                noise = rng.normal(0.0, [self.std_a, self.std_yawdd])
                x = self.f(x, noise=noise)
            sensor_type = sensors[t % len(sensors)]
            R = self.R_position if sensor_type is SensorType.POSITION else self.R_range
            z = self.h(x, sensor_type) + rng.multivariate_normal(np.zeros(sensor_type.dim), R)
            if sensor_type is SensorType.RANGE:
                z[1] = np.arctan2(np.sin(z[1]), np.cos(z[1]))  # Wrap to [-pi, pi]
            xs[t] = x
            measurements.append(Measurement(sensor_type, float(ts[t]), z))

        return ts, xs, measurements
