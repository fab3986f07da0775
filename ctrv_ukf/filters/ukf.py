"""Unscented Kalman Filter (UKF) steps for the CTRV model."""
import numpy as np
from scipy.linalg import LinAlgError, cholesky
from scipy.linalg import cho_factor as cholesky_factor, cho_solve as cholesky_solve

from ..ssm.ctrv import ctrv_transition, h_position, h_range, YAW_RATE_EPS, RANGE_EPS
from .common import (
    CovarianceNotPositiveDefiniteError,
    SingularInnovationError,
    symmetrize,
    wrap_angles,
)

N_X = 5
N_AUG = 7
YAW_INDEX = 3
BEARING_INDEX = 1


def ukf_weights(n_aug=N_AUG, lam=None):
    """
    Compute sigma point weights and spreading factor.

    The same weights are used for the mean and the covariance.

    Parameters
    ----------
    n_aug : int
        Dimension of the sampled (augmented) state
    lam : float, optional
        Spreading parameter. Defaults to 3 - n_aug.

    Returns
    -------
    weights : ndarray [2 * n_aug + 1]
    gamma : float
        sqrt(lam + n_aug), the sigma point spread
    """
    if lam is None:
        lam = 3 - n_aug
    if lam + n_aug <= 0:
        raise ValueError(f"lam + n_aug must be positive, got {lam + n_aug}")

    weights = np.full(2 * n_aug + 1, 0.5 / (lam + n_aug))
    weights[0] = lam / (lam + n_aug)
    return weights, np.sqrt(lam + n_aug)


def augmented_sigma_points(x, P, std_a, std_yawdd):
    """
    Generate sigma points of the state augmented with process noise.

    Parameters
    ----------
    x : ndarray [n_x]
        State mean
    P : ndarray [n_x, n_x]
        State covariance
    std_a, std_yawdd : float
        Longitudinal and yaw acceleration noise std

    Returns
    -------
    ndarray [2 * n_aug + 1, n_aug]
        Sigma points as rows, n_aug = n_x + 2
    """
    n_x = len(x)
    n_aug = n_x + 2
    _, gamma = ukf_weights(n_aug)

    x_aug = np.zeros(n_aug)
    x_aug[:n_x] = x

    P_aug = np.zeros((n_aug, n_aug))
    P_aug[:n_x, :n_x] = P
    P_aug[n_x, n_x] = std_a**2
    P_aug[n_x + 1, n_x + 1] = std_yawdd**2

    try:
        A = cholesky(P_aug, lower=True)
    except (LinAlgError, ValueError) as exc:
        raise CovarianceNotPositiveDefiniteError(
            "Augmented covariance has no Cholesky factor"
        ) from exc

    sigma = np.empty((2 * n_aug + 1, n_aug))
    sigma[0] = x_aug
    sigma[1:n_aug + 1] = x_aug + gamma * A.T
    sigma[n_aug + 1:] = x_aug - gamma * A.T
    return sigma


def _weighted_mean(points, weights, circular_indices=None):
    """Weighted mean of rows; circular mean for angular columns."""
    mean = weights @ points
    for i in circular_indices or ():
        mean[i] = np.arctan2(weights @ np.sin(points[:, i]),
                             weights @ np.cos(points[:, i]))
    return mean


def _weighted_outer(weights, a, b):
    """Sum_i w_i a_i b_i^T for row stacks a [N, n], b [N, m]."""
    return (weights[:, None] * a).T @ b


def ukf_predict(x, P, dt, std_a, std_yawdd, yaw_rate_eps=YAW_RATE_EPS):
    """
    UKF prediction step through the CTRV model.

    Parameters
    ----------
    x : ndarray [5]
        State mean
    P : ndarray [5, 5]
        State covariance
    dt : float
        Elapsed time, must be >= 0
    std_a, std_yawdd : float
        Process noise std
    yaw_rate_eps : float
        Straight-line threshold on |yaw_rate|

    Returns
    -------
    x_pred : ndarray [5]
    P_pred : ndarray [5, 5]
    Xsig_pred : ndarray [2 * n_aug + 1, 5]
        Propagated sigma points, reused by the update step
    """
    if dt < 0:
        raise ValueError(f"Elapsed time must be non-negative, got {dt}")

    sigma_aug = augmented_sigma_points(x, P, std_a, std_yawdd)
    weights, _ = ukf_weights(sigma_aug.shape[1])

    Xsig_pred = ctrv_transition(sigma_aug, dt, yaw_rate_eps)
    x_pred = weights @ Xsig_pred

    dx = wrap_angles(Xsig_pred - x_pred, [YAW_INDEX])
    P_pred = symmetrize(_weighted_outer(weights, dx, dx))
    return x_pred, P_pred, Xsig_pred


def _sigma_update(x_pred, P_pred, Xsig_pred, weights, Zsig, z, R, z_angle_indices=None):
    """Shared UKF measurement update given sigma points in measurement space."""
    z_pred = _weighted_mean(Zsig, weights, z_angle_indices)
    dz = wrap_angles(Zsig - z_pred, z_angle_indices)
    dx = wrap_angles(Xsig_pred - x_pred, [YAW_INDEX])

    S = _weighted_outer(weights, dz, dz) + R
    Tc = _weighted_outer(weights, dx, dz)

    try:
        S_factor = cholesky_factor(S)
    except (LinAlgError, ValueError) as exc:
        raise SingularInnovationError("Innovation covariance is not invertible") from exc

    K = cholesky_solve(S_factor, Tc.T).T
    innov = wrap_angles(z - z_pred, z_angle_indices)

    x = x_pred + K @ innov
    P = symmetrize(P_pred - K @ S @ K.T)
    nis = float(innov @ cholesky_solve(S_factor, innov))
    return x, P, nis


def _as_measurement(z, n_z):
    z = np.asarray(z, dtype=float).ravel()
    if z.shape != (n_z,):
        raise ValueError(f"Expected {n_z} measurement values, got {z.size}")
    return z


def update_position(x_pred, P_pred, Xsig_pred, weights, z, noise_std):
    """
    UKF update with a position measurement [px, py].

    Parameters
    ----------
    x_pred : ndarray [5]
        Predicted mean
    P_pred : ndarray [5, 5]
        Predicted covariance
    Xsig_pred : ndarray [N, 5]
        Predicted sigma points
    weights : ndarray [N]
        Sigma point weights
    z : ndarray [2]
        Measurement
    noise_std : sequence of 2 floats
        Measurement noise std (px, py)

    Returns
    -------
    x : ndarray [5]
    P : ndarray [5, 5]
    nis : float
        Normalized innovation squared
    """
    z = _as_measurement(z, 2)
    R = np.diag(np.square(noise_std))
    Zsig = h_position(Xsig_pred)
    return _sigma_update(x_pred, P_pred, Xsig_pred, weights, Zsig, z, R)


def update_range(x_pred, P_pred, Xsig_pred, weights, z, noise_std, range_eps=RANGE_EPS):
    """
    UKF update with a range measurement [range, bearing, range_rate].

    Same as update_position with the nonlinear range model; bearing
    innovations are wrapped to (-pi, pi].

    Returns
    -------
    x : ndarray [5]
    P : ndarray [5, 5]
    nis : float
    """
    z = _as_measurement(z, 3)
    R = np.diag(np.square(noise_std))
    Zsig = h_range(Xsig_pred, range_eps)
    return _sigma_update(x_pred, P_pred, Xsig_pred, weights, Zsig, z, R,
                         z_angle_indices=[BEARING_INDEX])
