"""
Metrics for evaluating filter accuracy and consistency.
"""
import numpy as np
from scipy.stats import chi2

from ..filters.common import normalize_angle

YAW_INDEX = 3


def state_error(estimated, true):
    """
    Estimation error with the heading component wrapped to (-pi, pi].

    Parameters
    ----------
    estimated : ndarray [T, 5]
        Estimated states
    true : ndarray [T, 5]
        True states

    Returns
    -------
    ndarray [T, 5]
    """
    error = np.asarray(estimated, dtype=float) - np.asarray(true, dtype=float)
    error[..., YAW_INDEX] = normalize_angle(error[..., YAW_INDEX])
    return error


def compute_mse(estimated, true):
    """Mean Squared Error over all entries."""
    return np.mean((np.asarray(estimated) - np.asarray(true))**2)


def compute_rmse(estimated, true):
    """
    Per-component Root Mean Squared Error over time.

    Parameters
    ----------
    estimated : ndarray [T, 5]
    true : ndarray [T, 5]

    Returns
    -------
    ndarray [5]
        RMSE of px, py, v, yaw, yaw_rate
    """
    error = state_error(estimated, true)
    return np.sqrt(np.mean(error**2, axis=0))


def compute_nees(m_filt, P_filt, xs):
    """
    Compute Normalized Estimation Error Squared (NEES).

    NEES = (x - m)' * P^{-1} * (x - m)

    For a consistent filter, NEES should follow chi-squared(n_x) distribution.

    Parameters
    ----------
    m_filt : ndarray [T, n_x]
    P_filt : ndarray [T, n_x, n_x]
    xs : ndarray [T, n_x]

    Returns
    -------
    ndarray [T]
    """
    errors = state_error(xs, m_filt)
    return np.array([e @ np.linalg.solve(P, e) for e, P in zip(errors, P_filt)])


def nis_bound(dim, prob=0.95):
    """Chi-squared quantile a consistent filter's NIS stays below with probability prob."""
    return chi2.ppf(prob, df=dim)


def nis_consistency(nis, dim, prob=0.95):
    """
    Fraction of NIS values below the chi-squared bound.

    NaN entries (initialization, skipped updates) are ignored.

    Parameters
    ----------
    nis : ndarray [T]
    dim : int
        Measurement dimension
    prob : float
        Bound probability

    Returns
    -------
    float
        Should be close to prob for a well-tuned filter
    """
    nis = np.asarray(nis, dtype=float)
    nis = nis[np.isfinite(nis)]
    if nis.size == 0:
        return np.nan
    return float(np.mean(nis <= nis_bound(dim, prob)))


def compute_symmetry_error(P_filt):
    """
    Relative symmetry error ||P - P'||_F / ||P||_F at each time step.

    Parameters
    ----------
    P_filt : ndarray [T, n_x, n_x]

    Returns
    -------
    ndarray [T]
    """
    norms = np.linalg.norm(P_filt, 'fro', axis=(1, 2))
    asym = np.linalg.norm(P_filt - np.swapaxes(P_filt, 1, 2), 'fro', axis=(1, 2))
    return np.divide(asym, norms, out=np.zeros_like(norms), where=norms > 0)


def compute_min_eigenvalues(P_filt):
    """
    Minimum eigenvalue of P at each time step.

    Negative values indicate loss of positive semi-definiteness.
    """
    return np.linalg.eigvalsh(P_filt).min(axis=-1)
