"""Common utilities and errors for the unscented filter."""
import numpy as np


class FilterError(RuntimeError):
    """Base class for filter precondition violations."""


class CovarianceNotPositiveDefiniteError(FilterError):
    """Raised when a covariance has no Cholesky factor."""


class SingularInnovationError(FilterError):
    """Raised when the innovation covariance cannot be inverted."""


class OutOfOrderMeasurementError(FilterError, ValueError):
    """Raised when a measurement is older than the current filter time."""


def normalize_angle(angle):
    """
    Map angle(s) into (-pi, pi].

    Parameters
    ----------
    angle : float or ndarray
        Angle(s) in radians

    Returns
    -------
    float or ndarray
        Equivalent angle(s) in (-pi, pi]
    """
    wrapped = np.pi - np.mod(np.pi - angle, 2 * np.pi)
    # np.mod can round up to the divisor for tiny negative inputs
    return np.where(wrapped <= -np.pi, wrapped + 2 * np.pi, wrapped)[()]


def wrap_angles(diff, angle_indices):
    """
    Normalize specified components of a difference vector (or of each row of
    a stack of difference vectors) into (-pi, pi].

    Parameters
    ----------
    diff : ndarray [n] or [N, n]
        Difference vector(s), e.g. innovations or state deviations
    angle_indices : list of int or None
        Indices to wrap. If None, returns diff unchanged.

    Returns
    -------
    ndarray
        Copy of diff with angles wrapped
    """
    if not angle_indices:
        return diff

    result = np.array(diff, dtype=float, copy=True)
    for i in angle_indices:
        result[..., i] = normalize_angle(result[..., i])
    return result


def symmetrize(P):
    """Return the symmetric part of a square matrix."""
    return 0.5 * (P + P.T)
