"""Shared pytest fixtures for unit tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator."""
    return np.random.default_rng(42)


@pytest.fixture
def ctrv_state():
    """A moving, turning CTRV state with a correlated covariance."""
    x = np.array([5.7441, 1.3800, 2.2049, 0.5015, 0.3528])
    P = np.array([
        [0.0043, -0.0013, 0.0030, -0.0022, -0.0020],
        [-0.0013, 0.0077, 0.0011, 0.0071, 0.0060],
        [0.0030, 0.0011, 0.0054, 0.0007, 0.0008],
        [-0.0022, 0.0071, 0.0007, 0.0098, 0.0100],
        [-0.0020, 0.0060, 0.0008, 0.0100, 0.0123],
    ])
    return {'x': x, 'P': P, 'std_a': 0.2, 'std_yawdd': 0.2}


@pytest.fixture
def predicted(ctrv_state):
    """Prediction of ctrv_state over 0.1 s."""
    from ctrv_ukf.filters.ukf import ukf_predict, ukf_weights

    s = ctrv_state
    x_pred, P_pred, Xsig_pred = ukf_predict(s['x'], s['P'], 0.1, s['std_a'], s['std_yawdd'])
    weights, _ = ukf_weights()
    return {'x': x_pred, 'P': P_pred, 'Xsig': Xsig_pred, 'weights': weights}


def check_psd(matrix, tol=1e-10):
    """Check if matrix is positive semi-definite."""
    return np.all(np.linalg.eigvalsh(matrix) >= -tol)
