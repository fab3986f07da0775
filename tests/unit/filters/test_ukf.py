"""Unit tests for the CTRV Unscented Kalman Filter steps."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from ctrv_ukf.filters.ukf import (
    ukf_weights, augmented_sigma_points, ukf_predict,
    update_position, update_range, N_AUG
)
from ctrv_ukf.filters.common import (
    CovarianceNotPositiveDefiniteError, SingularInnovationError
)
from ctrv_ukf.utils.metrics import nis_bound
from tests.unit.conftest import check_psd


class TestUKFWeights:
    """Tests for sigma point weight computation."""

    @pytest.mark.parametrize('n_aug', [3, 5, 7, 10])
    def test_weights_sum_to_one(self, n_aug):
        """Weights should sum to 1 for the default spreading parameter."""
        weights, _ = ukf_weights(n_aug)

        assert weights.shape == (2 * n_aug + 1,)
        np.testing.assert_allclose(np.sum(weights), 1.0, rtol=1e-12)

    @pytest.mark.parametrize('lam', [-2.0, 0.0, 0.5, 3.0])
    def test_weights_sum_to_one_custom_lambda(self, lam):
        """Weights should sum to 1 for any valid lambda."""
        weights, gamma = ukf_weights(7, lam=lam)

        np.testing.assert_allclose(np.sum(weights), 1.0, rtol=1e-12)
        np.testing.assert_allclose(gamma, np.sqrt(lam + 7))

    def test_default_values(self):
        """n_aug=7 gives lambda=-4, so w0=-4/3 and wi=1/6."""
        weights, gamma = ukf_weights(N_AUG)

        np.testing.assert_allclose(weights[0], -4.0 / 3.0)
        np.testing.assert_allclose(weights[1:], 1.0 / 6.0)
        np.testing.assert_allclose(gamma, np.sqrt(3.0))

    def test_invalid_lambda(self):
        """lambda + n_aug must be positive."""
        with pytest.raises(ValueError):
            ukf_weights(7, lam=-7.0)


class TestSigmaPoints:
    """Tests for augmented sigma point generation."""

    def test_shape_and_center(self, ctrv_state):
        """Center sigma point is the augmented mean."""
        s = ctrv_state
        sigma = augmented_sigma_points(s['x'], s['P'], s['std_a'], s['std_yawdd'])

        assert sigma.shape == (15, 7)
        np.testing.assert_allclose(sigma[0, :5], s['x'])
        np.testing.assert_allclose(sigma[0, 5:], 0.0)

    def test_known_values(self, ctrv_state):
        """First spread point follows the first Cholesky column."""
        s = ctrv_state
        sigma = augmented_sigma_points(s['x'], s['P'], s['std_a'], s['std_yawdd'])

        expected = [5.85768, 1.34566, 2.28414, 0.44339, 0.299973, 0.0, 0.0]
        np.testing.assert_allclose(sigma[1], expected, atol=1e-5)
        # Noise columns: +/- sqrt(3) * 0.2
        np.testing.assert_allclose(sigma[6, 5], 0.34641, atol=1e-5)
        np.testing.assert_allclose(sigma[13, 5], -0.34641, atol=1e-5)
        np.testing.assert_allclose(sigma[14, 6], -0.34641, atol=1e-5)

    def test_symmetric_about_mean(self, ctrv_state):
        """Points i and n_aug + i mirror each other around the mean."""
        s = ctrv_state
        sigma = augmented_sigma_points(s['x'], s['P'], s['std_a'], s['std_yawdd'])

        np.testing.assert_allclose(sigma[1:8] + sigma[8:], np.tile(2 * sigma[0], (7, 1)), atol=1e-12)

    def test_deterministic(self, ctrv_state):
        """Identical inputs give identical sigma points."""
        s = ctrv_state
        sigma1 = augmented_sigma_points(s['x'], s['P'], s['std_a'], s['std_yawdd'])
        sigma2 = augmented_sigma_points(s['x'].copy(), s['P'].copy(), s['std_a'], s['std_yawdd'])

        np.testing.assert_array_equal(sigma1, sigma2)

    def test_non_pd_covariance_raises(self, ctrv_state):
        """Indefinite covariance is a precondition violation."""
        P = np.diag([1.0, 1.0, -1.0, 1.0, 1.0])

        with pytest.raises(CovarianceNotPositiveDefiniteError):
            augmented_sigma_points(ctrv_state['x'], P, 0.2, 0.2)

    def test_nan_covariance_raises(self, ctrv_state):
        """NaN covariance is reported, not propagated."""
        P = ctrv_state['P'].copy()
        P[2, 2] = np.nan

        with pytest.raises(CovarianceNotPositiveDefiniteError):
            augmented_sigma_points(ctrv_state['x'], P, 0.2, 0.2)


class TestUKFPredict:
    """Tests for UKF prediction step."""

    def test_output_shapes(self, predicted):
        """Prediction returns mean, covariance and 15 propagated sigma points."""
        assert predicted['x'].shape == (5,)
        assert predicted['P'].shape == (5, 5)
        assert predicted['Xsig'].shape == (15, 5)

    def test_covariance_symmetric_psd(self, predicted):
        """Predicted covariance stays symmetric and PSD."""
        P = predicted['P']

        np.testing.assert_allclose(P, P.T, atol=1e-14)
        assert check_psd(P)

    def test_zero_dt_round_trip(self, ctrv_state):
        """With dt=0 the unscented transform reproduces the input moments."""
        s = ctrv_state
        x_pred, P_pred, Xsig = ukf_predict(s['x'], s['P'], 0.0, s['std_a'], s['std_yawdd'])

        np.testing.assert_allclose(x_pred, s['x'], atol=1e-12)
        np.testing.assert_allclose(P_pred, s['P'], atol=1e-12)

    def test_mean_is_weighted_sigma_mean(self, predicted):
        """Predicted mean is the weighted sum of predicted sigma points."""
        np.testing.assert_allclose(predicted['weights'] @ predicted['Xsig'], predicted['x'])

    def test_deterministic_motion(self):
        """Near-certain straight motion moves the mean by v * dt."""
        x = np.array([1.0, 2.0, 2.0, 0.0, 0.0])
        P = 1e-8 * np.eye(5)

        x_pred, _, _ = ukf_predict(x, P, 0.5, 1e-6, 1e-6)

        np.testing.assert_allclose(x_pred, [2.0, 2.0, 2.0, 0.0, 0.0], atol=1e-6)

    def test_prediction_grows_uncertainty(self, ctrv_state):
        """Process noise inflates the covariance."""
        s = ctrv_state
        _, P_pred, _ = ukf_predict(s['x'], s['P'], 0.1, s['std_a'], s['std_yawdd'])

        assert np.trace(P_pred) > np.trace(s['P'])

    def test_heading_deviations_wrapped(self):
        """Yaw spread beyond pi is wrapped before forming the covariance."""
        x = np.array([0.0, 0.0, 1.0, 0.0, 0.0])
        P = np.diag([1.0, 1.0, 1.0, 4.0, 0.01])
        weights, _ = ukf_weights()

        x_pred, P_pred, Xsig = ukf_predict(x, P, 0.1, 0.2, 0.2)

        dx = Xsig - x_pred
        assert np.any(np.abs(dx[:, 3]) > np.pi)
        dx[:, 3] = np.arctan2(np.sin(dx[:, 3]), np.cos(dx[:, 3]))
        P_ref = (weights[:, None] * dx).T @ dx

        np.testing.assert_allclose(P_pred, P_ref, atol=1e-12)
        assert P_pred[3, 3] < np.sum(weights * (Xsig[:, 3] - x_pred[3])**2)

    def test_negative_dt_raises(self, ctrv_state):
        """Negative elapsed time is rejected."""
        s = ctrv_state
        with pytest.raises(ValueError):
            ukf_predict(s['x'], s['P'], -0.1, s['std_a'], s['std_yawdd'])


class TestUpdatePosition:
    """Tests for the position sensor update."""

    def test_update_reduces_covariance(self, predicted):
        """Update should reduce covariance and keep it PSD."""
        p = predicted
        z = np.array([5.93, 1.48])

        x, P, nis = update_position(p['x'], p['P'], p['Xsig'], p['weights'], z, (0.15, 0.15))

        assert x.shape == (5,)
        assert P.shape == (5, 5)
        assert np.trace(P) < np.trace(p['P'])
        assert check_psd(P)
        assert nis >= 0.0

    def test_noiseless_measurement_recovers_position(self, predicted):
        """With R -> 0 the updated position equals the measurement."""
        p = predicted
        z = np.array([5.95, 1.52])

        x, P, _ = update_position(p['x'], p['P'], p['Xsig'], p['weights'], z, (1e-7, 1e-7))

        np.testing.assert_allclose(x[:2], z, atol=1e-6)
        assert P[0, 0] < 1e-10 and P[1, 1] < 1e-10

    def test_zero_innovation_keeps_mean(self, predicted):
        """Measuring exactly the predicted position leaves the mean unchanged."""
        p = predicted
        x, _, nis = update_position(p['x'], p['P'], p['Xsig'], p['weights'], p['x'][:2], (0.15, 0.15))

        np.testing.assert_allclose(x, p['x'], atol=1e-12)
        np.testing.assert_allclose(nis, 0.0, atol=1e-20)

    def test_heading_wrap_in_cross_covariance(self, predicted):
        """Sigma headings off by 2*pi give the same update."""
        p = predicted
        z = np.array([5.93, 1.48])
        shifted = p['Xsig'].copy()
        shifted[1::2, 3] += 2 * np.pi

        x1, P1, _ = update_position(p['x'], p['P'], p['Xsig'], p['weights'], z, (0.15, 0.15))
        x2, P2, _ = update_position(p['x'], p['P'], shifted, p['weights'], z, (0.15, 0.15))

        np.testing.assert_allclose(x2, x1, atol=1e-10)
        np.testing.assert_allclose(P2, P1, atol=1e-10)

    def test_singular_innovation_raises(self):
        """Zero spread and zero noise leave S singular."""
        x = np.array([1.0, 1.0, 0.0, 0.0, 0.0])
        Xsig = np.tile(x, (15, 1))
        weights, _ = ukf_weights()

        with pytest.raises(SingularInnovationError):
            update_position(x, np.zeros((5, 5)), Xsig, weights, [1.0, 1.0], (0.0, 0.0))

    def test_wrong_measurement_size(self, predicted):
        """Position update needs exactly two values."""
        p = predicted
        with pytest.raises(ValueError):
            update_position(p['x'], p['P'], p['Xsig'], p['weights'], [1.0, 2.0, 3.0], (0.15, 0.15))


class TestUpdateRange:
    """Tests for the range sensor update."""

    @pytest.fixture
    def near_one_one(self):
        """Prediction of a stationary object at (1, 1)."""
        x = np.array([1.0, 1.0, 0.0, 0.0, 0.0])
        P = np.diag([0.09, 0.09, 1.0, 1.0, 1.0])
        x_pred, P_pred, Xsig = ukf_predict(x, P, 0.1, 3.0, 1.0)
        weights, _ = ukf_weights()
        return x_pred, P_pred, Xsig, weights

    def test_consistent_measurement_does_not_diverge(self, near_one_one):
        """A measurement matching the prediction keeps the estimate near (1, 1)."""
        x_pred, P_pred, Xsig, weights = near_one_one
        z = np.array([1.414, np.pi / 4, 0.0])

        x, P, nis = update_range(x_pred, P_pred, Xsig, weights, z, (0.3, 0.03, 0.3))

        assert np.all(np.isfinite(x))
        np.testing.assert_allclose(x[:2], [1.0, 1.0], atol=0.05)
        assert np.trace(P) < np.trace(P_pred)
        assert check_psd(P, tol=1e-9)
        assert nis < nis_bound(3, 0.99)

    def test_bearing_wrap_across_pi(self):
        """Bearings on both sides of +/-pi do not produce a 2*pi innovation."""
        x = np.array([-5.0, 0.0, 0.0, 0.0, 0.0])
        P = np.diag([0.1, 0.1, 1.0, 1.0, 1.0])
        x_pred, P_pred, Xsig = ukf_predict(x, P, 0.05, 3.0, 1.0)
        weights, _ = ukf_weights()

        for phi in (np.pi - 0.01, -np.pi + 0.01):
            z = np.array([5.0, phi, 0.0])
            x_upd, _, nis = update_range(x_pred, P_pred, Xsig, weights, z, (0.3, 0.03, 0.3))

            np.testing.assert_allclose(x_upd[0], -5.0, atol=0.1)
            np.testing.assert_allclose(x_upd[1], 5.0 * np.sin(phi), atol=0.05)
            assert nis < nis_bound(3, 0.99)

    def test_wrong_measurement_size(self, near_one_one):
        """Range update needs exactly three values."""
        x_pred, P_pred, Xsig, weights = near_one_one
        with pytest.raises(ValueError):
            update_range(x_pred, P_pred, Xsig, weights, [1.0, 0.5], (0.3, 0.03, 0.3))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
