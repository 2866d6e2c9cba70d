import numpy as np
import pytest

from Filters.GaussianCoefficients import RADIUS, SIGMA, as_constant, gaussian_coefficients, kernel_radius


@pytest.mark.parametrize("radius, sigma", [(1, 0.5), (2, 1.5), (5, 2.0), (16, 10.0), (16, 100.0), (40, 3.0)])
def test_weights_are_normalized_and_symmetric(radius, sigma):
    weights = gaussian_coefficients(radius, sigma)

    assert len(weights) == 2 * radius + 1
    assert abs(weights.sum() - 1.0) < 1e-6
    np.testing.assert_array_equal(weights, weights[::-1])
    assert np.argmax(weights) == radius


def test_default_table_is_sampled_normalized_gaussian():
    weights = gaussian_coefficients()

    assert RADIUS == 16 and SIGMA == 10.0
    assert len(weights) == 33
    offsets = np.arange(-16, 17)
    density = np.exp(-(offsets ** 2) / 200.0) / (np.sqrt(2 * np.pi) * 10.0)
    np.testing.assert_allclose(weights, density / density.sum(), rtol=1e-12)


def test_default_table_is_close_to_hard_coded_sigma_10_table():
    # The shader table integrates the density over each pixel, within 0.1% of point samples
    weights = gaussian_coefficients()

    assert weights[16] == pytest.approx(0.04425662519949865, rel=1e-3)
    assert weights[0] == pytest.approx(0.012318109844189502, rel=1e-3)
    assert weights[8] == pytest.approx(0.03214534135442581, rel=1e-3)


@pytest.mark.parametrize("sigma", [10.0, 0.0, -1.0])
def test_zero_radius_is_identity(sigma):
    np.testing.assert_array_equal(gaussian_coefficients(0, sigma), [1.0])


def test_invalid_parameters():
    with pytest.raises(ValueError):
        gaussian_coefficients(-1, 1.0)
    with pytest.raises(ValueError):
        gaussian_coefficients(3, 0.0)


def test_kernel_radius():
    assert kernel_radius(gaussian_coefficients(7, 2.0)) == 7
    assert kernel_radius([1.0]) == 0
    with pytest.raises(ValueError):
        kernel_radius([0.5, 0.5])


def test_as_constant_is_hashable():
    table = as_constant(gaussian_coefficients(3, 1.0))
    assert hash(table) == hash(as_constant(gaussian_coefficients(3, 1.0)))
    assert len(table) == 7
