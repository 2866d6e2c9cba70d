import os

# Run the kernels on the Numba CUDA simulator, must be set before numba is imported
os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import numpy as np
import pytest

from Filters.GaussianCoefficients import gaussian_coefficients


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_frame(rng):
    def make(height, width, dtype=np.float32):
        if dtype == np.uint8:
            return rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
        return rng.random((height, width, 4)).astype(dtype)
    return make


@pytest.fixture
def small_coefficients():
    return gaussian_coefficients(radius=2, sigma=1.5)
