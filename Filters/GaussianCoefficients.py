import numpy as np

RADIUS = 16     # Half width of the kernel (M), N = 2 * M + 1 taps
SIGMA = 10.0    # Standard deviation of the gaussian


def gaussian_coefficients(radius=RADIUS, sigma=SIGMA):
    """
    Build the normalized 1D gaussian weights w[0..2M].

    w[i] = G(i - M; sigma) / sum_j G(j - M; sigma), computed once on the host in
    double precision. The normal distribution constant cancels out in the
    normalization, so only the exponential is evaluated.
    """
    if radius < 0:
        raise ValueError(f"radius must be >= 0, got {radius}")
    if radius == 0:
        # Single tap, sigma does not matter
        return np.ones(1, dtype=np.float64)
    if not sigma > 0:
        raise ValueError(f"sigma must be > 0, got {sigma}")

    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    weights = np.exp(-(offsets ** 2) / (2 * sigma ** 2))
    return weights / weights.sum()


def kernel_radius(coefficients):
    """Return M for a table of 2M+1 weights."""
    size = len(coefficients)
    if size % 2 == 0:
        raise ValueError(f"coefficient table must have odd length, got {size}")
    return size // 2


def as_constant(coefficients):
    # Hashable form used as the key of the kernel caches
    return tuple(float(w) for w in coefficients)
