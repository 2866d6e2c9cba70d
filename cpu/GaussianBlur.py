import numpy as np


def gaussian_blur(frame, coefficients):
    """
    Reference 2D gaussian blur on the CPU, double precision.

    Out of image taps are clamped to the edge, the same border policy as the GPU
    kernels. Accepts (H, W) or (H, W, C) frames.
    """
    frame = np.asarray(frame, dtype=np.float64)    # To avoid overflow
    coefficients = np.asarray(coefficients, dtype=np.float64)
    radius = len(coefficients) // 2
    height, width = frame.shape[0], frame.shape[1]

    pad = [(radius, radius), (radius, radius)] + [(0, 0)] * (frame.ndim - 2)
    padded = np.pad(frame, pad, mode="edge")
    result = np.zeros_like(frame)

    for j, wy in enumerate(coefficients):
        for i, wx in enumerate(coefficients):
            result += wy * wx * padded[j:j + height, i:i + width]

    return result


def gaussian_blur_separable(frame, coefficients):
    """Same result as gaussian_blur with two 1D passes."""
    frame = np.asarray(frame, dtype=np.float64)
    coefficients = np.asarray(coefficients, dtype=np.float64)
    radius = len(coefficients) // 2
    height, width = frame.shape[0], frame.shape[1]
    rest = [(0, 0)] * (frame.ndim - 2)

    padded = np.pad(frame, [(0, 0), (radius, radius)] + rest, mode="edge")
    horizontal = sum(w * padded[:, i:i + width] for i, w in enumerate(coefficients))

    padded = np.pad(horizontal, [(radius, radius), (0, 0)] + rest, mode="edge")
    return sum(w * padded[j:j + height] for j, w in enumerate(coefficients))
