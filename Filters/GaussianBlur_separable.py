import numpy as np
from numba import cuda
from Filters.TileLoader import CHANNELS, clamp_coord
from Filters.PassSequencer import BlurPass, dispatch_grid, run_passes

GROUP_SIZE = (16, 16)


@cuda.jit
def gaussian_filter_1d(frame, result, coeffs, horizontal):
    """
    One direction of the separable blur, taps read from global memory.
    """
    x, y = cuda.grid(2)
    height = frame.shape[0]
    width = frame.shape[1]
    if x >= width or y >= height:
        return

    n = coeffs.shape[0]
    radius = n // 2

    for c in range(CHANNELS):
        acc = 0.0
        for i in range(n):
            if horizontal:
                acc += coeffs[i] * frame[y, clamp_coord(x + i - radius, width), c]
            else:
                acc += coeffs[i] * frame[clamp_coord(y + i - radius, height), x, c]
        result[y, x, c] = acc


def gaussian_blur_separable(d_frame, d_output, coefficients, group_size=GROUP_SIZE, stream=0):
    """Horizontal pass into an intermediate float image, then vertical pass into the output."""
    d_coeffs = cuda.to_device(np.asarray(coefficients, dtype=np.float32), stream=stream)
    d_intermediate = cuda.device_array(d_frame.shape, dtype=np.float32, stream=stream)
    height, width = d_frame.shape[0], d_frame.shape[1]
    griddim = dispatch_grid(width, height, group_size)
    run_passes(
        [
            BlurPass("separable:horizontal", gaussian_filter_1d, griddim, group_size,
                     d_frame, d_intermediate, (d_coeffs, True)),
            BlurPass("separable:vertical", gaussian_filter_1d, griddim, group_size,
                     d_intermediate, d_output, (d_coeffs, False)),
        ],
        stream,
    )
