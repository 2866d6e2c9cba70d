import numpy as np
from numba import cuda
from Filters.TileLoader import CHANNELS, clamp_coord
from Filters.PassSequencer import BlurPass, dispatch_grid, run_passes

GROUP_SIZE = (16, 16)


@cuda.jit
def gaussian_filter(frame, result, coeffs):
    """
    Direct 2D gaussian blur: every tap is read from global memory.
    """
    x, y = cuda.grid(2)
    height = frame.shape[0]
    width = frame.shape[1]
    if x >= width or y >= height:
        # Return if the thread is out of bounds
        return

    n = coeffs.shape[0]
    radius = n // 2

    for c in range(CHANNELS):
        acc = 0.0
        for j in range(n):
            py = clamp_coord(y + j - radius, height)
            for i in range(n):
                px = clamp_coord(x + i - radius, width)
                acc += coeffs[i] * coeffs[j] * frame[py, px, c]
        result[y, x, c] = acc


def gaussian_blur_naive(d_frame, d_output, coefficients, group_size=GROUP_SIZE, stream=0):
    """Single dispatch of the direct 2D kernel over the whole frame."""
    d_coeffs = cuda.to_device(np.asarray(coefficients, dtype=np.float32), stream=stream)
    height, width = d_frame.shape[0], d_frame.shape[1]
    blur = BlurPass(
        "naive",
        gaussian_filter,
        dispatch_grid(width, height, group_size),
        group_size,
        d_frame,
        d_output,
        (d_coeffs,),
    )
    run_passes([blur], stream)
