"""
Host entry point: pick a blur variant, move the frame to the GPU, run it and
bring the result back.

Variants:
  naive                  2D kernel, every tap read from global memory
  separable              two 1D passes, taps read from global memory
  lds                    2D kernel over a shared memory tile (tile + halo)
  separable_lds          two 1D passes over shared memory strips, float cache
  separable_lds_compact  same, with a packed 8-bit RGBA cache and intermediate image
"""

import logging
import numbers

import numpy as np
from numba import cuda

from Filters.ColorPacking import pack_image, to_float, to_uint8
from Filters.GaussianBlur import gaussian_blur_naive
from Filters.GaussianBlur_lds import gaussian_blur_lds
from Filters.GaussianBlur_separable import gaussian_blur_separable
from Filters.GaussianBlur_separable_lds import (
    SEPARABLE_GROUP_SIZE,
    gaussian_blur_separable_lds,
    gaussian_blur_separable_lds_compact,
)
from Filters.GaussianCoefficients import RADIUS, SIGMA, gaussian_coefficients
from Filters.PassSequencer import check_dimensions, check_not_aliased
from Filters.TileLoader import CHANNELS

logger = logging.getLogger(__name__)

GROUP_SIZE = (16, 16)

# name -> (host function, default group size, packed input)
VARIANTS = {
    "naive": (gaussian_blur_naive, GROUP_SIZE, False),
    "separable": (gaussian_blur_separable, GROUP_SIZE, False),
    "lds": (gaussian_blur_lds, GROUP_SIZE, False),
    "separable_lds": (gaussian_blur_separable_lds, SEPARABLE_GROUP_SIZE, False),
    "separable_lds_compact": (gaussian_blur_separable_lds_compact, SEPARABLE_GROUP_SIZE, True),
}
DEFAULT_VARIANT = "separable_lds_compact"


def _is_integer(value):
    return isinstance(value, numbers.Integral) and not isinstance(value, (bool, np.bool_))


def _group_size(variant, group_size):
    default = VARIANTS[variant][1]
    if group_size is None:
        return default
    if isinstance(default, tuple):
        if _is_integer(group_size):
            group_size = (group_size, group_size)
        try:
            group_size = tuple(group_size)
        except TypeError:
            raise ValueError(f"group size must be two positive integers, got {group_size!r}") from None
        if len(group_size) != 2 or not all(_is_integer(g) and g > 0 for g in group_size):
            raise ValueError(f"group size must be two positive integers, got {group_size}")
        return tuple(int(g) for g in group_size)
    if not _is_integer(group_size):
        raise ValueError(f"variant {variant} takes a single strip length, got {group_size!r}")
    if group_size <= 0:
        raise ValueError(f"group size must be positive, got {group_size}")
    return int(group_size)


def check_frame(frame):
    if frame.ndim != 3 or frame.shape[2] != CHANNELS:
        raise ValueError(f"expected an (height, width, {CHANNELS}) frame, got shape {frame.shape}")
    if frame.shape[0] == 0 or frame.shape[1] == 0:
        raise ValueError("cannot blur an empty frame")
    # 8-bit frames are rescaled to [0, 1], float frames are taken as already normalized
    if frame.dtype != np.uint8 and not np.issubdtype(frame.dtype, np.floating):
        raise ValueError(f"frame must be uint8 or floating point, got {frame.dtype}")


def gaussian_blur(frame, variant=DEFAULT_VARIANT, radius=RADIUS, sigma=SIGMA, group_size=None,
                  output=None, stream=0):
    """
    Blur an RGBA frame with a (2 * radius + 1) tap gaussian.

    `frame` is (height, width, 4), uint8 or normalized float. The result is a
    float32 frame of the same size; when `output` is given it is written there
    (it must have the same width and height, must not overlap `frame`, and
    must be uint8 or floating point; uint8 outputs are rounded to 8 bits).    Borders are clamped to the edge.
    """
    if variant not in VARIANTS:
        raise ValueError(f"unknown variant {variant!r}, expected one of {', '.join(VARIANTS)}")
    check_frame(frame)
    if output is not None:
        check_dimensions(frame, output)
        check_not_aliased(frame, output)
        check_frame(output)

    blur, _, packed = VARIANTS[variant]
    group_size = _group_size(variant, group_size)
    coefficients = gaussian_coefficients(radius, sigma)
    height, width = frame.shape[0], frame.shape[1]

    logger.info(f"Gaussian blur {variant}: {width}x{height}, radius {radius}, sigma {sigma}, group {group_size}")

    source = pack_image(frame) if packed else np.ascontiguousarray(to_float(frame))
    d_frame = cuda.to_device(source, stream=stream)
    d_output = cuda.device_array((height, width, CHANNELS), dtype=np.float32, stream=stream)

    blur(d_frame, d_output, coefficients, group_size=group_size, stream=stream)

    result = d_output.copy_to_host()
    if output is None:
        return result
    # uint8 outputs get the same rounding as the packed format
    output[...] = to_uint8(result) if output.dtype == np.uint8 else result
    return output
