"""
Separable tiled blur: a horizontal pass into an intermediate image, then a
vertical pass out of it. Each workgroup convolves a 1D strip of `group_size`
pixels from a shared cache of group_size + 2M pixels.

Two flavours share the same structure:
  * float cache: the intermediate image and the cache hold RGBA floats.
  * compact cache: the intermediate image and the cache hold one packed uint32
    per pixel (see Filters.ColorPacking), a quarter of the shared memory traffic
    for an 8-bit quantization of the intermediate.
"""

import functools

import numpy as np
from numba import cuda

from Filters.ColorPacking import pack_rgba8, unpack_rgba8
from Filters.GaussianCoefficients import as_constant, kernel_radius
from Filters.PassSequencer import BlurPass, dispatch_grid, run_passes
from Filters.TileLoader import CHANNELS, clamp_coord, load_strip, load_strip_packed, loads_per_thread

SEPARABLE_GROUP_SIZE = 64


@cuda.jit(device=True)
def strip_position(horizontal):
    # (pixel position along the strip, fixed coordinate, strip index) of this thread
    x, y = cuda.grid(2)
    if horizontal:
        return x, y, cuda.threadIdx.x, cuda.blockIdx.x
    return y, x, cuda.threadIdx.y, cuda.blockIdx.y


@cuda.jit(device=True)
def convolve_strip(cache, coeffs, pos, extent, origin):
    n = coeffs.shape[0]
    radius = n // 2
    r = 0.0
    g = 0.0
    b = 0.0
    a = 0.0
    for i in range(n):
        local = clamp_coord(pos + i - radius, extent) - origin
        w = coeffs[i]
        r += w * cache[local, 0]
        g += w * cache[local, 1]
        b += w * cache[local, 2]
        a += w * cache[local, 3]
    return r, g, b, a


@cuda.jit(device=True)
def convolve_strip_packed(cache, coeffs, pos, extent, origin):
    n = coeffs.shape[0]
    radius = n // 2
    r = 0.0
    g = 0.0
    b = 0.0
    a = 0.0
    for i in range(n):
        local = clamp_coord(pos + i - radius, extent) - origin
        w = coeffs[i]
        cr, cg, cb, ca = unpack_rgba8(cache[local])
        r += w * cr
        g += w * cg
        b += w * cb
        a += w * ca
    return r, g, b, a


@cuda.jit(device=True)
def store_rgba(result, y, x, r, g, b, a):
    result[y, x, 0] = r
    result[y, x, 1] = g
    result[y, x, 2] = b
    result[y, x, 3] = a


@cuda.jit(device=True)
def store_packed(result, y, x, r, g, b, a):
    result[y, x] = pack_rgba8(r, g, b, a)


@functools.lru_cache(maxsize=None)
def make_gaussian_filter_separable_lds(coefficients, group_size=SEPARABLE_GROUP_SIZE):
    """Float cache pass kernel, launched once with horizontal=True and once with False."""
    radius = kernel_radius(coefficients)
    cache_size = group_size + 2 * radius
    load = loads_per_thread(group_size, radius)
    weights = np.asarray(coefficients, dtype=np.float32)

    @cuda.jit
    def gaussian_filter_separable_lds(frame, result, horizontal):
        coeffs = cuda.const.array_like(weights)
        cache = cuda.shared.array((cache_size, CHANNELS), dtype=np.float32)

        pos, fixed, local_id, strip = strip_position(horizontal)
        extent = frame.shape[1] if horizontal else frame.shape[0]
        origin = strip * group_size - radius

        load_strip(cache, frame, origin, local_id * load, load, fixed, horizontal)
        cuda.syncthreads()

        if pos < extent and fixed < (frame.shape[0] if horizontal else frame.shape[1]):
            r, g, b, a = convolve_strip(cache, coeffs, pos, extent, origin)
            if horizontal:
                store_rgba(result, fixed, pos, r, g, b, a)
            else:
                store_rgba(result, pos, fixed, r, g, b, a)

    return gaussian_filter_separable_lds


def _make_compact_pass(weights, radius, group_size, store):
    cache_size = group_size + 2 * radius
    load = loads_per_thread(group_size, radius)

    @cuda.jit
    def gaussian_filter_separable_lds_compact(frame, result, horizontal):
        coeffs = cuda.const.array_like(weights)
        cache = cuda.shared.array(cache_size, dtype=np.uint32)

        pos, fixed, local_id, strip = strip_position(horizontal)
        extent = frame.shape[1] if horizontal else frame.shape[0]
        origin = strip * group_size - radius

        load_strip_packed(cache, frame, origin, local_id * load, load, fixed, horizontal)
        cuda.syncthreads()

        if pos < extent and fixed < (frame.shape[0] if horizontal else frame.shape[1]):
            r, g, b, a = convolve_strip_packed(cache, coeffs, pos, extent, origin)
            if horizontal:
                store(result, fixed, pos, r, g, b, a)
            else:
                store(result, pos, fixed, r, g, b, a)

    return gaussian_filter_separable_lds_compact


@functools.lru_cache(maxsize=None)
def make_gaussian_filter_separable_lds_compact(coefficients, group_size=SEPARABLE_GROUP_SIZE):
    """
    Packed cache kernels: (packed -> packed, packed -> float RGBA).

    The first one writes the packed intermediate image, the second one reads it
    and writes the final float image.
    """
    radius = kernel_radius(coefficients)
    weights = np.asarray(coefficients, dtype=np.float32)
    return (
        _make_compact_pass(weights, radius, group_size, store_packed),
        _make_compact_pass(weights, radius, group_size, store_rgba),
    )


def separable_passes(name, kernels, d_frame, d_intermediate, d_output, group_size):
    height, width = d_frame.shape[0], d_frame.shape[1]
    horizontal_block = (group_size, 1)
    vertical_block = (1, group_size)
    horizontal_kernel, vertical_kernel = kernels
    return [
        BlurPass(f"{name}:horizontal", horizontal_kernel, dispatch_grid(width, height, horizontal_block),
                 horizontal_block, d_frame, d_intermediate, (True,)),
        BlurPass(f"{name}:vertical", vertical_kernel, dispatch_grid(width, height, vertical_block),
                 vertical_block, d_intermediate, d_output, (False,)),
    ]


def gaussian_blur_separable_lds(d_frame, d_output, coefficients, group_size=SEPARABLE_GROUP_SIZE, stream=0):
    kernel = make_gaussian_filter_separable_lds(as_constant(coefficients), group_size)
    d_intermediate = cuda.device_array(d_frame.shape, dtype=np.float32, stream=stream)
    passes = separable_passes("separable_lds", (kernel, kernel), d_frame, d_intermediate, d_output, group_size)
    run_passes(passes, stream)


def gaussian_blur_separable_lds_compact(d_packed, d_output, coefficients, group_size=SEPARABLE_GROUP_SIZE,
                                        stream=0):
    """`d_packed` is the (H, W) uint32 input; `d_output` the (H, W, 4) float result."""
    kernels = make_gaussian_filter_separable_lds_compact(as_constant(coefficients), group_size)
    d_intermediate = cuda.device_array(d_packed.shape[:2], dtype=np.uint32, stream=stream)
    passes = separable_passes("separable_lds_compact", kernels, d_packed, d_intermediate, d_output, group_size)
    run_passes(passes, stream)
