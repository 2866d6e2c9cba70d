import functools

import numpy as np
from numba import cuda

from Filters.GaussianCoefficients import as_constant, kernel_radius
from Filters.PassSequencer import BlurPass, dispatch_grid, run_passes
from Filters.TileLoader import CHANNELS, clamp_coord, load_tile, loads_per_thread

GROUP_SIZE = (16, 16)  # Size of the shared memory tile (output pixels per workgroup)


@functools.lru_cache(maxsize=None)
def make_gaussian_filter_lds(coefficients, group_size=GROUP_SIZE):
    """
    Compile the 2D tiled blur for one coefficient table and one tile size.

    Shared arrays need a shape known at compile time, so the radius and the tile
    size are baked into the kernel as closure constants. `coefficients` must be
    hashable (see as_constant).
    """
    radius = kernel_radius(coefficients)
    n = 2 * radius + 1
    tile_x, tile_y = group_size
    cache_x = tile_x + 2 * radius
    cache_y = tile_y + 2 * radius
    load_x = loads_per_thread(tile_x, radius)
    load_y = loads_per_thread(tile_y, radius)
    weights = np.asarray(coefficients, dtype=np.float32)

    @cuda.jit
    def gaussian_filter_lds(frame, result):
        coeffs = cuda.const.array_like(weights)
        # Tile plus halo, shared by the workgroup
        cache = cuda.shared.array((cache_y, cache_x, CHANNELS), dtype=np.float32)

        tx = cuda.threadIdx.x
        ty = cuda.threadIdx.y
        x, y = cuda.grid(2)
        height = frame.shape[0]
        width = frame.shape[1]

        # Image coordinates of cache[0, 0]
        origin_x = cuda.blockIdx.x * tile_x - radius
        origin_y = cuda.blockIdx.y * tile_y - radius

        # Threads outside the image still take part in the load and the barrier
        load_tile(cache, frame, origin_x, origin_y, tx * load_x, ty * load_y, load_x, load_y)

        # Wait for all threads to finish loading
        cuda.syncthreads()

        if x < width and y < height:
            for c in range(CHANNELS):
                acc = 0.0
                for j in range(n):
                    local_y = clamp_coord(y + j - radius, height) - origin_y
                    for i in range(n):
                        local_x = clamp_coord(x + i - radius, width) - origin_x
                        acc += coeffs[i] * coeffs[j] * cache[local_y, local_x, c]
                result[y, x, c] = acc

    return gaussian_filter_lds


def gaussian_blur_lds(d_frame, d_output, coefficients, group_size=GROUP_SIZE, stream=0):
    """Single pass 2D blur through the workgroup shared cache."""
    kernel = make_gaussian_filter_lds(as_constant(coefficients), tuple(group_size))
    height, width = d_frame.shape[0], d_frame.shape[1]
    blur = BlurPass("lds", kernel, dispatch_grid(width, height, group_size), tuple(group_size), d_frame, d_output)
    run_passes([blur], stream)
