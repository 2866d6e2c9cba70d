from numba import cuda

CHANNELS = 4    # RGBA


@cuda.jit(device=True)
def clamp_coord(coord, size):
    # Clamp-to-edge: used both when filling the cache and when sampling taps
    return min(max(coord, 0), size - 1)


@cuda.jit(device=True)
def load_tile(cache, frame, origin_x, origin_y, first_x, first_y, load_x, load_y):
    """
    Copy this thread's share of a 2D tile plus halo into the shared cache.

    The cache covers the image region starting at (origin_x, origin_y). Every
    thread fills the load_x * load_y slots starting at (first_x, first_y), slots
    past the end of the cache are skipped and out of image sources are clamped.
    """
    height = frame.shape[0]
    width = frame.shape[1]
    for j in range(load_y):
        local_y = first_y + j
        if local_y < cache.shape[0]:
            py = clamp_coord(origin_y + local_y, height)
            for i in range(load_x):
                local_x = first_x + i
                if local_x < cache.shape[1]:
                    px = clamp_coord(origin_x + local_x, width)
                    for c in range(CHANNELS):
                        cache[local_y, local_x, c] = frame[py, px, c]


@cuda.jit(device=True)
def strip_source(frame, origin, local, fixed, horizontal):
    # Image coordinates (y, x) of a strip cache slot
    if horizontal:
        return fixed, clamp_coord(origin + local, frame.shape[1])
    return clamp_coord(origin + local, frame.shape[0]), fixed


@cuda.jit(device=True)
def load_strip(cache, frame, origin, first, load, fixed, horizontal):
    """1D tile plus halo of an RGBA frame, along a row (horizontal) or a column."""
    for i in range(load):
        local = first + i
        if local < cache.shape[0]:
            py, px = strip_source(frame, origin, local, fixed, horizontal)
            for c in range(CHANNELS):
                cache[local, c] = frame[py, px, c]


@cuda.jit(device=True)
def load_strip_packed(cache, frame, origin, first, load, fixed, horizontal):
    """Same as load_strip for a packed uint32 frame, one cache slot per pixel."""
    for i in range(load):
        local = first + i
        if local < cache.shape[0]:
            py, px = strip_source(frame, origin, local, fixed, horizontal)
            cache[local] = frame[py, px]


def loads_per_thread(tile, radius):
    """Cache slots each thread fills along one axis: ceil((tile + 2M) / tile)."""
    return (tile + 2 * radius + tile - 1) // tile
