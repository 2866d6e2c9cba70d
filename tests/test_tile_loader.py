import numpy as np
import pytest
from numba import cuda

from Filters.ColorPacking import pack_image
from Filters.TileLoader import load_strip, load_strip_packed, load_tile, loads_per_thread

TILE = 4
RADIUS = 2
CACHE = TILE + 2 * RADIUS
LOAD = (CACHE + TILE - 1) // TILE


@cuda.jit
def dump_tile(frame, out, origin_x, origin_y):
    cache = cuda.shared.array((CACHE, CACHE, 4), dtype=np.float32)
    tx = cuda.threadIdx.x
    ty = cuda.threadIdx.y
    load_tile(cache, frame, origin_x, origin_y, tx * LOAD, ty * LOAD, LOAD, LOAD)
    cuda.syncthreads()
    # Read back slots loaded by other threads
    for ly in range(ty, CACHE, TILE):
        for lx in range(tx, CACHE, TILE):
            for c in range(4):
                out[ly, lx, c] = cache[ly, lx, c]


@cuda.jit
def dump_strip(frame, out, origin, fixed, horizontal):
    cache = cuda.shared.array((CACHE, 4), dtype=np.float32)
    t = cuda.threadIdx.x
    load_strip(cache, frame, origin, t * LOAD, LOAD, fixed, horizontal)
    cuda.syncthreads()
    for local in range(t, CACHE, TILE):
        for c in range(4):
            out[local, c] = cache[local, c]


@cuda.jit
def dump_strip_packed(frame, out, origin, fixed, horizontal):
    cache = cuda.shared.array(CACHE, dtype=np.uint32)
    t = cuda.threadIdx.x
    load_strip_packed(cache, frame, origin, t * LOAD, LOAD, fixed, horizontal)
    cuda.syncthreads()
    for local in range(t, CACHE, TILE):
        out[local] = cache[local]


def expected_tile(frame, origin_x, origin_y):
    ys = np.clip(np.arange(origin_y, origin_y + CACHE), 0, frame.shape[0] - 1)
    xs = np.clip(np.arange(origin_x, origin_x + CACHE), 0, frame.shape[1] - 1)
    return frame[np.ix_(ys, xs)]


@pytest.mark.parametrize("tile, radius, expected", [(16, 16, 3), (64, 16, 2), (4, 3, 3), (4, 2, 2), (1, 0, 1), (8, 0, 1)])
def test_loads_cover_tile_and_halo(tile, radius, expected):
    load = loads_per_thread(tile, radius)
    assert load == expected
    assert load * tile >= tile + 2 * radius


@pytest.mark.parametrize("origin", [(-RADIUS, -RADIUS), (2, 1), (3, 4)])
def test_tile_is_clamped_to_edge(random_frame, origin):
    frame = random_frame(6, 7)
    d_out = cuda.device_array((CACHE, CACHE, 4), dtype=np.float32)

    dump_tile[1, (TILE, TILE)](cuda.to_device(frame), d_out, origin[0], origin[1])

    np.testing.assert_array_equal(d_out.copy_to_host(), expected_tile(frame, *origin))


def test_corner_tile_duplicates_edge_pixel(random_frame):
    frame = random_frame(5, 5)
    d_out = cuda.device_array((CACHE, CACHE, 4), dtype=np.float32)

    dump_tile[1, (TILE, TILE)](cuda.to_device(frame), d_out, -RADIUS, -RADIUS)

    cache = d_out.copy_to_host()
    for ly in range(RADIUS + 1):
        for lx in range(RADIUS + 1):
            np.testing.assert_array_equal(cache[ly, lx], frame[0, 0])


@pytest.mark.parametrize("horizontal", [True, False])
def test_strip_is_clamped_to_edge(random_frame, horizontal):
    frame = random_frame(6, 5)
    d_out = cuda.device_array((CACHE, 4), dtype=np.float32)

    dump_strip[1, TILE](cuda.to_device(frame), d_out, 3, 2, horizontal)

    positions = np.arange(3, 3 + CACHE)
    if horizontal:
        expected = frame[2, np.clip(positions, 0, frame.shape[1] - 1)]
    else:
        expected = frame[np.clip(positions, 0, frame.shape[0] - 1), 2]
    np.testing.assert_array_equal(d_out.copy_to_host(), expected)


@pytest.mark.parametrize("horizontal", [True, False])
def test_packed_strip_is_clamped_to_edge(random_frame, horizontal):
    packed = pack_image(random_frame(7, 6, dtype=np.uint8))
    d_out = cuda.device_array(CACHE, dtype=np.uint32)

    dump_strip_packed[1, TILE](cuda.to_device(packed), d_out, -RADIUS, 1, horizontal)

    positions = np.clip(np.arange(-RADIUS, CACHE - RADIUS), 0, None)
    expected = packed[1, positions] if horizontal else packed[positions, 1]
    np.testing.assert_array_equal(d_out.copy_to_host(), expected)
