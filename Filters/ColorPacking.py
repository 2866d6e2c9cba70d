"""
Packing between 4 normalized float channels and one uint32 (8 bits per channel).

The byte layout is the one of an RGBA8 texel read back as a single 32 bit
unsigned integer: R in bits 0-7, G in 8-15, B in 16-23 and A in 24-31.
"""

import numpy as np
from numba import cuda


@cuda.jit(device=True)
def to_unorm8(value):
    # Clamp to [0, 1] and round to the nearest 8-bit level
    return int(min(max(value, 0.0), 1.0) * 255.0 + 0.5)


@cuda.jit(device=True)
def pack_rgba8(r, g, b, a):
    return to_unorm8(r) | (to_unorm8(g) << 8) | (to_unorm8(b) << 16) | (to_unorm8(a) << 24)


@cuda.jit(device=True)
def unpack_rgba8(packed):
    r = (packed & 0xFF) / 255.0
    g = ((packed >> 8) & 0xFF) / 255.0
    b = ((packed >> 16) & 0xFF) / 255.0
    a = ((packed >> 24) & 0xFF) / 255.0
    return r, g, b, a


def to_uint8(frame):
    """Quantize a normalized float frame to 8 bits per channel (round to nearest)."""
    if frame.dtype == np.uint8:
        return frame
    return np.floor(np.clip(frame, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def to_float(frame):
    """Normalized float32 view of an 8-bit or float frame."""
    if frame.dtype == np.uint8:
        return frame.astype(np.float32) / np.float32(255.0)
    return frame.astype(np.float32, copy=False)


def pack_image(frame):
    """(H, W, 4) frame -> (H, W) uint32 packed frame."""
    channels = to_uint8(frame).astype(np.uint32)
    return np.ascontiguousarray(
        channels[..., 0]
        | (channels[..., 1] << 8)
        | (channels[..., 2] << 16)
        | (channels[..., 3] << 24)
    )


def unpack_image(packed, dtype=np.float32):
    """(H, W) uint32 packed frame -> (H, W, 4) frame, normalized unless dtype is uint8."""
    packed = np.asarray(packed, dtype=np.uint32)
    channels = np.stack([(packed >> shift) & 0xFF for shift in (0, 8, 16, 24)], axis=-1).astype(np.uint8)
    if dtype == np.uint8:
        return channels
    return to_float(channels).astype(dtype, copy=False)
