"""
Ordering of the blur dispatches.

A blur is one pass (2D kernels) or two dependent passes (separable kernels,
horizontal then vertical). Inside a pass the threads of a workgroup meet at
cuda.syncthreads() between loading their tile and convolving it. Between two
passes the whole previous dispatch has to retire before the next one reads its
output, because the halo of a tile is written by other workgroups.
"""

import logging
import math
from collections import namedtuple

import numpy as np
from numba import cuda

from Filters.errors import AliasingError, DimensionMismatchError

logger = logging.getLogger(__name__)


BlurPass = namedtuple(
    "BlurPass", ["name", "kernel", "griddim", "blockdim", "frame", "result", "args"], defaults=[()]
)


def dispatch_grid(width, height, blockdim):
    """Number of workgroups needed to cover a width x height image."""
    return (math.ceil(width / blockdim[0]), math.ceil(height / blockdim[1]))


def check_dimensions(frame, result):
    if frame.shape[:2] != result.shape[:2]:
        raise DimensionMismatchError(
            f"input is {frame.shape[1]}x{frame.shape[0]} but output is {result.shape[1]}x{result.shape[0]}"
        )


def data_pointer(array):
    interface = getattr(array, "__cuda_array_interface__", None)
    if interface is None:
        return None
    return interface["data"][0]


def same_storage(a, b):
    if a is b:
        return True
    if isinstance(a, np.ndarray) and isinstance(b, np.ndarray):
        return np.shares_memory(a, b)
    pointer = data_pointer(a)
    return pointer is not None and pointer == data_pointer(b)


def check_not_aliased(frame, result):
    if same_storage(frame, result):
        raise AliasingError("a pass cannot write into the image it reads")


def pass_barrier(stream=0):
    # Every workgroup of the previous dispatch has retired and its writes are visible
    if isinstance(stream, int):
        cuda.synchronize()
    else:
        stream.synchronize()


def run_passes(passes, stream=0):
    """
    Validate then dispatch the passes in order, with a barrier after each one.

    All passes are checked before the first launch so a bad pipeline never
    leaves a half written output behind.
    """
    for blur_pass in passes:
        check_dimensions(blur_pass.frame, blur_pass.result)
        check_not_aliased(blur_pass.frame, blur_pass.result)

    for blur_pass in passes:
        logger.debug(f"Dispatch {blur_pass.name}: grid {blur_pass.griddim}, block {blur_pass.blockdim}")
        blur_pass.kernel[blur_pass.griddim, blur_pass.blockdim, stream](
            blur_pass.frame, blur_pass.result, *blur_pass.args
        )
        pass_barrier(stream)
