import math

import cv2
import numpy as np

from Filters.ColorPacking import to_uint8


def measure_distortion(reference_frame, filtered_frame):
    """
    MSE and PSNR between two RGBA frames, compared on their 8-bit luminance.
    """
    if reference_frame.shape[:2] != filtered_frame.shape[:2]:
        # Resize the reference frame to match the dimensions of the filtered frame
        reference_frame = cv2.resize(reference_frame, (filtered_frame.shape[1], filtered_frame.shape[0]))

    # Convert frames to grayscale
    reference_gray = cv2.cvtColor(to_uint8(reference_frame), cv2.COLOR_RGBA2GRAY)
    filtered_gray = cv2.cvtColor(to_uint8(filtered_frame), cv2.COLOR_RGBA2GRAY)

    # Compute the Mean Squared Error (MSE) between the two frames
    mse = np.mean((reference_gray.astype(np.float64) - filtered_gray.astype(np.float64)) ** 2)

    # Compute the Peak Signal-to-Noise Ratio (PSNR)
    if mse == 0:
        psnr = float("inf")
    else:
        psnr = 20 * math.log10(255.0 / math.sqrt(mse))

    return mse, psnr
