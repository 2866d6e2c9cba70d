import argparse
import logging
import os  # Used to get the image name
import sys

import cv2
import numpy as np
from numba import cuda

from Filters.BlurVariants import DEFAULT_VARIANT, VARIANTS, gaussian_blur
from Filters.ColorPacking import to_float, to_uint8
from Filters.GaussianCoefficients import RADIUS, SIGMA, gaussian_coefficients
from Filters.errors import BlurError
import cpu.GaussianBlur as GaussianBlur
from utils.metrics import measure_distortion

RESULTS_DIR = "results/gpu_blur"  # Directory to store the logs

logger = logging.getLogger("GaussianBlur")


def get_image_name(image_path):
    return os.path.splitext(os.path.basename(image_path))[0]


def load_frame(image_path):
    """Read an image file as a normalized float32 RGBA frame."""
    image = cv2.imread(image_path, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise FileNotFoundError(f"cannot read image {image_path}")
    if image.dtype == np.uint16:
        image = (image >> 8).astype(np.uint8)
    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    elif image.shape[2] == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    else:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return to_float(image)


def save_frame(image_path, frame):
    if not cv2.imwrite(image_path, cv2.cvtColor(to_uint8(frame), cv2.COLOR_RGBA2BGRA)):
        raise OSError(f"cannot write image {image_path}")


def parse_group_size(value):
    sizes = [int(v) for v in value.split("x")]
    if len(sizes) == 1:
        return sizes[0]
    return tuple(sizes)


def build_parser():
    parser = argparse.ArgumentParser(description="Gaussian blur of an image on the GPU")
    parser.add_argument("image", help="input image")
    parser.add_argument("-o", "--output", help="output image (default: <image>_blur.png)")
    parser.add_argument("--variant", choices=list(VARIANTS), default=DEFAULT_VARIANT)
    parser.add_argument("--radius", type=int, default=RADIUS, help="kernel half width M (N = 2M + 1 taps)")
    parser.add_argument("--sigma", type=float, default=SIGMA)
    parser.add_argument("--group-size", type=parse_group_size, default=None,
                        help="tile size: N for strips, N or WxH for 2D tiles")
    parser.add_argument("--compare", action="store_true",
                        help="compare with the CPU reference and log MSE/PSNR")
    parser.add_argument("--results-dir", default=RESULTS_DIR, help="directory for the log file")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    logger.setLevel(logging.INFO)
    if not os.path.exists(args.results_dir):
        os.makedirs(args.results_dir)  # Create the results directory if it does not exist
    image_name = get_image_name(args.image)
    handler = logging.FileHandler(f"{args.results_dir}/{image_name}_{args.variant}.log", "w")
    logger.addHandler(handler)

    try:
        # The kernels need compute shaders with shared memory: a CUDA device
        if not cuda.is_available():
            logger.error("No CUDA device available")
            return 1

        try:
            frame = load_frame(args.image)
            blurred = gaussian_blur(frame, variant=args.variant, radius=args.radius, sigma=args.sigma,
                                    group_size=args.group_size)
        except (BlurError, ValueError, OSError) as e:
            logger.error(f"Blur failed: {e}")
            return 1
        except Exception as e:
            # Compilation or launch failure on the device, e.g. a tile larger than the shared memory
            logger.error(f"Blur failed on the device: {e}")
            return 1

        output = args.output or f"{os.path.splitext(args.image)[0]}_blur.png"
        try:
            save_frame(output, blurred)
        except (OSError, cv2.error) as e:
            logger.error(f"Cannot save the result: {e}")
            return 1
        logger.info(f"Image: {image_name}, variant: {args.variant}, written to {output}")

        if args.compare:
            reference = GaussianBlur.gaussian_blur(frame, gaussian_coefficients(args.radius, args.sigma))
            mse, psnr = measure_distortion(reference, blurred)
            max_error = float(np.abs(reference - blurred).max())
            logger.info(f"Image: {image_name}, MSE: {mse}, PSNR: {psnr}, MAX ERROR: {max_error}")
        return 0
    finally:
        logger.removeHandler(handler)
        handler.close()


if __name__ == "__main__":
    sys.exit(main())
