#!/usr/bin/env python3
"""
Perform panorama stitching of cameras around a nodal point for 360°
panorama creation.

Reads an SfM scene (views, intrinsics, poses), composites every posed
view into an equirectangular canvas and writes it as an RGBA image.
"""

import argparse
import logging
import sys
from dataclasses import replace

from .calib.stitching_config import StitchingParameters
from .compositing import composite_panorama
from .errors import StitchingError
from .image_io import write_image
from .sfm_data import load_sfm_data

logger = logging.getLogger(__name__)

VERBOSE_LEVELS = {
    'fatal': logging.CRITICAL,
    'error': logging.ERROR,
    'warning': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
    'trace': logging.DEBUG,
}


def str2bool(value):
    if isinstance(value, bool):
        return value
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise argparse.ArgumentTypeError(f"Expected a boolean value, got '{value}'")


def positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"Expected a value of at least 1, got {number}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        description='Perform panorama stitching of cameras around a nodal point '
                    'for 360° panorama creation.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default 20%% resolution, 32-bit float TIFF
  %(prog)s -i cameras.sfm -o panorama.tif

  # Fisheye rig with border masking
  %(prog)s -i cameras.sfm -o panorama.png --scaleFactor 0.5 --fisheyeMasking true

  # .exr output needs an OpenCV build with OpenEXR enabled
        """
    )

    required = parser.add_argument_group('Required parameters')
    required.add_argument('--input', '-i', required=True,
                          help='SfMData file')
    required.add_argument('--output', '-o', required=True,
                          help='Output panorama image path')

    # Defaults are None so that only explicit flags override --config
    optional = parser.add_argument_group('Optional parameters')
    optional.add_argument('--config', type=str, default=None,
                          help='Stitching parameters JSON file')
    optional.add_argument('--scaleFactor', type=float, default=None,
                          help='Scale factor to resize the output resolution (default: 0.2)')
    optional.add_argument('--fisheyeMasking', type=str2bool, default=None, metavar='BOOL',
                          help='For fisheye images, skip the invalid pixels on the borders (default: false)')
    optional.add_argument('--fisheyeMaskingMargin', type=float, default=None,
                          help='Margin for fisheye images, as a fraction of the image (default: 0.05)')
    optional.add_argument('--transitionSize', type=float, default=None,
                          help='Size of the transition between images in pixels (default: 10)')
    optional.add_argument('--panoramaSize', type=int, nargs=2, default=None,
                          metavar=('W', 'H'),
                          help='Force the output panorama size before scaling (default: 0 0 = automatic)')
    optional.add_argument('--keepContributionAlpha', action='store_true', default=None,
                          help='Keep the accumulated contribution in the alpha channel')
    optional.add_argument('--workers', type=positive_int, default=None,
                          help='Number of worker threads (default: CPU count)')

    log = parser.add_argument_group('Log parameters')
    log.add_argument('--verboseLevel', '-v', choices=list(VERBOSE_LEVELS), default='info',
                     help='Verbosity level (default: info)')
    return parser


def resolve_parameters(args):
    """Merge the optional config file with explicit command-line flags."""
    params = StitchingParameters.load_json(args.config) if args.config else StitchingParameters()
    overrides = {
        'scale_factor': args.scaleFactor,
        'fisheye_masking': args.fisheyeMasking,
        'fisheye_masking_margin': args.fisheyeMaskingMargin,
        'transition_size': args.transitionSize,
        'panorama_size': tuple(args.panoramaSize) if args.panoramaSize else None,
        'keep_contribution_alpha': args.keepContributionAlpha,
    }
    params = replace(params, **{k: v for k, v in overrides.items() if v is not None})
    return params.validate()


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=VERBOSE_LEVELS[args.verboseLevel],
                        format='%(asctime)s - %(levelname)s - %(message)s')
    logger.info("Program called with: %s", vars(args))

    try:
        params = resolve_parameters(args)
        sfm_data = load_sfm_data(args.input)
        canvas = composite_panorama(sfm_data, params, num_workers=args.workers)
        write_image(args.output, canvas.to_rgba(params.keep_contribution_alpha))
    except (StitchingError, IOError) as e:
        logger.error("%s", e)
        return 1

    print(f"Saved {canvas.width}x{canvas.height} to {args.output}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
