#!/usr/bin/env python3
"""
Command-line wrapper for the BMP grayscale pipeline.
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from bmp_grayscale_pipeline import GrayscalePipeline, peek_header
from pipeline_configs import AdaptiveConfig, ConfigPresets
from pipeline_errors import NonRetryableError
from pipeline_monitoring import MetricsExporter

logger = logging.getLogger(__name__)


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Convert a 24-bit BMP image to grayscale using parallel workers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  grayscale.py photo.bmp                    # Writes photo_gray.bmp
  grayscale.py photo.bmp -o out.bmp -w 8    # Eight workers
  grayscale.py photo.bmp --preset compatibility
  grayscale.py photo.bmp --preset auto     # Size from the declared image size
  grayscale.py photo.bmp --metrics-json metrics.json
        """
    )

    parser.add_argument('input', help='Input BMP file')
    parser.add_argument('-o', '--output',
                        help='Output file (default: <input>_gray.bmp)')
    parser.add_argument('-c', '--chunk-size', type=int,
                        help='Bytes per worker chunk (default: 4095)')
    parser.add_argument('-w', '--workers', type=int,
                        help='Number of worker threads (default: CPU count)')
    parser.add_argument('--preset', default='default',
                        choices=['default', 'auto', 'compatibility', 'single_threaded', 'high_throughput'],
                        help='Configuration preset (auto sizes workers and chunks from the image)')
    parser.add_argument('--no-align', action='store_true',
                        help='Do not round the chunk size down to whole pixels')
    parser.add_argument('--strict', action='store_true',
                        help='Fail on headers that are not 24-bit uncompressed')
    parser.add_argument('--progress', action='store_true',
                        help='Show a progress bar over chunks')
    parser.add_argument('--metrics-json', type=Path,
                        help='Write stage metrics as JSON to this path')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')

    return parser.parse_args(argv)


def build_config(args):
    """Apply command line overrides to the selected preset."""
    if args.preset == 'auto':
        header = peek_header(args.input)
        config = AdaptiveConfig.auto_configure(header.file_size)
    else:
        config = ConfigPresets.get(args.preset)
    overrides = {}
    if args.chunk_size is not None:
        overrides['chunk_size'] = args.chunk_size
    if args.workers is not None:
        overrides['num_workers'] = args.workers
    if args.no_align:
        overrides['align_chunks'] = False
    if args.strict:
        overrides['validate_header'] = True
        overrides['strict_validation'] = True
    if args.progress:
        overrides['show_progress'] = True
    if args.verbose:
        overrides['log_level'] = 'DEBUG'
    return replace(config, **overrides)


def default_output_path(input_path: Path) -> Path:
    return input_path.with_name(f"{input_path.stem}_gray{input_path.suffix or '.bmp'}")


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    except NonRetryableError as e:
        print(f"Cannot read {args.input}: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else default_output_path(input_path)

    try:
        with GrayscalePipeline(config) as pipeline:
            result = pipeline.process_file(input_path, output_path)
            if args.metrics_json:
                args.metrics_json.write_text(MetricsExporter.to_json(pipeline.monitor))
                logger.info(f"Metrics written to {args.metrics_json}")
    except NonRetryableError as e:
        logger.error(f"Conversion failed: {e}", extra={'context': e.log_context()})
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted by user")
        return 1

    print(f"Wrote {result.bytes_written:,} bytes to {output_path} "
          f"in {result.elapsed_seconds:.3f}s (fingerprint {result.fingerprint})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
