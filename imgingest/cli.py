"""
Command Line Interface for product image ingestion.
"""

import argparse
import asyncio
import logging
from typing import List, Optional

import urllib3

from .config import IngestConfig, TargetFormat
from .decoder import Decoder
from .errors import ConfigError, DecodeError
from .ingestion_progress import IngestionProgress
from .ingestion_stats import IngestionStats
from .item import ItemStatus
from .reporter import Reporter
from .s3_client import S3Client
from .s3_config import S3Config
from .source_file import SourceFile
from .transform_spec import TransformSpec
from .transformer import plan_transform
from .transport import LocalTransport, S3Transport, SimulatedTransport, Transport
from .uploader import ImageUploader


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('imgingest')


def get_s3_config(args: argparse.Namespace) -> S3Config:
    """Get S3 configuration from environment and CLI overrides."""
    config = S3Config.from_env()

    if getattr(args, 's3_endpoint', None):
        config.endpoint = args.s3_endpoint
    if getattr(args, 's3_bucket', None):
        config.bucket = args.s3_bucket
    if getattr(args, 's3_prefix', None):
        config.prefix = args.s3_prefix
    if getattr(args, 's3_access_key', None):
        config.access_key = args.s3_access_key
    if getattr(args, 's3_secret_key', None):
        config.secret_key = args.s3_secret_key

    return config


def get_transport(args: argparse.Namespace, logger: logging.Logger) -> Transport:
    """
    Pick the upload transport from the arguments.

    Raises:
        ValueError: If S3 was requested but its configuration is incomplete
    """
    if args.output_dir:
        logger.info(f"Storage: Local filesystem ({args.output_dir}/{args.prefix})")
        return LocalTransport(args.output_dir, prefix=args.prefix, logger=logger)

    if args.s3:
        config = get_s3_config(args)
        errors = config.validate()
        if errors:
            for error in errors:
                logger.error(error)
            raise ValueError("S3 configuration invalid")
        if not config.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        logger.info(f"Storage: S3 ({config.endpoint}, bucket {config.bucket}/{config.prefix})")
        return S3Transport(S3Client(config, logger), logger=logger)

    logger.info("Storage: none (simulated upload)")
    return SimulatedTransport(interval=args.simulate_interval, logger=logger)


def get_ingest_config(args: argparse.Namespace) -> IngestConfig:
    """Build ingestion settings from INGEST_* variables and CLI overrides."""
    config = IngestConfig.from_env()
    overrides = {
        'max_items': args.max_items,
        'max_file_size_mb': args.max_file_size_mb,
        'target_format': args.format,
        'default_quality': args.quality,
        'max_width': args.max_width,
    }
    kwargs = {
        'max_items': config.max_items,
        'max_file_size_mb': config.max_file_size_mb,
        'accepted_media_types': config.accepted_media_types,
        'target_format': config.target_format,
        'default_quality': config.default_quality,
        'max_width': config.max_width,
        'default_square_crop': config.default_square_crop or args.square,
    }
    kwargs.update({k: v for k, v in overrides.items() if v is not None})
    return IngestConfig(**kwargs)


async def run_ingest(uploader: ImageUploader, files: List[SourceFile], rotate: int = 0) -> IngestionStats:
    """Ingest one batch, then rotate every completed item by ``rotate`` degrees."""
    stats = await uploader.ingest(files)
    if rotate % 360:
        for item in uploader.items:
            if item.status is ItemStatus.COMPLETED:
                await uploader.rotate(item.id, rotate)
    return stats


def add_storage_arguments(parser: argparse.ArgumentParser) -> None:
    """Add upload destination arguments to a parser."""
    local_group = parser.add_argument_group('Local Storage')
    local_group.add_argument('--output-dir', metavar='PATH',
                             help='Upload into a local directory')
    local_group.add_argument('--prefix', default='products',
                             help='Prefix within the output directory (default: products)')

    s3_group = parser.add_argument_group('S3 Storage')
    s3_group.add_argument('--s3', action='store_true', help='Upload to S3 (configured via S3_* variables)')
    s3_group.add_argument('--s3-endpoint', help='Override S3_ENDPOINT')
    s3_group.add_argument('--s3-bucket', help='Override S3_BUCKET')
    s3_group.add_argument('--s3-prefix', help='Override S3_PREFIX')
    s3_group.add_argument('--s3-access-key', help='Override S3_ACCESS_KEY')
    s3_group.add_argument('--s3-secret-key', help='Override S3_SECRET_KEY')


def cmd_ingest(args: argparse.Namespace) -> int:
    """Execute ingest command."""
    logger = setup_logging(args.verbose)

    try:
        if args.rotate % 90:
            raise ValueError(f"rotation must be a multiple of 90 (got {args.rotate})")
        config = get_ingest_config(args)
        transport = get_transport(args, logger)
    except (ConfigError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logger.info(
        f"Output: {config.target_format.name} q={config.default_quality} "
        f"max width {config.max_width}px{' (square)' if config.default_square_crop else ''}"
    )

    try:
        files = [SourceFile.from_path(p) for p in args.files]
    except OSError as e:
        logger.error(f"Cannot read input: {e}")
        return 1

    progress = None
    if not args.quiet:
        progress = IngestionProgress(show_files=args.show_files, logger=logger)

    uploader = ImageUploader(config, transport=transport, progress=progress, logger=logger)

    try:
        stats = asyncio.run(run_ingest(uploader, files, args.rotate))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    if args.save_dir:
        for item in uploader.items:
            if item.handle is not None:
                uploader.save_as(args.save_dir, item.id)

    if not args.quiet:
        print()
        reporter = Reporter()
        reporter.report_batch(stats)
        if not stats.rejected:
            print()
            reporter.report_collection(uploader.collection, config.max_items)

    if stats.rejected or stats.failed:
        return 1
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Execute inspect command: print transform geometry without encoding."""
    logger = setup_logging(args.verbose)

    try:
        spec = TransformSpec(
            max_width=args.max_width,
            quality=1.0,
            target_format=TargetFormat.PNG,
            rotation_degrees=args.rotate,
            square_crop=args.square,
        )
    except ValueError as e:
        logger.error(f"Invalid transform: {e}")
        return 1

    decoder = Decoder(logger=logger)
    plans = []
    status = 0
    for filepath in args.files:
        try:
            source = SourceFile.from_path(filepath)
            raster = decoder.decode(source.data)
        except (OSError, DecodeError) as e:
            logger.error(f"{filepath}: {e}")
            status = 1
            continue
        plans.append((source.name, raster.size, plan_transform(raster.width, raster.height, spec)))

    Reporter().report_plans(plans, spec)
    return status


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='imgingest',
        description='Product image ingestion: validate, resize, crop, rotate, re-encode and upload',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m imgingest ingest photo1.jpg photo2.png --output-dir ./uploads
  python -m imgingest ingest photo.jpg --format jpeg --quality 0.9 --square --save-dir ./out
  python -m imgingest inspect photo.jpg --max-width 800 --rotate 90

Configuration:
  INGEST_* variables set the defaults; S3_* variables configure --s3.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Ingest command
    ingest_parser = subparsers.add_parser('ingest', help='Process and upload a batch of images')
    ingest_parser.add_argument('files', nargs='+', help='Image files (one batch)')
    ingest_parser.add_argument('-w', '--max-width', type=int, help='Maximum output width (default: 1280)')
    ingest_parser.add_argument('--quality', type=float, help='Lossy quality in [0, 1] (default: 0.8)')
    ingest_parser.add_argument('-f', '--format', choices=['webp', 'jpeg', 'png'],
                               help='Output format (default: webp)')
    ingest_parser.add_argument('--square', action='store_true', help='Centered square crop')
    ingest_parser.add_argument('-r', '--rotate', type=int, default=0,
                               help='Rotate each image clockwise after upload (multiple of 90; applies to --save-dir output)')
    ingest_parser.add_argument('--max-items', type=int, help='Collection size limit (default: 10)')
    ingest_parser.add_argument('--max-file-size-mb', type=float, help='Per-file limit in MB (default: 5)')
    ingest_parser.add_argument('--save-dir', metavar='PATH',
                               help='Also save every processed image here under its display name')
    ingest_parser.add_argument('--simulate-interval', type=float, default=0.0,
                               help='Seconds per simulated progress step when no storage is given')
    ingest_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')
    ingest_parser.add_argument('--show-files', action='store_true',
                               help='Print each file as processed with result')
    ingest_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_storage_arguments(ingest_parser)

    # Inspect command
    inspect_parser = subparsers.add_parser('inspect', help='Show transform geometry without encoding')
    inspect_parser.add_argument('files', nargs='+', help='Image files')
    inspect_parser.add_argument('-w', '--max-width', type=int, default=1280, help='Maximum output width')
    inspect_parser.add_argument('--square', action='store_true', help='Centered square crop')
    inspect_parser.add_argument('-r', '--rotate', type=int, default=0, help='Clockwise rotation (multiple of 90)')
    inspect_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'ingest':
        return cmd_ingest(parsed_args)
    elif parsed_args.command == 'inspect':
        return cmd_inspect(parsed_args)

    return 1
