"""
Command-line interface for the upload pipeline.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .batch import BatchUploader
from .config import UploadSettings, load_settings
from .deletion import remove_files
from .progress import ProgressChannel, ProgressTracker
from .scanner import FileScanner, IMAGE_CONTENT_TYPES, MAX_FILE_SIZE, validate_file
from .storage import S3Storage
from .uploader import FileUploader

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: Whether to enable debug logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_storage(settings: UploadSettings) -> S3Storage:
    """Create the S3 backend described by the settings."""
    return S3Storage(
        region=settings.region,
        endpoint_url=settings.endpoint_url,
        public_base_url=settings.public_base_url
    )


def collect_paths(sources: List[str], pattern: str) -> List[Path]:
    """Expand folders into the files they contain."""
    scanner = FileScanner()
    paths: List[Path] = []
    for source in sources:
        path = Path(source)
        if path.is_dir():
            paths.extend(scanner.scan_folder(path, pattern))
        else:
            paths.append(path)
    return paths


def log_progress(progress) -> None:
    if progress.error:
        logger.warning(f"{progress.file_name}: {progress.status.value} ({progress.error})")
    else:
        logger.debug(f"{progress.file_name}: {progress.status.value} {progress.progress}%")


async def run_upload(args: argparse.Namespace, settings: UploadSettings) -> int:
    """Handle the upload command.

    Args:
        args: Command line arguments
        settings: Loaded settings
    """
    scanner = FileScanner()
    files = scanner.load_many(collect_paths(args.files, args.pattern))

    allowed_types = None if args.allow_any_type else IMAGE_CONTENT_TYPES
    max_size = int(args.max_size * 1024 * 1024)
    for file in files:
        validate_file(file, allowed_types=allowed_types, max_size=max_size)

    channel = ProgressChannel()
    channel.subscribe(log_progress)

    uploader = FileUploader(create_storage(settings), settings)
    batch = BatchUploader(uploader, tracker=ProgressTracker(log_dir=settings.log_dir))
    results = await batch.upload_many(
        files,
        args.bucket,
        folder=args.folder,
        on_progress=channel,
        concurrency=args.concurrency
    )

    for result in results:
        print(result.url)
    return 0


async def run_delete(args: argparse.Namespace, settings: UploadSettings) -> int:
    """Handle the delete command.

    Args:
        args: Command line arguments
        settings: Loaded settings
    """
    await remove_files(create_storage(settings), args.paths, args.bucket)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Batch upload files to object storage")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose logging")
    parser.add_argument('-c', '--config', type=Path,
                        help="Path to config file")

    subparsers = parser.add_subparsers(dest='command', required=True)

    # Upload command
    upload_parser = subparsers.add_parser('upload',
                                          help="Upload files or folders")
    upload_parser.add_argument('bucket', type=str,
                               help="Destination bucket")
    upload_parser.add_argument('files', nargs='+',
                               help="Files or folders to upload")
    upload_parser.add_argument('-f', '--folder', type=str,
                               help="Folder inside the bucket")
    upload_parser.add_argument('-p', '--pattern', type=str, default="*",
                               help="File pattern used for folders")
    upload_parser.add_argument('--concurrency', type=int,
                               help="Maximum concurrent uploads")
    upload_parser.add_argument('--max-size', type=float,
                               default=MAX_FILE_SIZE / (1024 * 1024),
                               help="Maximum file size in MB")
    upload_parser.add_argument('--allow-any-type', action='store_true',
                               help="Accept files that are not images")

    # Delete command
    delete_parser = subparsers.add_parser('delete',
                                          help="Delete stored objects")
    delete_parser.add_argument('bucket', type=str,
                               help="Bucket containing the objects")
    delete_parser.add_argument('paths', nargs='+',
                               help="Storage paths to delete")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
        if args.command == 'upload':
            code = asyncio.run(run_upload(args, settings))
        elif args.command == 'delete':
            code = asyncio.run(run_delete(args, settings))
        else:
            code = 2
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    sys.exit(code)


if __name__ == '__main__':
    main()
