"""
dropboxstore CLI - drive the Dropbox upload store from the command line.

Provides subcommands:
- dropboxstore upload: Stream a local file into a new upload and commit it
- dropboxstore info: Show the stored record for an upload
- dropboxstore finish: Commit an upload to its destination path
- dropboxstore terminate: Remove an upload's local record
- dropboxstore version: Display version information
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import aiofiles
from loguru import logger

from dropboxstore.config import Config
from dropboxstore.exceptions import DropboxStoreError
from dropboxstore.info import PATH_KEY, TOKEN_KEY, UploadInfo
from dropboxstore.store import DropboxStore


def get_version() -> str:
    """Get the package version."""
    try:
        from importlib.metadata import version

        return version("dropboxstore")
    except Exception:
        return "0.0.1"


def _build_config(args) -> Config:
    config = Config.from_env()
    if getattr(args, "token", None):
        config.token = args.token
    if getattr(args, "chunk_size", None):
        config = Config(token=config.token, chunk_size=args.chunk_size, path=config.path)
    if getattr(args, "info_dir", None):
        config.path = Path(args.info_dir).expanduser().resolve()
    return config


async def _upload(store: DropboxStore, file_path: Path, dest: str) -> str:
    metadata = {PATH_KEY: dest}
    if store.config.token:
        metadata[TOKEN_KEY] = store.config.token

    info = UploadInfo(id="", metadata=metadata, size=file_path.stat().st_size)
    upload_id = await store.new_upload(info)

    async with aiofiles.open(file_path, "rb") as f:
        await store.write_chunk(upload_id, 0, f)

    await store.finish_upload(upload_id)
    return upload_id


def cmd_upload(args):
    """Handle the 'upload' subcommand."""
    store = DropboxStore(_build_config(args))
    file_path = Path(args.file).expanduser()
    if not file_path.is_file():
        print(f"Error: not a file: {file_path}", file=sys.stderr)
        sys.exit(1)
    if not store.config.token:
        print(
            "Error: --token or DROPBOXSTORE_TOKEN is required for uploads",
            file=sys.stderr,
        )
        sys.exit(1)

    upload_id = asyncio.run(_upload(store, file_path, args.dest))
    print(upload_id)


def cmd_info(args):
    """Handle the 'info' subcommand."""
    store = DropboxStore(_build_config(args))
    info = asyncio.run(store.get_info(args.id))
    print(json.dumps(info.to_dict(), indent=2))


def cmd_finish(args):
    """Handle the 'finish' subcommand."""
    store = DropboxStore(_build_config(args))
    asyncio.run(store.finish_upload(args.id))


def cmd_terminate(args):
    """Handle the 'terminate' subcommand."""
    store = DropboxStore(_build_config(args))
    asyncio.run(store.terminate(args.id))


def cmd_version(args):
    """Handle the 'version' subcommand."""
    print(f"dropboxstore version {get_version()}")
    print(f"Python {sys.version}")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--info-dir",
        type=str,
        default=None,
        help="Directory holding .info records (default: $DROPBOXSTORE_PATH or ~/.dropboxstore)",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log per-chunk progress"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dropboxstore",
        description="dropboxstore - resumable upload store backed by Dropbox upload sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    upload_parser = subparsers.add_parser(
        "upload",
        help="Upload a local file",
        description="Create an upload session, stream FILE into it and commit it to --dest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dropboxstore upload video.mp4 --dest /videos/video.mp4
  dropboxstore upload big.iso --dest /isos/big.iso --chunk-size 16777216
  DROPBOXSTORE_TOKEN=... dropboxstore upload notes.txt --dest /notes.txt
        """,
    )
    upload_parser.add_argument("file", type=str, help="Local file to upload")
    upload_parser.add_argument(
        "--dest", type=str, required=True, help="Destination path in Dropbox"
    )
    upload_parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="Dropbox access token (default: $DROPBOXSTORE_TOKEN)",
    )
    upload_parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Bytes per append call (default: $DROPBOXSTORE_CHUNK_SIZE or 8 MiB)",
    )
    _add_common_arguments(upload_parser)
    upload_parser.set_defaults(func=cmd_upload)

    for name, func, help_text in (
        ("info", cmd_info, "Show the stored record for an upload (token removed)"),
        ("finish", cmd_finish, "Commit an upload to its destination path"),
        ("terminate", cmd_terminate, "Delete an upload's local record"),
    ):
        sub = subparsers.add_parser(name, help=help_text, description=help_text)
        sub.add_argument("id", type=str, help="Upload id")
        _add_common_arguments(sub)
        sub.set_defaults(func=func)

    version_parser = subparsers.add_parser(
        "version",
        help="Display version information",
        description="Display dropboxstore version and Python version",
    )
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(
        lambda message: sys.stderr.write(message),
        level="DEBUG" if getattr(args, "verbose", False) else "INFO",
    )

    try:
        args.func(args)
    except (DropboxStoreError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
