"""GoPlaces command-line interface with subcommands.

Usage:
    goplaces-cli extract <url-or-text> [--profile app|share_extension]
    goplaces-cli status <task_id>
    goplaces-cli result <task_id>
    goplaces-cli task-places <task_id>
    goplaces-cli collections
    goplaces-cli upload-photo <collection_id> <place_id> <file>
    goplaces-cli upload-cover <collection_id> <file>
    goplaces-cli health
"""

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path

from goplaces.client import GoPlacesClient
from goplaces.config import ClientProfile, Settings, settings
from goplaces.errors import ClientError
from goplaces.services.place_store import InMemoryPlaceStore
from goplaces.urls import extract_url_from_text


def _client(args: argparse.Namespace, config: Settings) -> GoPlacesClient:
    profile = ClientProfile(args.profile) if getattr(args, "profile", None) else None
    return GoPlacesClient.from_settings(config, profile=profile)


def _read_image(path_arg: str) -> tuple[Path, bytes, str]:
    path = Path(path_arg).resolve()
    if not path.exists():
        print(f"error: file not found: {path}", file=sys.stderr)
        sys.exit(1)
    content_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    return path, path.read_bytes(), content_type


# --- Extract subcommand ---

async def cmd_extract(args: argparse.Namespace, config: Settings) -> None:
    """Run a place extraction job and print the places."""
    url = extract_url_from_text(args.input) or args.input

    def progress_cb(progress: float, status: str) -> None:
        bar_width = 30
        filled = int(bar_width * progress)
        bar = "=" * filled + "-" * (bar_width - filled)
        print(f"\r  [{bar}] {progress*100:.0f}% {status}", end="", flush=True)

    async with _client(args, config) as client:
        print(f"Extracting places: {url}")
        message = await client.messages.get_message()
        print(f"  {message.message}")
        places = await client.orchestrator.extract_places(url, progress_callback=progress_cb)
    print()  # newline after progress bar

    summary = InMemoryPlaceStore().save_places(places)
    print(f"  Places: {summary.saved}")
    for place in places:
        line = f"  - {place.display_name} | {place.display_address}"
        if place.formatted_rating:
            line += f" | {place.formatted_rating}"
        print(line)


# --- Task subcommands ---

async def cmd_status(args: argparse.Namespace, config: Settings) -> None:
    """Print the status snapshot of a task."""
    async with _client(args, config) as client:
        status = await client.orchestrator.get_task_status(args.task_id)
    print(status.model_dump_json(indent=2))


async def cmd_result(args: argparse.Namespace, config: Settings) -> None:
    """Print the result payload of a completed task."""
    async with _client(args, config) as client:
        result = await client.orchestrator.get_task_result(args.task_id)
    print(result.model_dump_json(indent=2))


async def cmd_task_places(args: argparse.Namespace, config: Settings) -> None:
    """Print the places of a completed task, ready for selection."""
    async with _client(args, config) as client:
        places = await client.orchestrator.get_task_places(args.task_id)
    for place in places:
        print(f"  [{place.id}] {place.display_name} | {place.display_address}")


# --- Collection subcommands ---

async def cmd_collections(args: argparse.Namespace, config: Settings) -> None:
    async with _client(args, config) as client:
        collections = await client.collections.list_collections()
    for collection in collections:
        print(f"  [{collection.id}] {collection.name} ({collection.place_count_text})")


# --- Upload subcommands ---

async def cmd_upload_photo(args: argparse.Namespace, config: Settings) -> None:
    path, data, content_type = _read_image(args.file)
    async with _client(args, config) as client:
        url = await client.uploads.upload_place_photo(
            args.collection_id, args.place_id, data, filename=path.name, content_type=content_type
        )
    print(url)


async def cmd_upload_cover(args: argparse.Namespace, config: Settings) -> None:
    path, data, content_type = _read_image(args.file)
    async with _client(args, config) as client:
        url = await client.uploads.upload_collection_cover(
            args.collection_id, data, filename=path.name, content_type=content_type
        )
    print(url)


# --- Health subcommand ---

async def cmd_health(args: argparse.Namespace, config: Settings) -> None:
    async with _client(args, config) as client:
        healthy = await client.health.check()
    print("ok" if healthy else "unavailable")
    if not healthy:
        sys.exit(1)


_COMMANDS = {
    "extract": cmd_extract,
    "status": cmd_status,
    "result": cmd_result,
    "task-places": cmd_task_places,
    "collections": cmd_collections,
    "upload-photo": cmd_upload_photo,
    "upload-cover": cmd_upload_cover,
    "health": cmd_health,
}


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--profile",
        choices=[p.value for p in ClientProfile],
        help="Client profile (default: GOPLACES_PROFILE or app)",
    )
    common.add_argument("--api-url", type=str, help="API base URL (default: GOPLACES_API_BASE_URL)")

    parser = argparse.ArgumentParser(
        prog="goplaces-cli",
        description="GoPlaces - extract places from shared links",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- extract ---
    p_extract = subparsers.add_parser("extract", parents=[common], help="Extract places from a URL or shared text")
    p_extract.add_argument("input", type=str, help="URL or text containing a URL")

    # --- status / result ---
    p_status = subparsers.add_parser("status", parents=[common], help="Show task status")
    p_status.add_argument("task_id", type=str, help="Task ID")
    p_result = subparsers.add_parser("result", parents=[common], help="Show task result")
    p_result.add_argument("task_id", type=str, help="Task ID")
    p_places = subparsers.add_parser("task-places", parents=[common], help="Show places of a completed task")
    p_places.add_argument("task_id", type=str, help="Task ID")

    # --- collections ---
    subparsers.add_parser("collections", parents=[common], help="List collections")

    # --- uploads ---
    p_photo = subparsers.add_parser("upload-photo", parents=[common], help="Upload a place photo")
    p_photo.add_argument("collection_id", type=str, help="Collection ID")
    p_photo.add_argument("place_id", type=str, help="Place ID")
    p_photo.add_argument("file", type=str, help="Image file")
    p_cover = subparsers.add_parser("upload-cover", parents=[common], help="Upload a collection cover image")
    p_cover.add_argument("collection_id", type=str, help="Collection ID")
    p_cover.add_argument("file", type=str, help="Image file")

    # --- health ---
    subparsers.add_parser("health", parents=[common], help="Check API availability")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = settings
    if args.api_url:
        config = config.model_copy(update={"api_base_url": args.api_url})

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(_COMMANDS[args.command](args, config))
    except ClientError as e:
        print(f"\nerror [{e.code.value}]: {e.message}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\ncancelled", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
