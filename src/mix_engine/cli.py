"""
Mix Engine CLI - Command Line Interface

Subcommands:
    options   List mix options and whether their sources are linked
    generate  Compose a mix and print it
    resolve   Link unlinked catalog sources from the user's library
    block     Permanently exclude a track
    unblock   Remove a track from the block list
"""

import argparse
import asyncio
import json
import logging
import random
import sys
from typing import List, Optional

from src.logger import setup_logging
from src.spotify.exceptions import SpotifyError

from .block_store import BlockStore
from .config import MixEngineConfig
from .constants import OPTIONS_BY_ID
from .engine import MixEngine
from .exceptions import MixBuildError, MixConfigurationError, StoreError, ValidationError
from .models import ArtistMode, RuleSettings, RunResult, Track

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """
    Create argument parser for CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="python -m src.mix_engine",
        description="Compose personalized music mixes from your catalog",
        epilog="Example: python -m src.mix_engine generate chaos_mix --length 40 --calm-hype 0.8",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("options", help="List mix options")

    generate = subparsers.add_parser("generate", help="Compose a mix")
    generate.add_argument("option", choices=sorted(OPTIONS_BY_ID), help="Mix option id")
    generate.add_argument("--length", type=int, default=35, metavar="N", help="Number of tracks (default: 35)")
    generate.add_argument("--calm-hype", type=float, default=0.2, metavar="X", help="Energy slider 0..1 (default: 0.2)")
    generate.add_argument("--discover", type=float, default=0.3, metavar="X", help="Share of new tracks 0..1 (default: 0.3)")
    generate.add_argument(
        "--artist-mode",
        choices=[mode.value for mode in ArtistMode],
        default=ArtistMode.DEEP_CUTS.value,
        help="Primary artist selection (default: DeepCuts)",
    )
    generate.add_argument("--no-explicit", action="store_true", help="Exclude explicit tracks")
    generate.add_argument("--allow-repeats", action="store_true", help="Ignore the cooldown window")
    generate.add_argument("--seed", type=int, metavar="N", help="Seed the random source")
    generate.add_argument("--json", action="store_true", help="Print the result as JSON")

    subparsers.add_parser("resolve", help="Link catalog sources by name")

    block = subparsers.add_parser("block", help="Block a track")
    block.add_argument("track_id")
    block.add_argument("--name", default="", help="Track title for the block list")
    block.add_argument("--artist", default="", help="Artist for the block list")
    block.add_argument("--album", default=None, help="Album for the block list")

    unblock = subparsers.add_parser("unblock", help="Unblock a track")
    unblock.add_argument("track_id")

    return parser


def rules_from_args(args: argparse.Namespace) -> RuleSettings:
    """
    Build rule settings from CLI arguments.

    Raises:
        ValidationError: If a value is out of range
    """
    return RuleSettings(
        playlist_length=args.length,
        allow_explicit=not args.no_explicit,
        avoid_repeats=not args.allow_repeats,
        artist_mode=ArtistMode(args.artist_mode),
        calm_hype=args.calm_hype,
        discover_level=args.discover,
    )


def display_result(result: RunResult) -> None:
    print()
    print("=" * 70)
    print(result.playlist_name)
    print("=" * 70)
    for position, track in enumerate(result.tracks, 1):
        marker = " *" if track.is_new else ""
        print(f"{position:3d}. {track.artist} - {track.title}{marker}")
    print("=" * 70)
    print(f"Sources: {result.source_summary}")
    if result.warning:
        print(f"Warning: {result.warning}")
    print()


async def async_main(args: argparse.Namespace, config: MixEngineConfig) -> int:
    """
    Async main function.

    Args:
        args: Parsed CLI arguments
        config: Engine configuration

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    rng = random.Random(args.seed) if getattr(args, "seed", None) is not None else None
    engine = MixEngine.from_config(config, rng=rng)
    try:
        if args.command == "options":
            for option, ready in engine.list_options():
                status = "ready" if ready else "needs linking"
                print(f"{option.id:16s} {option.name:16s} {status}")
            return 0

        if args.command == "resolve":
            catalog = await engine.resolve_all()
            print(json.dumps(catalog.to_dict(), indent=2, ensure_ascii=False))
            return 0

        result = await engine.generate_run_result(OPTIONS_BY_ID[args.option], rules_from_args(args))
        if args.json:
            print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        else:
            display_result(result)
        return 0
    finally:
        await engine.client.close()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = MixEngineConfig.from_environment()
        logger.debug(f"Loaded {config!r}")

        if args.command == "block":
            added = BlockStore(config.blocked_path).add(
                Track(
                    id=args.track_id,
                    uri=f"spotify:track:{args.track_id}",
                    title=args.name,
                    artist=args.artist,
                    album=args.album,
                )
            )
            print(f"Blocked {args.track_id}" if added else f"{args.track_id} was already blocked")
            return 0

        if args.command == "unblock":
            removed = BlockStore(config.blocked_path).remove(args.track_id)
            print(f"Unblocked {args.track_id}" if removed else f"{args.track_id} was not blocked")
            return 0

        return asyncio.run(async_main(args, config))

    except KeyboardInterrupt:
        print("Cancelled by user")
        return 1
    except (EnvironmentError, ValueError, ValidationError, MixConfigurationError) as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except (MixBuildError, StoreError, SpotifyError) as e:
        logger.error(f"{e}")
        if args.verbose:
            logger.exception("Detailed error traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
