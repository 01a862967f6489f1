"""
Command-line front end for the Skybound leaderboard.

Stands in for the game's presentation layer: it only ever talks to the
leaderboard through LeaderboardService's four operations, plus the pure
name-entry and game-over helpers of the roster policy.

Usage:
    skybound list
    skybound winner
    skybound name Alice
    skybound submit 42
    skybound submit 17 --name Bob
    skybound reset
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from runtime.version import as_string
from services.leaderboard.service import LeaderboardService
from shared.config.leaderboard import LeaderboardConfig, load_leaderboard_config
from shared.leaderboard import roster as policy
from shared.leaderboard.models import (
    DEFAULT_PLAYER_NAME,
    ERROR_MAX_PLAYERS,
    MAX_PLAYERS,
    RankedEntry,
)
from shared.storage.device_store import DeviceStore
from shared.storage.paths import DEVICE_STATE_DIR, get_state_path

PLAYER_NAME_KEY = "skybound_player_name"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="skybound",
        description="Skybound leaderboard (remote with device fallback)",
    )
    parser.add_argument("--version", action="version", version=as_string())
    parser.add_argument(
        "--api-base",
        default=None,
        help="Shared leaderboard URL (overrides SKYBOUND_API_BASE)",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the shared leaderboard and use the device roster only",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="Show the ranked leaderboard")
    commands.add_parser("winner", help="Show the current winner")
    commands.add_parser("reset", help="Clear the leaderboard")

    submit = commands.add_parser("submit", help="Submit a score")
    submit.add_argument("score", type=int)
    submit.add_argument(
        "--name",
        default=None,
        help="Player name (default: remembered name, then 'Player')",
    )

    name = commands.add_parser("name", help="Register or forget the player name")
    name.add_argument("value", nargs="?", default=None)
    name.add_argument("--clear", action="store_true", help="Forget the remembered name")

    return parser.parse_args(argv)


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------

def _format_board(entries: List[RankedEntry]) -> str:
    if not entries:
        return "No scores yet."
    width = max(len(entry.name) for entry in entries)
    return "\n".join(
        f"{entry.rank:>2}. {entry.name:<{width}}  {entry.score}" for entry in entries
    )


def _profile_store(config: LeaderboardConfig) -> DeviceStore:
    return DeviceStore(get_state_path(DEVICE_STATE_DIR, config.storage.state_dir))


def _remembered_name(profile: DeviceStore) -> Optional[str]:
    value = profile.get(PLAYER_NAME_KEY)
    if isinstance(value, str) and policy.normalize_name(value):
        return policy.normalize_name(value)
    return None


# ------------------------------------------------------------
# Commands
# ------------------------------------------------------------

async def _run(args: argparse.Namespace, config: LeaderboardConfig) -> int:
    profile = _profile_store(config)

    async with LeaderboardService.from_config(config) as service:
        if args.command == "list":
            print(_format_board(await service.list()))
            return 0

        if args.command == "winner":
            top = await service.winner()
            print(f"Winner: {top.name} ({top.score})" if top else "No winner yet.")
            return 0

        if args.command == "reset":
            await service.reset()
            print("Leaderboard has been reset.")
            return 0

        if args.command == "name":
            if args.clear:
                profile.delete(PLAYER_NAME_KEY)
                print("Player name forgotten.")
                return 0

            name = policy.normalize_name(args.value or "")
            if not name:
                print("Enter a name to fly.", file=sys.stderr)
                return 1

            board = await service.list()
            if not policy.can_register(board, name):
                print(
                    f"Maximum players reached ({MAX_PLAYERS}/{MAX_PLAYERS}). "
                    "Reset the leaderboard to add new names.",
                    file=sys.stderr,
                )
                return 1

            profile.set(PLAYER_NAME_KEY, name)
            print(f"Flying as {name}.")
            return 0

        if args.command == "submit":
            name = (
                policy.normalize_name(args.name or "")
                or _remembered_name(profile)
                or DEFAULT_PLAYER_NAME
            )
            result = await service.submit(name, args.score)

            if not result.success:
                if result.error == ERROR_MAX_PLAYERS:
                    print(
                        "Leaderboard is full. Reset it to add new names.",
                        file=sys.stderr,
                    )
                else:
                    print(f"Score rejected: {result.error}", file=sys.stderr)
                return 1

            board = await service.list()
            if policy.is_new_record(board, name, args.score):
                print(f"NEW RECORD! {name}: {args.score}")
            else:
                print(f"Score submitted for {name}.")
            return 0

    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    config = load_leaderboard_config()
    if args.api_base:
        config.client.api_base = args.api_base.rstrip("/")
    if args.offline:
        config.client.remote_enabled = False

    return asyncio.run(_run(args, config))


if __name__ == "__main__":
    sys.exit(main())
