"""
Party sync client (entrypoint)

Commands:
- create: log in, create a room, print its id, keep the lobby synced
- watch:  log in, optionally join a team, follow a room until it finishes

Wiring lives in app/controller.py; this file only parses arguments.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import config
from app.controller import LobbyController, run_until_finished
from app.phase_router import resolve_destination
from game_gateway import GameClientError
from game_protocol import TEAM_COLORS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Follow a party game session from the terminal")
    parser.add_argument("--username", required=True, help="Account name (created on first login)")
    parser.add_argument(
        "--interval",
        type=float,
        default=config.SESSION_POLLING_INTERVAL_SECONDS,
        help="Polling interval in seconds",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("create", help="Create a room and watch its lobby")

    watch = sub.add_parser("watch", help="Follow an existing room")
    watch.add_argument("session_id")
    watch.add_argument("--join", choices=TEAM_COLORS, default=None, help="Join this team first")
    watch.add_argument("--auto-join", action="store_true", help="Join the smaller team first")
    return parser


async def run(args: argparse.Namespace) -> int:
    controller = LobbyController(polling_interval=args.interval)

    def _on_status(status: str) -> None:
        print(f"[status] {status} -> {resolve_destination(controller.current_session)}")

    def _on_phase(phase: Optional[str]) -> None:
        print(f"[phase] {phase}")

    controller.sync.status_stream.subscribe(_on_status)
    controller.sync.phase_stream.subscribe(_on_phase)

    try:
        if not await controller.login(args.username):
            print(f"[FAIL] Login failed: {controller.error_message}")
            return 1

        if args.command == "create":
            session = await controller.create_room()
            if session is None:
                print(f"[FAIL] Could not create room: {controller.error_message}")
                return 1
            print(f"[OK] Room created: {session.id}")
        else:
            if args.join or args.auto_join:
                if not await controller.join_room(args.session_id, args.join):
                    print(f"[FAIL] Could not join: {controller.error_message}")
                    return 1
            else:
                try:
                    await controller.sync.refresh(args.session_id)
                except GameClientError as e:
                    print(f"[FAIL] Could not load room: {e}")
                    return 1

        final = await run_until_finished(controller, args.interval)
        if final is not None:
            print(f"[OK] Finished. Scores: {final.team_scores}")
        return 0
    finally:
        await controller.logout()
        await controller.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nStopped.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
