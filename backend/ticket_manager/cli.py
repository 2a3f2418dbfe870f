"""
Operator command line: `ticket-manager <command>`.

Examples:
    ticket-manager serve --port 8000
    ticket-manager scrape-schedule --season 2026
    ticket-manager add-seat --section 127 --row A --seat 3
    ticket-manager grant-admin --sub auth0|abc123

--db-url and --log-level override the environment. They are applied before
the application modules are imported, since the engine and settings are
created at import time.
"""

import argparse
import asyncio
import os
import sys
from datetime import datetime, timezone


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ticket-manager",
        description="Season ticket inventory and allocation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--db-url", help="Override DATABASE_URL (async SQLAlchemy URL)")

    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    scrape = commands.add_parser("scrape-schedule", help="Import the season schedule")
    scrape.add_argument("--season", type=int, help="Season year (default: current year)")

    games = commands.add_parser("list-games", help="List stored games")
    games.add_argument("--month", type=int, choices=range(1, 13), metavar="1-12")

    seat = commands.add_parser("add-seat", help="Add a seat and generate its tickets")
    seat.add_argument("--section", required=True)
    seat.add_argument("--row", required=True)
    seat.add_argument("--seat", required=True)
    seat.add_argument("--notes")

    commands.add_parser("list-seats", help="List seats")
    commands.add_parser("list-tickets", help="Ticket totals per game")

    admin = commands.add_parser("grant-admin", help="Give an existing user the admin role")
    admin.add_argument("--sub", required=True, help="Identity provider subject of the user")

    return parser


def _apply_overrides(args: argparse.Namespace) -> None:
    if args.db_url:
        os.environ["DATABASE_URL"] = args.db_url
    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level.upper()


async def _run(args: argparse.Namespace) -> int:
    from ticket_manager.core.config import get_settings
    from ticket_manager.core.logging import get_logger
    from ticket_manager.db.session import AsyncSessionLocal, close_db, init_db
    from ticket_manager.services import game_service, identity_service, inventory_service
    from ticket_manager.services.schedule_importer import import_schedule

    logger = get_logger("ticket_manager.cli")
    if get_settings().is_sqlite:
        await init_db()

    try:
        async with AsyncSessionLocal() as db:
            if args.command == "scrape-schedule":
                season = args.season or datetime.now(timezone.utc).year
                result = await import_schedule(db, season)
                await db.commit()
                print(
                    f"Season {result.season}: {result.games} games, "
                    f"{result.promotions} promotions, {result.tickets} tickets generated"
                )

            elif args.command == "list-games":
                for game in await game_service.list_games(db, args.month):
                    print(
                        f"{game.game_pk}  {game.official_date}  "
                        f"{game.away_team_name} @ {game.home_team_name}  {game.status_detailed}"
                    )

            elif args.command == "add-seat":
                seat = await inventory_service.add_seat(db, args.section, args.row, args.seat, args.notes)
                created = await inventory_service.generate_tickets_for_seat(db, seat.id)
                await db.commit()
                print(f"Seat {seat.id} ({seat.label}) added, {created} tickets generated")

            elif args.command == "list-seats":
                for seat in await inventory_service.list_seats(db):
                    print(f"{seat.id}  {seat.label}  {seat.notes or ''}".rstrip())

            elif args.command == "list-tickets":
                for row in await inventory_service.ticket_summary(db):
                    print(f"{row.game_pk}  {row.available}/{row.total} available")

            elif args.command == "grant-admin":
                if not await identity_service.grant_admin(db, args.sub):
                    logger.error("grant_admin_unknown_user", external_sub=args.sub)
                    print(f"No user with subject {args.sub}; they must sign in once first", file=sys.stderr)
                    return 1
                await db.commit()
                print(f"{args.sub} is now an admin")
    finally:
        await close_db()

    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _apply_overrides(args)

    from ticket_manager.core.config import get_settings
    from ticket_manager.core.exceptions import TicketManagerError
    from ticket_manager.core.logging import setup_logging

    get_settings.cache_clear()
    setup_logging()

    if args.command == "serve":
        import uvicorn

        uvicorn.run("ticket_manager.main:app", host=args.host, port=args.port, log_config=None)
        return 0

    try:
        return asyncio.run(_run(args))
    except TicketManagerError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
