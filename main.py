"""
Booking entry point.

Runs the booking page as a console session. Uses the hosted Supabase
store and the notification webhook when --remote is given, otherwise a
seeded in-memory store.

Usage:
    Interactive:      python main.py console
    Scripted demo:    python main.py console --scenario booking
    As a user:        python main.py console --user-id U1234
    Against Supabase: python main.py console --remote
"""

import argparse
import logging
import sys

from studio_booking.config import settings

logger = logging.getLogger(__name__)


def _build_session(args: argparse.Namespace):
    """Build a ConsoleSession wired to the selected store and notifier."""
    from studio_booking.booking.notification import WebhookNotifier
    from studio_booking.console import ConsoleSession
    from studio_booking.identity import default_identity_provider
    from studio_booking.store.postgrest import PostgrestStore

    url = f"?{settings.identity.user_id_param}={args.user_id}" if args.user_id else ""
    provider = default_identity_provider(url=url)

    if args.remote:
        if not settings.store.is_configured():
            logger.error("--remote requires SUPABASE_URL and SUPABASE_ANON_KEY")
            sys.exit(2)
        return ConsoleSession(
            store=PostgrestStore(),
            notifier=WebhookNotifier(),
            identity_provider=provider,
        )
    return ConsoleSession(identity_provider=provider)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=f"{settings.studio.name} booking")
    parser.add_argument("mode", choices=["console"], help="run mode")
    parser.add_argument("--scenario", help="auto-play a scripted scenario")
    parser.add_argument("--user-id", help="book as this user id")
    parser.add_argument("--remote", action="store_true", help="use the Supabase store")
    args = parser.parse_args(argv)

    session = _build_session(args)
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
