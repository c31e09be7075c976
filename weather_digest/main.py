"""Main entry point for the application."""

import argparse
import signal
import threading

from weather_digest.errors import WeatherServiceError
from weather_digest.service import WeatherService
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Weather metrics and forecast digest service")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="Run both periodic pipelines until interrupted")
    sub.add_parser("collect", help="Run one metrics collection tick")
    sub.add_parser("dispatch", help="Run one digest dispatch cycle")

    register = sub.add_parser("register", help="Create a user")
    register.add_argument("email")
    register.add_argument("password_hash", help="Already hashed password")
    register.add_argument("cities", nargs="+", help="Cities to subscribe to")

    subscribe = sub.add_parser("subscribe", help="Replace a user's cities")
    subscribe.add_argument("email")
    subscribe.add_argument("cities", nargs="+", help="Cities to subscribe to")

    return parser


def run_forever(service: WeatherService) -> None:
    stop = threading.Event()

    def _handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    service.start()
    try:
        stop.wait()
    finally:
        service.stop()


def main(argv=None) -> int:
    """Main function."""
    args = build_parser().parse_args(argv)

    service = WeatherService()
    try:
        if args.command == "run":
            run_forever(service)
            return 0

        with service:
            if args.command == "collect":
                written = service.collector.collect()
                logger.info(f"Collected {written} weather records")
            elif args.command == "dispatch":
                service.digests.run_cycle()
            elif args.command == "register":
                created = service.accounts.register_user(args.email, args.password_hash, args.cities)
                logger.info(f"User {args.email} {'created' if created else 'already exists'}")
            elif args.command == "subscribe":
                cities = service.accounts.update_cities(args.email, args.cities)
                logger.info(f"User {args.email} subscribed to {cities}")
    except WeatherServiceError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
