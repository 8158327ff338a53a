import argparse
import logging
import sys
import time

from booking_availability import run

# --- Logging Setup ---

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool):
    """Configures logging to stderr with local time."""
    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    formatter.converter = time.localtime
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive integer")
    return number


def parse_arguments(argv=None):
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Show when an activity is open according to its periods.")
    parser.add_argument("activity", help="Activity id to check.")
    parser.add_argument("--start-date", type=str, help="Start date in YYYY-MM-DD format. Defaults to today.")
    parser.add_argument("--days", type=_positive_int, default=7, help="Number of days to check. Defaults to 7.")
    parser.add_argument("--at", type=str, help="Time of day in HH:MM format to check on each date.")
    parser.add_argument("--duration", type=_positive_int, help="List bookable slots of this many minutes.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main():
    args = parse_arguments()
    setup_logging(args.verbose)
    run.run(
        activity_id=args.activity,
        start_date=args.start_date,
        days=args.days,
        at=args.at,
        duration=args.duration,
    )


if __name__ == "__main__":
    main()
