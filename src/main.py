import argparse
import logging
import sys
from typing import Optional

from payments_engine import PaymentsEngine
from csv_io import write_accounts

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s: %(message)s"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="main.py",
        description="Apply a CSV stream of transactions and print the resulting client accounts.",
    )
    parser.add_argument("input", help="transactions CSV file")
    parser.add_argument("--log-file", help="write the log here instead of stderr")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def configure_logging(level: str, log_file: Optional[str] = None) -> None:
    if log_file:
        logging.basicConfig(level=level, format=LOG_FORMAT, filename=log_file, force=True)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(args.input)
    except OSError as e:
        logger.error(f"Cannot read transactions file {args.input}: {e}")
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
