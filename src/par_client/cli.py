"""Command line entry point: resolve names against a repository and print archive paths."""

import argparse
import logging
import sys

from par_client.client import RepositoryClient
from par_client.common.logging_utils import configure_logging
from par_client.config import load_config
from par_client.constants import ExitCodes
from par_client.errors import CompatibilityError, ParClientError, TransportError

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="par-client",
        description="Resolve and fetch distributions from a PAR repository",
        add_help=True,
    )
    parser.add_argument("-r", "--repository",
                        dest="URI",
                        help="Repository URI (http(s)://, file:// or a local path)",
                        action="store", type=str,
                        required=True)
    parser.add_argument("-m", "--module",
                        dest="MODULES",
                        help="Module to resolve, i.e: Math::Symbolic (repeatable)",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-s", "--script",
                        dest="SCRIPTS",
                        help="Script to resolve (repeatable)",
                        action="append", type=str,
                        default=[])
    parser.add_argument("--validate",
                        dest="VALIDATE_ONLY",
                        help="Only validate the repository and exit",
                        action="store_true")
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to a YAML configuration file",
                        action="store", type=str)
    parser.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help="Directory for downloaded files (overrides config)",
                        action="store", type=str)
    parser.add_argument("--verify-checksums",
                        dest="VERIFY_CHECKSUMS",
                        help="Verify index archives against the repository checksum manifest",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store", type=str,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default=None)
    args = parser.parse_args(argv)
    if not args.VALIDATE_ONLY and not args.MODULES and not args.SCRIPTS:
        parser.error("nothing to do: pass --module, --script or --validate")
    return args


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    overrides = {}
    if args.CACHE_DIR:
        overrides["cache_dir"] = args.CACHE_DIR
    if args.VERIFY_CHECKSUMS:
        overrides["verify_checksums"] = True
    config = load_config(args.CONFIG).merged(overrides)

    try:
        client = RepositoryClient(args.URI, config=config)
    except TransportError as exc:
        logger.error("%s", exc)
        return ExitCodes.CONNECTION_ERROR.value
    except CompatibilityError as exc:
        logger.error("%s", exc)
        return ExitCodes.RESOLUTION_ERROR.value
    except ParClientError as exc:
        logger.error("%s", exc)
        return ExitCodes.FILE_ERROR.value

    exit_code = ExitCodes.SUCCESS
    with client:
        if args.VALIDATE_ONLY:
            print(f"{args.URI}: repository version {client.info.repository_version}")
            return exit_code.value
        for name in args.MODULES:
            path = client.get_module(name)
            if path is None:
                logger.error("%s: %s", name, client.last_error())
                exit_code = ExitCodes.RESOLUTION_ERROR
                continue
            print(path)
        for name in args.SCRIPTS:
            path = client.get_script(name)
            if path is None:
                logger.error("%s: %s", name, client.last_error())
                exit_code = ExitCodes.RESOLUTION_ERROR
                continue
            print(path)
    return exit_code.value


if __name__ == "__main__":
    sys.exit(main())
