import argparse
import os
import sys

from chatterhub import __version__
from chatterhub.config.app_config import DEFAULT_HOST, DEFAULT_PORT
from chatterhub.utils.logging_utils import logger


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Run the ChatterHub data server",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("--port", type=int, default=DEFAULT_PORT,
                        help=f"Port number to run the server on (default: {DEFAULT_PORT})")
    parser.add_argument("--host", type=str, default=DEFAULT_HOST,
                        help=f"Interface to bind to (default: {DEFAULT_HOST})")
    parser.add_argument("--home", type=str, default=None,
                        help="Data directory (default: $CHATTERHUB_HOME or ~/.chatterhub)")
    parser.add_argument("--log-level", type=str, default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: $CHATTERHUB_LOG_LEVEL or INFO)")
    parser.add_argument("--version", action="store_true",
                        help="Print the version and exit")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)

    if args.version:
        print(f"ChatterHub version {__version__}")
        sys.exit(0)

    if args.log_level:
        os.environ["CHATTERHUB_LOG_LEVEL"] = args.log_level
        logger.setLevel(args.log_level)
    if args.home:
        os.environ["CHATTERHUB_HOME"] = os.path.abspath(os.path.expanduser(args.home))

    import uvicorn
    from chatterhub.api.deps import configure_store
    from chatterhub.server import create_app

    configure_store()
    logger.info(f"Starting ChatterHub on {args.host}:{args.port}")
    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
