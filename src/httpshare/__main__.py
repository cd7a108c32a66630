"""
=============================================================================
HTTPSHARE CLI ENTRY POINT
=============================================================================

Command-line interface for sharing a file.

=============================================================================
USAGE
=============================================================================

    # Share a file once on the default port (8080)
    python -m httpshare report.pdf

    # Custom port
    python -m httpshare -p 3000 report.pdf

    # Keep serving the same file until Ctrl+C
    python -m httpshare -k report.pdf

    # See every request and connection
    python -m httpshare -l DEBUG report.pdf

=============================================================================
EXIT CODES
=============================================================================

    0    the file was sent completely
    1    configuration error, fatal network error, or aborted download
    130  interrupted with Ctrl+C (the usual way to stop keep-serving mode)

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import LOG_LEVELS, ShareConfig
from .errors import ConfigError, ShareError
from .server import FileShareServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpshare",
        description="Share a single file over HTTP with a simple URL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  httpshare report.pdf              # Serve once on port 8080
  httpshare -p 3000 report.pdf      # Custom port
  httpshare -k report.pdf           # Keep serving, Ctrl+C to quit
        """
    )

    parser.add_argument(
        "file",
        nargs="?",
        metavar="File_To_Send",
        help="The file the server will send"
    )

    parser.add_argument(
        "-k",
        dest="keep_serving",
        action="store_true",
        help="Keep serving the same file, do not exit after the first download. Use Ctrl+C to quit."
    )

    # Parsed by hand so a bad value is a ConfigError (exit 1), like a bad range
    parser.add_argument(
        "-p",
        dest="port",
        metavar="Port",
        default=None,
        help="Port the server will bind to (default: 8080)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: WARNING)"
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"httpshare {__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> ShareConfig:
    """
    Translate CLI arguments to ShareConfig, on top of the environment.

    Raises:
        ConfigError: If the port is not an integer.
    """
    config = ShareConfig.from_env()

    if args.file:
        config.file_path = args.file

    if args.port is not None:
        try:
            config.port = int(args.port)
        except ValueError:
            raise ConfigError(f"Invalid port number: {args.port!r}.") from None

    if args.keep_serving:
        config.keep_serving = True

    if args.log_level:
        config.log_level = args.log_level

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
        if not config.file_path:
            parser.print_usage(sys.stderr)
            raise ConfigError("No file to send was provided.")

        server = FileShareServer(config)
        sent = server.run()
    except ShareError as e:
        print(f"Error : {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130

    return 0 if sent else 1


# =============================================================================
# ENTRY POINT
# =============================================================================
# This allows running: python -m httpshare

if __name__ == "__main__":
    sys.exit(main())
