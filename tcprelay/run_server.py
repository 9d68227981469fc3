import argparse
import logging
import os
import sys
from typing import List, Optional, Tuple

from .config import DEFAULT_MAX_CLIENTS, ServerConfig
from .errors import MultiplexError, SetupError
from .relay_core import main_loop


def _usage(prog: str) -> str:
    return f"{prog} -p port -c [max-clients [default={DEFAULT_MAX_CLIENTS}]]"


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return int(raw)


class _RelayArgumentParser(argparse.ArgumentParser):
    # Bad values end up on the usage line printed by main(), not a second one here
    def error(self, message):
        raise ValueError(message)


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = _RelayArgumentParser(
        prog=prog,
        description="TCP relay: every chunk a client sends goes to all connected clients",
    )
    parser.usage = _usage(parser.prog)
    parser.add_argument("-p", "--port", type=int, help="Listening port (env RELAY_PORT)")
    parser.add_argument(
        "-c",
        "--max-clients",
        type=int,
        nargs="?",
        const=None,
        help=f"Simultaneous clients (env RELAY_MAX_CLIENTS, default {DEFAULT_MAX_CLIENTS})",
    )
    parser.add_argument(
        "--host",
        default=os.getenv("RELAY_HOST", "0.0.0.0"),
        help="Bind address (env RELAY_HOST)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("RELAY_LOG_LEVEL", "INFO"),
        help="Logging level (env RELAY_LOG_LEVEL)",
    )
    return parser


def parse_config(argv: Optional[List[str]] = None) -> Tuple[Optional[ServerConfig], str]:
    """Resolve CLI flags and environment into a ServerConfig.

    The config is None when no usable port was given; the caller prints
    usage. The second item is the requested log level name.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except ValueError as e:
        logging.warning("Bad arguments: %s", e)
        return None, "INFO"

    try:
        port = args.port if args.port is not None else _env_int("RELAY_PORT")
        max_clients = args.max_clients
        if max_clients is None:
            max_clients = _env_int("RELAY_MAX_CLIENTS")
    except ValueError:
        return None, args.log_level

    if port is None or port <= 0:
        return None, args.log_level
    return ServerConfig.normalized(port, max_clients, args.host), args.log_level


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s"
    )

    config, log_level = parse_config(argv)
    try:
        logging.getLogger().setLevel(log_level.upper())
    except ValueError:
        logging.warning("Unknown log level %s, keeping INFO", log_level)

    if config is None:
        print(_usage(os.path.basename(sys.argv[0])))
        return 0

    logging.info("port=%s max_clients=%s", config.port, config.max_clients)
    try:
        main_loop(config)
    except SetupError as e:
        logging.error("Server not started: %s", e)
        return 0
    except MultiplexError as e:
        logging.error("Fatal multiplexer error: %s", e)
        return e.errno or 1
    except KeyboardInterrupt:
        logging.info("Shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
