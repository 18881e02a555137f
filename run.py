"""Cavern CLI entry point.

Provides subcommands for running the cave API server and for generating a
single cave from the terminal. Accepts configuration via flags and
environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import json
import os
import signal
import sys
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

_color_init()
_COLOR_ENABLED = True

# Disable colors if output is not a real terminal (e.g., during pytest capture)
try:
    if not sys.stdout.isatty():  # pragma: no cover - environment dependent
        _COLOR_ENABLED = False
except (AttributeError, ValueError):  # pragma: no cover
    _COLOR_ENABLED = False


def _load_version() -> str:
    from cavern import __version__ as pkg_version

    try:
        with open("VERSION", "r", encoding="utf-8") as f:
            return f.read().strip() or pkg_version
    except OSError:
        return pkg_version


__version__ = _load_version()


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Cavern cave generator

    Run the cave generation API server or generate a single cave and print it.
    Configuration can be provided via CLI flags or environment variables. If
    both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                      Bind address for the web server (default: 0.0.0.0)
          PORT                      Port for the web server (default: 5000)
          CAVE_WIDTH, CAVE_HEIGHT   Default cave size (default: 50x30)
          CAVE_WALL_PROBABILITY     Initial wall density (default: 0.40)
          CAVE_DISABLE_CACHE        Set to 1 to regenerate on every API request

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Run the server on a custom port
          python run.py server --port 8080

          # Print the cave for seed 1 as text
          python run.py generate --seed 1

          # Larger cave as JSON, with generation metrics
          python run.py generate --seed 42 --width 80 --height 40 --json
        """
    )

    parser = argparse.ArgumentParser(
        prog="Cavern",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Cavern Cave Generator {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # server subcommand
    server_parser = subparsers.add_parser(
        "server",
        help="Run the cave API web server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the Flask cave generation API",
    )
    server_parser.add_argument(
        "--host",
        default=None,
        help="Host interface to bind (default: env HOST or 0.0.0.0)",
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: env PORT or 5000)",
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable Flask debug mode with verbose error pages",
    )
    server_parser.set_defaults(command="server")

    # generate subcommand
    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate one cave and print it",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Generate a cave for a seed and print it as text or JSON.",
    )
    gen_parser.add_argument("--seed", type=int, default=None, help="Seed (default: random)")
    gen_parser.add_argument("--width", type=int, default=None, help="Grid width (default: env CAVE_WIDTH or 50)")
    gen_parser.add_argument("--height", type=int, default=None, help="Grid height (default: env CAVE_HEIGHT or 30)")
    gen_parser.add_argument(
        "--wall-probability",
        dest="wall_probability",
        type=float,
        default=None,
        help="Initial wall density in [0, 1]",
    )
    gen_parser.add_argument(
        "--smoothing-steps",
        dest="smoothing_steps",
        type=int,
        default=None,
        help="Cellular automaton iterations",
    )
    gen_parser.add_argument(
        "--no-connect",
        dest="connect_clusters",
        action="store_false",
        default=None,
        help="Leave disconnected clusters unbridged",
    )
    gen_parser.add_argument("--json", dest="as_json", action="store_true", help="Print JSON instead of a text map")
    gen_parser.set_defaults(command="generate")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    args = parser.parse_args(argv)
    return args


def _run_generate(args) -> int:
    from cavern.generation import CaveConfig, ConfigurationError, GenerationSession

    try:
        config = CaveConfig.from_env(
            width=args.width,
            height=args.height,
            wall_probability=args.wall_probability,
            smoothing_steps=args.smoothing_steps,
            connect_clusters=args.connect_clusters,
        )
        cave = GenerationSession(config=config, seed=args.seed)
    except ConfigurationError as e:
        print(f"[ERROR] {e}")
        return 2
    if args.as_json:
        payload = cave.to_dict()
        payload["metrics"] = cave.metrics
        print(json.dumps(payload))
        return 0
    print(cave.render_ascii())
    entrance = cave.entrance_node.coordinates if cave.entrance_node else None
    exit_ = cave.exit_node.coordinates if cave.exit_node else None
    print(f"seed={cave.seed} entrance={entrance} exit={exit_} clusters={len(cave.clusters)}")
    for diag in cave.diagnostics:
        print(f"[WARN] {diag.code}: {diag.message}")
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    mode = (getattr(args, "command", None) or "server").lower()
    if mode == "generate":
        return _run_generate(args)

    # Resolve configuration from CLI flags or env vars
    env_host = os.getenv("HOST", "0.0.0.0")
    env_port = int(os.getenv("PORT", "5000"))

    host = getattr(args, "host", None) or env_host
    port = int(getattr(args, "port", None) or env_port)

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    # Import server entrypoints only after environment is ready
    from cavern.server import start_server

    title = (
        f"{Fore.CYAN}{Style.BRIGHT}Cavern Server Bootup{Style.RESET_ALL}" if _COLOR_ENABLED else "Cavern Server Bootup"
    )

    def label(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else text

    def value(val: str | int) -> str:
        return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if _COLOR_ENABLED else str(val)

    size = f"{os.getenv('CAVE_WIDTH', '50')}x{os.getenv('CAVE_HEIGHT', '30')}"
    cache = "disabled" if os.getenv("CAVE_DISABLE_CACHE") == "1" else "enabled"
    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if _COLOR_ENABLED else "=" * 40
    lines = [
        divider,
        f"  {title}",
        divider,
        f"  {label('Mode:'):12} {value(mode.upper())}",
        f"  {label('Host:'):12} {value(host)}",
        f"  {label('Port:'):12} {value(port)}",
        f"  {label('Cave size:'):12} {value(size)}",
        f"  {label('Cache:'):12} {value(cache)}",
        divider,
        "",
    ]
    print("\n".join(lines))

    from cavern.logging_utils import log

    debug = bool(getattr(args, "debug", False) or os.getenv("FLASK_DEBUG") == "1")
    log.info(event="startup", mode=mode, host=host, port=port, debug=debug)
    start_server(host=host, port=port, debug=debug)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
