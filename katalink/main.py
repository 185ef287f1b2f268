"""
katalink - Main Entry Point

Called as: python -m katalink <args>

Connects to the KataGo proxy, prints the engine version and, when a
position is given, prints the engine's top moves for it.
"""

import argparse
import asyncio
import sys
from typing import Any, Dict, List, Optional

from .core import EngineConfig, add_traffic_log, logger, setup_console_only, setup_logging
from .engine import AnalysisParams, EngineSession, EventHub, Notifier
from .engine.query import Move


# =============================================================================
# Console Output
# =============================================================================

class Colors:
    RED = "\033[0;31m"
    GREEN = "\033[0;32m"
    YELLOW = "\033[1;33m"
    CYAN = "\033[0;36m"
    NC = "\033[0m"


def print_info(msg: str):
    print(f"{Colors.GREEN}[INFO]{Colors.NC} {msg}")


def print_error(msg: str):
    print(f"{Colors.RED}[ERROR]{Colors.NC} {msg}", file=sys.stderr)


class ConsoleNotifier(Notifier):
    """Alerts printed to stderr."""

    def alert(self, message: str) -> None:
        print(f"{Colors.YELLOW}[ALERT]{Colors.NC} {message}", file=sys.stderr)


# =============================================================================
# Argument Parsing
# =============================================================================

def parse_moves(text: str) -> List[Move]:
    """
    Parse a move list such as "B:Q16,W:D4,B:pass".

    Raises:
        ValueError: On an entry without a B/W colour prefix
    """
    moves: List[Move] = []
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue
        colour, sep, vertex = entry.partition(":")
        colour = colour.strip().upper()
        if not sep or colour not in ("B", "W") or not vertex.strip():
            raise ValueError(f"Bad move {entry!r} (expected e.g. B:Q16)")
        moves.append((colour, vertex.strip().upper()))
    return moves


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="katalink - KataGo analysis via websocket proxy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--config", type=str, help="JSON configuration file path")
    parser.add_argument("--proxy-url", type=str, help="Proxy websocket URL (default: $KATAGO_WS_PROXY_URL or ws://127.0.0.1:41949)")

    # Engine files
    parser.add_argument("--engine", type=str, help="KataGo binary path")
    parser.add_argument("--engine-config", type=str, help="KataGo analysis config path")
    parser.add_argument("--weights", type=str, help="Network weights path")

    # Position
    parser.add_argument("--moves", type=str, help="Comma-separated moves, e.g. B:Q16,W:D4")
    parser.add_argument("--analyse", action="store_true", help="Analyse the position even without --moves")
    parser.add_argument("--rules", type=str, default="Chinese")
    parser.add_argument("--komi", type=float, default=7.5)
    parser.add_argument("--board-size", type=int, default=19)
    parser.add_argument("--visits", type=int, help="Visit cap for the analysis")
    parser.add_argument("--top", type=int, default=5, help="Number of candidate moves to print")

    # Runtime
    parser.add_argument("--timeout", type=float, default=60.0, help="Give up after this many seconds")
    parser.add_argument("--log-traffic", action="store_true", help="Write redacted engine traffic to engine.log")
    parser.add_argument("--log-dir", type=str, help="Directory for log files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug output on the console")

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> EngineConfig:
    """Create EngineConfig from parsed arguments"""
    config = EngineConfig.from_env()

    if args.config:
        config = config.merge(EngineConfig.from_json(args.config))

    if args.proxy_url:
        config.proxy_url = args.proxy_url
    if args.engine:
        config.engine_path = args.engine
    if args.engine_config:
        config.engine_config = args.engine_config
    if args.weights:
        config.weights = args.weights
    if args.visits:
        config.max_visits = args.visits
    if args.log_traffic:
        config.log_traffic = True
    if args.log_dir:
        config.log_dir = args.log_dir
    if args.verbose:
        config.console_level = "DEBUG"

    return config


def create_params_from_args(args: argparse.Namespace) -> Optional[AnalysisParams]:
    """Position to analyse, or None when only the version is wanted"""
    if not args.moves and not args.analyse:
        return None
    return AnalysisParams(
        node_id="cli",
        moves=parse_moves(args.moves or ""),
        rules=args.rules,
        komi=args.komi,
        board_x_size=args.board_size,
        board_y_size=args.board_size,
    )


def format_move_infos(move_infos: List[Dict[str, Any]], top: int = 5) -> List[str]:
    """One line per candidate move, best first"""
    lines = []
    ranked = sorted(move_infos, key=lambda info: info.get("order", 0))
    for info in ranked[:top]:
        winrate = info.get("winrate", 0.0) * 100
        lines.append(
            f"{info.get('move', '?'):>5}  visits={info.get('visits', 0):<6} "
            f"winrate={winrate:5.1f}%  lead={info.get('scoreLead', 0.0):+.1f}"
        )
    return lines


# =============================================================================
# Run
# =============================================================================

async def run(config: EngineConfig, params: Optional[AnalysisParams], top: int = 5, timeout: float = 60.0) -> int:
    """Connect, query and print. Returns the process exit code."""
    loop = asyncio.get_running_loop()
    done: asyncio.Future = loop.create_future()

    def finish(code: int) -> None:
        if not done.done():
            done.set_result(code)

    hub = EventHub()
    session = EngineSession(config=config, notifier=ConsoleNotifier(), event_sink=hub)
    session.add_shutdown_callback(lambda: finish(1))
    query_ids = set()

    def on_object(obj: Dict[str, Any]) -> None:
        if obj.get("action") == "query_version" and session.received_version:
            print_info(f"KataGo {obj.get('version')} (git {obj.get('git_hash', 'unknown')})")
            if params is None:
                finish(0)
                return
            session.analyse(params)
            if session.desired is not None:
                query_ids.add(session.desired.id)
            return

        if obj.get("id") not in query_ids:
            return
        if obj.get("error"):
            finish(1)
            return
        if obj.get("isDuringSearch"):
            return

        root = obj.get("rootInfo", {})
        print_info(f"Visits {root.get('visits', 0)}, winrate {root.get('winrate', 0.0) * 100:.1f}%, lead {root.get('scoreLead', 0.0):+.1f}")
        for line in format_move_infos(obj.get("moveInfos", []), top):
            print(f"  {line}")
        session.halt()
        finish(0)

    hub.subscribe(on_object)

    if not session.setup(config.engine_path, config.engine_config, config.weights):
        print_error(session.problem_text())
        return 1

    try:
        code = await asyncio.wait_for(done, timeout=timeout)
    except asyncio.TimeoutError:
        print_error(f"No answer from the engine within {timeout:.0f}s")
        code = 1

    session.shutdown()
    return code


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    args = parse_args(argv)
    config = create_config_from_args(args)

    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        sys.exit(1)

    try:
        params = create_params_from_args(args)
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)

    if config.log_dir or config.log_traffic:
        setup_logging(config.log_dir, console_level=config.console_level)
        if config.log_traffic:
            add_traffic_log()
    else:
        setup_console_only(config.console_level)

    logger.debug(f"Config: {config.to_dict()}")
    sys.exit(asyncio.run(run(config, params, top=args.top, timeout=args.timeout)))


if __name__ == "__main__":
    main()
