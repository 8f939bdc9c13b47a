"""
Command line entry point.

    ezcalc serve --port 8000
    ezcalc calc 10 divide 4
    ezcalc history --limit 5
    ezcalc clear
"""
import argparse
import sys

from ezcalc import __version__
from ezcalc.client import CalcClient, CalcClientException
from ezcalc.common import format_number, get_logger
from ezcalc.configure import ConfigError, load_config
from ezcalc.engine import OPERATORS, SYMBOLS

logger = get_logger(__name__)


def build_parser(server_url):
    parser = argparse.ArgumentParser(prog="ezcalc", description="Web calculator with history")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the calculator web server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--debug", action="store_true")

    calc = sub.add_parser("calc", help="Send one calculation to a running server")
    calc.add_argument("operand1", type=float)
    calc.add_argument("operator", choices=OPERATORS)
    calc.add_argument("operand2", type=float)

    history = sub.add_parser("history", help="Show recent calculations")
    history.add_argument("--limit", type=int, default=None)

    sub.add_parser("clear", help="Delete all calculation history")

    for command in (calc, history, sub.choices["clear"]):
        command.add_argument("--url", default=server_url, help=f"Server URL (default: {server_url})")
    return parser


def serve(config, args):
    from ezcalc.app import create_app, setup_logging

    setup_logging(config.log_level)
    app = create_app(config)
    logger.info(f"Starting ezcalc on http://{args.host}:{args.port} datafile={config.datafile}")
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def run_calc(client, args):
    payload = client.calculate(args.operand1, args.operand2, args.operator)
    if not payload.get("success"):
        print(f"Error: {payload.get('message')}", file=sys.stderr)
        return 1
    print(
        f"{format_number(args.operand1)} {SYMBOLS[args.operator]} "
        f"{format_number(args.operand2)} = {format_number(float(payload['result']))}"
    )
    if not payload.get("history_saved", True):
        print(f"Warning: {payload.get('warning')}", file=sys.stderr)
    return 0


def run_history(client, args):
    records = client.recent_history(args.limit)
    if not records:
        print("No calculations yet.")
        return 0
    for item in records:
        print(
            f"{item['timestamp']}  {format_number(item['operand1'])} "
            f"{SYMBOLS.get(item['operator'], item['operator'])} "
            f"{format_number(item['operand2'])} = {format_number(float(item['result']))}"
        )
    return 0


def run_clear(client, args):
    deleted = client.clear_history()
    print(f"Cleared {deleted} calculation(s).")
    return 0


COMMANDS = {
    "calc": run_calc,
    "history": run_history,
    "clear": run_clear,
}


def main(argv=None):
    try:
        config = load_config()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    args = build_parser(config.server_url).parse_args(argv)
    if args.command == "serve":
        return serve(config, args)

    try:
        with CalcClient(args.url) as client:
            return COMMANDS[args.command](client, args)
    except CalcClientException as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
