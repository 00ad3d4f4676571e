# callcore/cli/main.py
import argparse
import sys

from callcore.cli.parse_cmd import parse_output
from callcore.cli.serve_cmd import serve


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        "callcore",
        description="callcore - parse model output into policy-governed tool calls"
    )
    sub = parser.add_subparsers(dest="command")

    # parse - inspect what a model output would dispatch
    parse_p = sub.add_parser("parse", help="Parse model output and print extracted invocations")
    parse_p.add_argument("file", nargs="?", help="File with model output (default: stdin)")
    parse_p.add_argument("--mode", choices=["embedding", "text", "hybrid"], default="hybrid",
                         help="Parser mode (default: hybrid)")
    parse_p.add_argument("--known", nargs="*", metavar="NAME",
                         help="Known tool names for the text heuristic")

    # serve - run a transport
    serve_p = sub.add_parser("serve", help="Run the tool server")
    serve_p.add_argument("--transport", choices=["stdio", "http"],
                         help="Transport (default: from config, else stdio)")
    serve_p.add_argument("--host", help="HTTP bind host")
    serve_p.add_argument("--port", type=int, help="HTTP port")
    serve_p.add_argument("--config", help="Path to YAML config (default: ./callcore.yml, ~/.callcore/config.yml)")
    serve_p.add_argument("--tsd-dir", dest="tsd_dir", help="Directory of TSD *.json files")
    serve_p.add_argument("--log-level", dest="log_level",
                         choices=["trace", "debug", "info", "warn", "error", "fatal"],
                         help="Log level (logs go to stderr)")
    serve_p.add_argument("--tools", action="append", metavar="MODULE",
                         help="Python module exposing register_tools(registry); repeatable")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # If no command provided, show help
    if not args.command:
        parser.print_help()
        return 0

    if args.command == "parse":
        return parse_output(args)
    if args.command == "serve":
        return serve(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
