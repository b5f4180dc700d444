#!/usr/bin/env python3
"""
kal-parse: run Kaleidoscope source through the front end and print the AST.

Reads a file (or stdin when no file is given), parses it one top-level unit
at a time and prints every accepted definition, extern and expression.
Errors are reported on stderr; the exit status is 1 if there were any.

Usage:
    kal-parse program.kal
    kal-parse --tree --prelude program.kal
    kal-parse            # interactive, with a 'ready> ' prompt

Author: xwest
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .driver import Driver, ASTDumpGenerator, DEFAULT_PROMPT


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kal-parse",
        description="Parse Kaleidoscope source and print its abstract syntax tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kal-parse examples/fib.kal          # S-expressions
  kal-parse --tree examples/fib.kal   # indented tree
  echo 'def binary| 5 (a b) a+b; 1 | 2 + 3' | kal-parse
        """
    )
    parser.add_argument("file", nargs="?", help="source file (default: stdin)")
    parser.add_argument("--tree", action="store_true", help="print an indented tree instead of S-expressions")
    parser.add_argument("--prelude", action="store_true", help="declare putchard and printd before reading input")
    parser.add_argument("--no-prompt", action="store_true", help="never show the interactive prompt")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every token (same as --log-level DEBUG)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="logging level for diagnostics on stderr (default: WARNING)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    generator = ASTDumpGenerator(sys.stdout, tree=args.tree)

    if args.file:
        try:
            # Undecodable bytes become U+FFFD and lex as ordinary characters
            with open(args.file, "r", encoding="utf-8", errors="replace") as f:
                result = Driver(f, generator, prelude=args.prelude, filename=args.file).run()
        except OSError as e:
            print(f"kal-parse: cannot read {args.file}: {e}", file=sys.stderr)
            return 2
    else:
        if hasattr(sys.stdin, "reconfigure"):
            sys.stdin.reconfigure(errors="replace")
        prompt = None if args.no_prompt or not sys.stdin.isatty() else DEFAULT_PROMPT
        result = Driver(sys.stdin, generator, prelude=args.prelude, prompt=prompt).run()

    for error in result.errors:
        print(str(error).rstrip(), file=sys.stderr)

    return 1 if result.has_errors() else 0


if __name__ == "__main__":
    sys.exit(main())
