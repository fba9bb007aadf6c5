from __future__ import annotations

import argparse
import logging
import sys

from .api import compile_file
from .errors import ProtoTsError


logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="protots", description="Generate zod schemas from a .proto file")
    ap.add_argument("file", nargs="?", metavar="FILE", help="Input .proto file")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.file is None:
        ap.print_usage(sys.stdout)
        return 1

    try:
        schema = compile_file(args.file)
    except ProtoTsError as e:
        logger.debug("compilation of %s failed", args.file, exc_info=True)
        print(e, file=sys.stderr)
        return 2

    sys.stdout.write(schema)
    return 0
