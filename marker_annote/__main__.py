# marker_annote/__main__.py
from __future__ import annotations

import argparse
from typing import List, Optional

from .app import run_app


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="marker-annote", description="Annotate timeline markers on videos.")
    parser.add_argument("--api", default=None, help="Video store endpoint (default from MARKER_ANNOTE_API_ENDPOINT)")
    args = parser.parse_args(argv)
    return run_app(api_endpoint=args.api)


if __name__ == "__main__":
    raise SystemExit(main())
