from __future__ import annotations

import argparse
import os


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments for the smoke runner."""
    parser = argparse.ArgumentParser(description="dualserve smoke runner")
    parser.add_argument("--http-url", default=os.getenv("HTTP_URL", "http://127.0.0.1:80"))
    parser.add_argument("--https-url", default=os.getenv("HTTPS_URL", "https://127.0.0.1:443"))
    parser.add_argument("--timeout", type=float, default=20.0)
    parser.add_argument("--poll", type=float, default=0.25, dest="poll_interval")
    parser.add_argument(
        "--verify",
        action="store_true",
        help="verify the HTTPS certificate (off by default for self-signed certs)",
    )
    return parser.parse_args(argv)
