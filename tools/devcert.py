#!/usr/bin/env python3
"""Write a self-signed tls.crt/tls.key pair for local runs.

Uses the openssl CLI so the server itself needs no extra dependency.
"""
from __future__ import annotations

import argparse
import shutil
import subprocess
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
OUT = ROOT / "pki"


def generate(out_dir: Path, common_name: str = "localhost", days: int = 365) -> tuple[Path, Path]:
    """Create out_dir/tls.crt and out_dir/tls.key and return their paths."""
    openssl = shutil.which("openssl")
    if openssl is None:
        raise SystemExit("openssl not found on PATH")

    out_dir.mkdir(parents=True, exist_ok=True)
    cert = out_dir / "tls.crt"
    key = out_dir / "tls.key"
    subprocess.run(
        [
            openssl,
            "req",
            "-x509",
            "-newkey",
            "rsa:2048",
            "-nodes",
            "-days",
            str(days),
            "-subj",
            f"/CN={common_name}",
            "-addext",
            f"subjectAltName=DNS:{common_name},IP:127.0.0.1",
            "-keyout",
            str(key),
            "-out",
            str(cert),
        ],
        check=True,
        capture_output=True,
    )
    return cert, key


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--out", type=Path, default=OUT)
    parser.add_argument("--cn", default="localhost")
    parser.add_argument("--days", type=int, default=365)
    args = parser.parse_args()

    cert, key = generate(args.out, args.cn, args.days)
    print("Created:")
    print(" - TLS_CERT", cert)
    print(" - TLS_KEY ", key)


if __name__ == "__main__":
    main()
