#!/usr/bin/env python3
"""
Generate the Flask SECRET_KEY for the Sleep Registry API.

Prints a new key, or with ``--write`` sets it in a .env file, replacing any
existing SECRET_KEY line and keeping the rest of the file.
"""

import argparse
import secrets
from pathlib import Path


def generate_secret_key(nbytes: int = 32) -> str:
    return secrets.token_hex(nbytes)


def update_env_file(path: Path, key: str) -> None:
    lines = path.read_text().splitlines() if path.exists() else []
    lines = [line for line in lines if not line.startswith("SECRET_KEY=")]
    lines.append(f"SECRET_KEY={key}")
    path.write_text("\n".join(lines) + "\n")


def main():
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--write", metavar="ENV_FILE", nargs="?", const=".env",
                        help="store the key in ENV_FILE (default .env) instead of printing it")
    args = parser.parse_args()

    key = generate_secret_key()
    if args.write:
        update_env_file(Path(args.write), key)
        print(f"[secret] SECRET_KEY written to {args.write}")
    else:
        print(f"SECRET_KEY={key}")


if __name__ == "__main__":
    main()
