"""
Key generator for the one-time pad services.

Usage:
    otp-keygen KEYLENGTH > keyfile

Writes KEYLENGTH symbols drawn uniformly from the alphabet, followed by a
newline.
"""

import argparse
import secrets
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from .cipher import ALPHABET
from .files import TERMINATOR


def generate_key(length: int) -> str:
    """
    Generate length key symbols.

    Raises:
        ValueError: If length is less than 1
    """
    if length < 1:
        raise ValueError("keylength must be greater than 0")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the key generator."""
    parser = argparse.ArgumentParser(prog="keygen", description="One-time pad key generator")
    parser.add_argument("keylength", type=int, help="Number of key symbols to generate")
    args = parser.parse_args(argv)

    try:
        key = generate_key(args.keylength)
    except ValueError as e:
        Console(stderr=True, soft_wrap=True).print(f"[red]keygen: {escape(str(e))}[/red]")
        return 1

    sys.stdout.write(key + TERMINATOR)
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
