"""
Command-line front end for the Huffman coder.

Reads a text file, builds a coder over its characters and prints the
encoded form, the decoded form, whether the round trip matched and the
compression rate.

How to run:
  python huffman_cli.py input.txt
  python huffman_cli.py input.txt --preview-limit 500 --verbose
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from huffman import HuffmanCoder, HuffmanError

logger = logging.getLogger("huffman_cli")


def read_text(path: Path) -> str:
    # lines joined by newlines, last trailing newline dropped
    with path.open("r", encoding="utf-8") as f:
        lines = [line.rstrip("\n") for line in f]
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffman-coder", description="Huffman encode and decode a text file")
    ap.add_argument("path", nargs="?", help="Input text file")
    ap.add_argument("--preview-limit", type=int, default=100,
                    help="Echo input, encoded and decoded strings for inputs shorter than this")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.path is None:
        print("Please provide an input file as a command-line argument")
        ap.print_usage()
        return 0

    path = Path(args.path)
    try:
        text = read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("cannot read %s: %s", path, e)
        return 1

    try:
        huff = HuffmanCoder(text)
        encoded = huff.encode()
        decoded = huff.decode()
    except HuffmanError as e:
        logger.error("coding failed: %s", e)
        return 1

    if len(text) < args.preview_limit:
        print(f"Input string: {text}")
        print(f"Encoded string: {encoded}")
        print(f"Decoded string: {decoded}")

    print(f"Decoded equals input: {decoded == text}")
    print(f"Compression rate: {huff.compression_rate()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
