"""
Command-line driver for Huffman code tables

  huffcode code INPUT [-o INPUT.code]
      count the bytes of INPUT, build a Huffman tree and save its code table
  huffcode compress INPUT CODE [-o INPUT.short]
      encode INPUT with a saved code table
  huffcode decompress SHORT CODE [-o SHORT.new]
      decode a .short file with the code table it was compressed with

Results are printed to stdout; errors go to stderr with exit status 1.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import bitio
import code_table
import huffman as huff

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        logging.getLogger().setLevel(level)
    return logging.getLogger("huffcode")


def default_output(path: Path, suffix: str) -> Path:
    return path.with_suffix(suffix)


def cmd_code(args: argparse.Namespace) -> int:
    src = Path(args.input)
    out = Path(args.output) if args.output else default_output(src, ".code")

    ft = huff.frequency_table(src.read_bytes())
    root = huff.build_huffman_tree(ft)
    count = code_table.write_code_file(root, out)

    print(f"Wrote {count} code words to {out}")
    return 0


def cmd_compress(args: argparse.Namespace) -> int:
    src = Path(args.input)
    out = Path(args.output) if args.output else default_output(src, ".short")

    root = code_table.read_code_file(args.code)
    code_map = huff.generate_huffman_codes(root)

    data = src.read_bytes()
    writer = bitio.BitWriter()
    total_bits = huff.huffman_encode(data, code_map, writer)
    packed, pad_bits = writer.finish()
    size = bitio.write_short_file(out, packed, pad_bits)

    print(f"Compressed {len(data)} bytes into {size} bytes ({total_bits} bits) at {out}")
    return 0


def cmd_decompress(args: argparse.Namespace) -> int:
    src = Path(args.input)
    out = Path(args.output) if args.output else default_output(src, ".new")

    root = code_table.read_code_file(args.code)
    bits = bitio.read_short_file(src)
    with out.open("wb") as f:
        written = huff.huffman_decode(root, bits, f)

    print(f"Decompressed {written} bytes to {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffcode", description="Build, apply and reverse Huffman code tables")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("code", help="Build a .code table from the byte counts of a file")
    p.add_argument("input", help="File to count")
    p.add_argument("-o", "--output", help="Code table path (default: INPUT with .code suffix)")
    p.set_defaults(func=cmd_code)

    p = sub.add_parser("compress", help="Encode a file with a .code table")
    p.add_argument("input", help="File to compress")
    p.add_argument("code", help="Code table made by 'huffcode code'")
    p.add_argument("-o", "--output", help="Compressed path (default: INPUT with .short suffix)")
    p.set_defaults(func=cmd_compress)

    p = sub.add_parser("decompress", help="Decode a .short file with its .code table")
    p.add_argument("input", help=".short file to decompress")
    p.add_argument("code", help="Code table the file was compressed with")
    p.add_argument("-o", "--output", help="Output path (default: INPUT with .new suffix)")
    p.set_defaults(func=cmd_decompress)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        return args.func(args)
    except (ValueError, OSError) as exc: # HuffmanError is a ValueError
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
