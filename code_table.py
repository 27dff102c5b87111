"""
Save and load Huffman code tables

A .code file stores one leaf per pair of lines: the decimal byte value, then
its root-to-leaf path written with '0' for left and '1' for right. There is no
header and no end marker. A tree that is a single leaf is stored with an empty
path line.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

from huffman import (
    ALPHABET_SIZE,
    AmbiguousCodeError,
    HuffmanInternal,
    HuffmanLeaf,
    MalformedTableError,
    Tree,
    iter_leaf_paths,
)

logger = logging.getLogger(__name__)


def save_code_table(root: Tree, sink) -> int:
    """Write the (symbol, path) lines of every leaf to sink; return the leaf count."""
    count = 0
    for symbol, path in iter_leaf_paths(root):
        sink.write(f"{symbol}\n")
        sink.write(f"{path}\n")
        count += 1
    return count


def write_code_file(root: Tree, path: Union[str, Path]) -> int:
    with Path(path).open("w", encoding="ascii", newline="\n") as f:
        count = save_code_table(root, f)
    logger.debug("wrote %d code words to %s", count, path)
    return count


class _TrieNode: # growing node used only while a table is being read
    def __init__(self):
        self.children: Dict[str, "_TrieNode"] = {}
        self.symbol: Optional[int] = None


def _read_pairs(source: Iterable[str]) -> Iterator[Tuple[int, int, str]]:
    """Yield (line number of the symbol line, symbol, path) for each pair."""
    lines = iter(source)
    line_number = 0
    for symbol_line in lines:
        line_number += 1
        try:
            path_line = next(lines)
        except StopIteration:
            raise MalformedTableError("symbol line has no matching path line", line_number) from None

        symbol_text = symbol_line.rstrip("\r\n").strip()
        path = path_line.rstrip("\r\n")

        if not symbol_text.isdigit() or not symbol_text.isascii():
            raise MalformedTableError(f"expected a decimal symbol, got {symbol_text!r}", line_number)
        symbol = int(symbol_text)
        if symbol >= ALPHABET_SIZE:
            raise MalformedTableError(f"symbol {symbol} is outside 0..{ALPHABET_SIZE - 1}", line_number)
        if path.strip("01"):
            raise MalformedTableError(f"code word {path!r} may only contain '0' and '1'", line_number + 1)
        if len(path) > ALPHABET_SIZE - 1:
            raise MalformedTableError(
                f"code word of length {len(path)} is longer than any code over {ALPHABET_SIZE} symbols", line_number + 1
            )

        yield line_number, symbol, path
        line_number += 1


def _insert(root: _TrieNode, symbol: int, path: str, line_number: int) -> None:
    node = root
    for depth, bit in enumerate(path):
        if node.symbol is not None:
            raise AmbiguousCodeError(
                f"line {line_number}: code word {path!r} for symbol {symbol} has "
                f"the code word {path[:depth]!r} of symbol {node.symbol} as a prefix"
            )
        node = node.children.setdefault(bit, _TrieNode())

    if node.symbol is not None:
        raise AmbiguousCodeError(
            f"line {line_number}: symbols {node.symbol} and {symbol} share the code word {path!r}"
        )
    if node.children:
        raise AmbiguousCodeError(
            f"line {line_number}: code word {path!r} for symbol {symbol} is a prefix of another code word"
        )
    node.symbol = symbol


def _freeze(node: _TrieNode, path: str) -> Tree:
    if node.symbol is not None:
        return HuffmanLeaf(node.symbol)
    if len(node.children) != 2:
        missing = '1' if '0' in node.children else '0'
        raise MalformedTableError(f"incomplete code: no code word starts with {path + missing!r}")
    return HuffmanInternal(_freeze(node.children['0'], path + '0'),
                           _freeze(node.children['1'], path + '1'))


def load_code_table(source: Iterable[str]) -> Tree:
    """
    Rebuild a code tree from the lines of a saved code table.

    source is any iterable of text lines, such as an open file. Pairs may come
    in any order. Raises MalformedTableError for unparsable or incomplete
    tables and AmbiguousCodeError when the code words are not prefix-free.
    """
    root = _TrieNode()
    seen: Dict[int, int] = {} # symbol -> line it was first given on
    for line_number, symbol, path in _read_pairs(source):
        if symbol in seen:
            raise MalformedTableError(f"symbol {symbol} already has a code word on line {seen[symbol]}", line_number)
        seen[symbol] = line_number
        _insert(root, symbol, path, line_number)

    entries = len(seen)
    if entries == 0:
        raise MalformedTableError("code table is empty")

    logger.debug("loaded %d code words", entries)
    return _freeze(root, '')


def read_code_file(path: Union[str, Path]) -> Tree:
    with Path(path).open("r", encoding="ascii") as f:
        return load_code_table(f)
