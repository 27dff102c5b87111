"""Shared helpers for the test modules"""

import huffman as huff


def freqs_from(counts):
    """256-entry frequency table from a {symbol or char: count} dict"""
    ft = [0] * huff.ALPHABET_SIZE
    for key, count in counts.items():
        ft[ord(key) if isinstance(key, str) else key] = count
    return ft


def leaf_paths(node, path=""):
    """Collect {symbol: path} straight from the node objects"""
    if node.is_leaf:
        return {node.symbol: path}
    out = leaf_paths(node.left, path + "0")
    out.update(leaf_paths(node.right, path + "1"))
    return out


class ListBits:
    """Bit source over a '0'/'1' string"""

    def __init__(self, code: str):
        self.code = code
        self.pos = 0

    def has_next_bit(self):
        return self.pos < len(self.code)

    def next_bit(self):
        if self.pos >= len(self.code):
            raise EOFError("no bits left")
        bit = 1 if self.code[self.pos] == "1" else 0
        self.pos += 1
        return bit


