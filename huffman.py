import heapq
import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

ALPHABET_SIZE = 256 # one symbol per byte value


class HuffmanError(ValueError):
    """Base class for malformed frequency tables, code tables and bitstreams."""


class EmptyAlphabetError(HuffmanError):
    """No symbol has a positive frequency, so there is nothing to build."""


class MalformedTableError(HuffmanError):
    """A saved code table cannot be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class AmbiguousCodeError(HuffmanError):
    """Two code words collide, or one is a prefix of another."""


class TruncatedStreamError(HuffmanError):
    """The bit source ran out in the middle of a code word."""


class HuffmanNode: # common base so leaves and merged nodes share one heap
    # order only breaks ties inside build_huffman_tree; nodes made by the
    # table loader carry placeholder values and nothing reads order afterwards
    frequency = 0
    order = 0

    @property
    def is_leaf(self) -> bool:
        return False

    def __lt__(self, other):
        # heapq only needs <; order breaks frequency ties deterministically
        return (self.frequency, self.order) < (other.frequency, other.order)


class HuffmanLeaf(HuffmanNode): # Leaf: exactly one byte symbol, no children
    def __init__(self, symbol: int, frequency: int = 0, order: Optional[int] = None):
        self.symbol = symbol
        self.frequency = frequency
        self.order = symbol if order is None else order

    @property
    def is_leaf(self) -> bool:
        return True

    def __repr__(self):
        return f"HuffmanLeaf({self.symbol!r}, frequency={self.frequency})"


class HuffmanInternal(HuffmanNode): # Internal: two children, aggregate frequency
    def __init__(self, left: HuffmanNode, right: HuffmanNode, order: int = 0):
        self.left = left
        self.right = right
        self.frequency = left.frequency + right.frequency
        self.order = order

    def __repr__(self):
        return f"HuffmanInternal({self.left!r}, {self.right!r})"


Tree = Union[HuffmanLeaf, HuffmanInternal]


def frequency_table(data: bytes) -> List[int]: # data: raw bytes to count
    freqs = [0] * ALPHABET_SIZE
    for b in data:
        freqs[b] += 1
    return freqs


def build_huffman_tree(frequencies: Sequence[int]) -> Tree:
    """
    Build an optimal prefix tree from a 256-entry frequency table.

    Candidates are ordered by (frequency, order). Leaves take their symbol as
    order and merged nodes are numbered from 256 upwards as they are created,
    so equal frequencies resolve to the lowest symbol first, then the oldest
    merge. The first node popped becomes the left child.
    """
    if len(frequencies) != ALPHABET_SIZE:
        raise ValueError(f"frequency table must have {ALPHABET_SIZE} entries, got {len(frequencies)}")

    priority_queue: List[HuffmanNode] = []
    for symbol, frequency in enumerate(frequencies):
        if frequency < 0:
            raise ValueError(f"negative frequency {frequency} for symbol {symbol}")
        if frequency > 0:
            priority_queue.append(HuffmanLeaf(symbol, frequency))

    if not priority_queue:
        raise EmptyAlphabetError("frequency table has no symbol with a positive count")

    heapq.heapify(priority_queue)
    logger.debug("building Huffman tree from %d symbols", len(priority_queue))

    next_order = ALPHABET_SIZE
    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue)
        right = heapq.heappop(priority_queue)
        heapq.heappush(priority_queue, HuffmanInternal(left, right, order=next_order))
        next_order += 1

    return priority_queue[0] # a lone leaf is returned as the root unwrapped


def iter_leaf_paths(root: Tree) -> Iterator[Tuple[int, str]]:
    """Yield (symbol, path) for every leaf, left to right in pre-order."""
    def walk(node, path):
        if node.is_leaf:
            yield node.symbol, path
            return
        yield from walk(node.left, path + '0')
        yield from walk(node.right, path + '1')

    yield from walk(root, '')


def generate_huffman_codes(root: Tree) -> Dict[int, str]: # symbol -> code word
    codes = dict(iter_leaf_paths(root))

    # A one-symbol tree has the empty path; give it a one-bit code word so
    # every occurrence still costs a bit in the stream
    if root.is_leaf:
        codes[root.symbol] = '0'
    return codes


def huffman_encode(data: bytes, code_map: Dict[int, str], writer) -> int:
    """Write the code word of every byte in data to writer; return the bit count."""
    total_bits = 0
    for b in data:
        try:
            code = code_map[b]
        except KeyError:
            raise ValueError(f"symbol {b} has no code word in this code table") from None
        writer.write_code(code)
        total_bits += len(code)
    return total_bits


def huffman_decode(root: Tree, bits, out) -> int:
    """
    Decode symbols from bits until it is exhausted at a symbol boundary.

    bits needs has_next_bit() and next_bit(); out needs write(bytes). Each
    decoded symbol is written as soon as its leaf is reached, so on a
    TruncatedStreamError every complete symbol before the cut has already been
    written. A single-leaf tree consumes one bit per emitted symbol.

    Returns the number of bytes written.
    """
    written = 0
    while bits.has_next_bit():
        node = root
        if node.is_leaf:
            bits.next_bit()
        while not node.is_leaf:
            if not bits.has_next_bit():
                raise TruncatedStreamError(
                    f"bitstream ended inside a code word after {written} decoded bytes"
                )
            node = node.right if bits.next_bit() == 1 else node.left

        out.write(bytes((node.symbol,)))
        written += 1

    logger.debug("decoded %d bytes", written)
    return written
