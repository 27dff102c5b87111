import io
import random

import pytest

import huffman as huff
from bitio import BitReader, BitWriter, pack_bits
from helpers import ListBits, freqs_from, leaf_paths


def _internal_nodes(node):
    if node.is_leaf:
        return []
    return [node] + _internal_nodes(node.left) + _internal_nodes(node.right)


def test_frequency_table_counts_every_byte():
    ft = huff.frequency_table(b"abca\x00\xff")
    assert len(ft) == 256
    assert ft[ord("a")] == 2
    assert ft[ord("b")] == 1
    assert ft[0] == 1 and ft[255] == 1
    assert sum(ft) == 6


def test_build_empty_alphabet_raises():
    with pytest.raises(huff.EmptyAlphabetError):
        huff.build_huffman_tree([0] * 256)


def test_build_rejects_wrong_length_and_negative_counts():
    with pytest.raises(ValueError):
        huff.build_huffman_tree([1, 2, 3])
    ft = [0] * 256
    ft[10] = -1
    with pytest.raises(ValueError):
        huff.build_huffman_tree(ft)


def test_single_symbol_is_a_bare_leaf():
    root = huff.build_huffman_tree(freqs_from({65: 10}))
    assert root.is_leaf
    assert root.symbol == 65
    assert list(huff.iter_leaf_paths(root)) == [(65, "")]


def test_tie_break_is_deterministic(abcd_tree):
    assert leaf_paths(abcd_tree) == {ord("A"): "1", ord("B"): "00", ord("C"): "010", ord("D"): "011"}
    assert abcd_tree.frequency == 9


def test_equal_frequencies_favour_lowest_symbol():
    root = huff.build_huffman_tree(freqs_from({"D": 1, "C": 1, "B": 1, "A": 1}))
    # A,B merged first (left), C,D next (right)
    assert leaf_paths(root) == {ord("A"): "00", ord("B"): "01", ord("C"): "10", ord("D"): "11"}


def test_nul_byte_is_a_real_symbol():
    root = huff.build_huffman_tree(freqs_from({0: 3, 1: 1}))
    assert sorted(leaf_paths(root)) == [0, 1]

    out = io.BytesIO()
    huff.huffman_decode(root, ListBits("1" + "0" + "0"), out)
    # the rarer symbol 1 is popped first and becomes the left child
    assert out.getvalue() == b"\x00\x01\x01"


@pytest.mark.parametrize("seed", range(5))
def test_built_trees_are_full_and_prefix_free(seed):
    rng = random.Random(seed)
    ft = [rng.choice([0, 0, 1, 2, 5, 40, 1000]) for _ in range(256)]
    ft[rng.randrange(256)] = 7
    ft[rng.randrange(256)] = 3
    root = huff.build_huffman_tree(ft)

    for node in _internal_nodes(root):
        assert node.left is not None and node.right is not None
        assert node.frequency == node.left.frequency + node.right.frequency

    codes = list(huff.generate_huffman_codes(root).values())
    assert len(codes) == sum(1 for f in ft if f > 0)
    for i, a in enumerate(codes):
        for j, b in enumerate(codes):
            if i != j:
                assert not b.startswith(a)


def test_generate_codes_matches_tree(abcd_tree):
    assert huff.generate_huffman_codes(abcd_tree) == leaf_paths(abcd_tree)


def test_generate_codes_single_leaf_gets_one_bit():
    root = huff.build_huffman_tree(freqs_from({"x": 4}))
    assert huff.generate_huffman_codes(root) == {ord("x"): "0"}


def test_decode_reproduces_message(abcd_tree):
    codes = huff.generate_huffman_codes(abcd_tree)
    bits = "".join(codes[b] for b in b"AAABBC")

    out = io.BytesIO()
    written = huff.huffman_decode(abcd_tree, ListBits(bits), out)
    assert out.getvalue() == b"AAABBC"
    assert written == 6


def test_decode_empty_stream_writes_nothing(abcd_tree):
    out = io.BytesIO()
    assert huff.huffman_decode(abcd_tree, ListBits(""), out) == 0
    assert out.getvalue() == b""


def test_truncated_stream_raises_after_flushing_complete_symbols():
    root = huff.build_huffman_tree(freqs_from({"A": 1, "B": 1, "C": 1, "D": 1}))
    out = io.BytesIO()
    # "01" is B, then half of the next two-bit code word
    with pytest.raises(huff.TruncatedStreamError):
        huff.huffman_decode(root, ListBits("011"), out)
    assert out.getvalue() == b"B"


def test_truncation_mid_shortest_code_word():
    root = huff.build_huffman_tree(freqs_from({"A": 1, "B": 1, "C": 1, "D": 1}))
    with pytest.raises(huff.TruncatedStreamError):
        huff.huffman_decode(root, ListBits("0"), io.BytesIO())


def test_single_leaf_decode_emits_one_symbol_per_bit():
    root = huff.build_huffman_tree(freqs_from({"z": 9}))
    out = io.BytesIO()
    assert huff.huffman_decode(root, ListBits("0000"), out) == 4
    assert out.getvalue() == b"zzzz"


def test_encode_then_decode_with_packed_bits():
    data = b"abracadabra, a bra in a cadaver"
    root = huff.build_huffman_tree(huff.frequency_table(data))
    writer = BitWriter()
    total_bits = huff.huffman_encode(data, huff.generate_huffman_codes(root), writer)
    packed, pad_bits = writer.finish()
    assert len(packed) * 8 - pad_bits == total_bits

    out = io.BytesIO()
    huff.huffman_decode(root, BitReader(packed, pad_bits), out)
    assert out.getvalue() == data


def test_encode_unknown_symbol_raises(abcd_tree):
    with pytest.raises(ValueError, match="symbol 90"):
        huff.huffman_encode(b"AZ", huff.generate_huffman_codes(abcd_tree), BitWriter())


def test_decode_padded_bits_are_ignored(abcd_tree):
    packed, pad_bits = pack_bits("1" + "00" + "011")
    out = io.BytesIO()
    huff.huffman_decode(abcd_tree, BitReader(packed, pad_bits), out)
    assert out.getvalue() == b"ABD"
