import pytest

import huffman as huff
from helpers import freqs_from


@pytest.fixture
def abcd_tree():
    # A=1, B=00, C=010, D=011 with the (frequency, order) tie-break
    return huff.build_huffman_tree(freqs_from({"A": 5, "B": 2, "C": 1, "D": 1}))
