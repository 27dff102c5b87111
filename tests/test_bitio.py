import pytest

from bitio import BitReader, BitWriter, pack_bits, read_short_file, write_short_file


def _drain(reader):
    bits = []
    while reader.has_next_bit():
        bits.append(str(reader.next_bit()))
    return "".join(bits)


def test_writer_packs_msb_first_and_pads():
    w = BitWriter()
    w.write_code("101")
    assert w.finish() == (bytes([0b10100000]), 5)


def test_writer_full_bytes_have_no_padding():
    assert pack_bits("1111000000001111") == (b"\xf0\x0f", 0)


def test_writer_empty():
    assert BitWriter().finish() == (b"", 0)


def test_reader_stops_before_padding():
    packed, pad_bits = pack_bits("1100101")
    reader = BitReader(packed, pad_bits)
    assert _drain(reader) == "1100101"
    with pytest.raises(EOFError):
        reader.next_bit()


def test_reader_rejects_bad_pad_bits():
    with pytest.raises(ValueError):
        BitReader(b"\x00", pad_bits=8)
    with pytest.raises(ValueError):
        BitReader(b"", pad_bits=3)


def test_short_file_round_trip(tmp_path):
    packed, pad_bits = pack_bits("0110100111")
    path = tmp_path / "x.short"
    assert write_short_file(path, packed, pad_bits) == len(packed) + 1
    assert path.read_bytes()[0] == pad_bits
    assert _drain(read_short_file(path)) == "0110100111"


def test_short_file_without_header(tmp_path):
    path = tmp_path / "empty.short"
    path.write_bytes(b"")
    with pytest.raises(ValueError):
        read_short_file(path)


def test_short_file_bad_header(tmp_path):
    path = tmp_path / "bad.short"
    path.write_bytes(b"\x09\xff")
    with pytest.raises(ValueError):
        read_short_file(path)
