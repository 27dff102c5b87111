import logging
from pathlib import Path
from typing import Tuple, Union

logger = logging.getLogger(__name__)


class BitWriter: # packs bits MSB first into bytes
    def __init__(self) -> None:
        self.buf = bytearray()
        self.acc = 0
        self.bits = 0

    def write_bit(self, bit: int) -> None:
        self.acc = (self.acc << 1) | (1 if bit else 0)
        self.bits += 1
        if self.bits == 8:
            self.buf.append(self.acc & 0xFF)
            self.acc = 0
            self.bits = 0

    def write_code(self, code: str) -> None: # code: string of '0'/'1'
        for ch in code:
            self.write_bit(ch == '1')

    def finish(self) -> Tuple[bytes, int]:
        """
        Flush the partial byte, zero padded
        Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
        """
        pad_bits = 0
        if self.bits != 0:
            pad_bits = 8 - self.bits
            self.buf.append((self.acc << pad_bits) & 0xFF)
            self.acc = 0
            self.bits = 0
        return bytes(self.buf), pad_bits


class BitReader: # reads bits MSB first, ignoring pad_bits at the end
    def __init__(self, data: bytes, pad_bits: int = 0) -> None:
        if not 0 <= pad_bits <= 7:
            raise ValueError(f"pad_bits must be in 0..7, got {pad_bits}")
        if pad_bits and not data:
            raise ValueError("pad_bits given for an empty bitstream")
        self.data = data
        self.total_bits = len(data) * 8 - pad_bits
        self.position = 0

    def has_next_bit(self) -> bool:
        return self.position < self.total_bits

    def next_bit(self) -> int:
        if self.position >= self.total_bits:
            raise EOFError("no bits left in the bitstream")
        byte = self.data[self.position >> 3]
        bit = (byte >> (7 - (self.position & 7))) & 1
        self.position += 1
        return bit


def pack_bits(code: str) -> Tuple[bytes, int]:
    """Pack a '0'/'1' string into (bytes, pad_bits)."""
    writer = BitWriter()
    writer.write_code(code)
    return writer.finish()


def write_short_file(path: Union[str, Path], packed: bytes, pad_bits: int) -> int:
    """Write a .short file: one header byte with pad_bits, then the packed bits."""
    if not 0 <= pad_bits <= 7:
        raise ValueError(f"pad_bits must be in 0..7, got {pad_bits}")
    payload = bytes((pad_bits,)) + packed
    Path(path).write_bytes(payload)
    logger.debug("wrote %d bytes to %s", len(payload), path)
    return len(payload)


def read_short_file(path: Union[str, Path]) -> BitReader:
    payload = Path(path).read_bytes()
    if not payload:
        raise ValueError(f"{path} is missing the .short header byte")
    return BitReader(payload[1:], pad_bits=payload[0])
