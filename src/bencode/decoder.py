"""
Bencode decoder for BitTorrent metainfo and tracker responses.
"""
import re

from .structure import (
    INT64_MAX,
    INT64_MIN,
    BencodeDict,
    BencodeInt,
    BencodeList,
    BencodeString,
)

DEFAULT_MAX_DEPTH = 256

_NUMBER = re.compile(rb"-?[0-9]+")
_DIGITS = b"0123456789"
_MAX_DIGITS = len(str(INT64_MAX))


class BencodeDecodeError(ValueError):
    """Base exception for Bencode decoding errors."""

    def __init__(self, message: str, position: int):
        super().__init__(f"{message} (at byte {position})")
        self.position = position


class InvalidPrefixNumber(BencodeDecodeError):
    """An integer body or length prefix is not a valid 64-bit decimal."""


class InvalidByteString(BencodeDecodeError):
    """A byte string has a negative length or is truncated."""


class UnexpectedToken(BencodeDecodeError):
    """No production matches the byte at a value or key position."""


class UnexpectedEnd(UnexpectedToken):
    """Input ended before the current value was complete."""


class NestingTooDeep(BencodeDecodeError):
    """Containers are nested deeper than the decoder allows."""


class BencodeDecoder:
    """
    Decodes Bencoded byte strings into Bencode types.

    Productions are selected by the first byte of each value, in the fixed
    order dict, list, byte string, integer. A leading '-' goes to the byte
    string production so a negative length is reported as such.
    """
    def __init__(self, data: bytes, max_depth: int = DEFAULT_MAX_DEPTH):
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError("BencodeDecoder requires bytes.")
        self.data = bytes(data)
        self.i = 0  # cursor index
        self.max_depth = max_depth
        self.depth = 0

    def decode(self):
        """Decodes one complete value and returns it with the unconsumed bytes."""
        result = self._parse_value()
        return result, self.data[self.i:]

    # --------------------------
    # Low-level utilities
    # --------------------------

    def _peek(self):
        if self.i >= len(self.data):
            raise UnexpectedEnd("Unexpected end of input", self.i)
        return self.data[self.i:self.i+1]

    def _consume(self, n=1):
        """Moves cursor forward by n bytes and returns the consumed chunk."""
        chunk = self.data[self.i:self.i+n]
        self.i += n
        return chunk

    def _parse_number(self, end: int) -> int:
        """Parses data[i:end] as a signed 64-bit decimal."""
        body = self.data[self.i:end]
        if not _NUMBER.fullmatch(body):
            raise InvalidPrefixNumber(f"Invalid number {body[:32]!r}", self.i)
        # 64-bit values have at most 19 significant digits
        if len(body.lstrip(b"-").lstrip(b"0")) > _MAX_DIGITS:
            raise InvalidPrefixNumber("Number overflows 64 bits", self.i)
        num = int(body)
        if not INT64_MIN <= num <= INT64_MAX:
            raise InvalidPrefixNumber("Number overflows 64 bits", self.i)
        return num

    def _enter(self):
        self.depth += 1
        if self.depth > self.max_depth:
            raise NestingTooDeep(
                f"Nesting deeper than {self.max_depth} containers", self.i
            )

    # --------------------------
    # Parsing functions
    # --------------------------

    def _parse_value(self):
        ch = self._peek()

        if ch == b'd':
            return self._parse_dict()

        if ch == b'l':
            return self._parse_list()

        if ch in _DIGITS or ch == b'-':  # Bencode strings start with length
            return self._parse_string()

        if ch == b'i':
            return self._parse_int()

        raise UnexpectedToken(f"Invalid token {ch!r}", self.i)

    def _parse_int(self):
        """Parses an integer from the Bencoded data."""
        self._consume(1)  # skip 'i'

        end_pos = self.data.find(b'e', self.i)
        if end_pos == -1:
            raise UnexpectedEnd("Unterminated integer", len(self.data))

        num = self._parse_number(end_pos)
        self.i = end_pos + 1  # skip 'e'
        return BencodeInt(num)

    def _parse_string(self):
        """Parses a byte string from the Bencoded data."""
        # read length until ':'
        colon = self.data.find(b':', self.i)
        if colon == -1:
            raise UnexpectedEnd("Missing ':' after string length", len(self.data))

        start = self.i
        length = self._parse_number(colon)
        if length < 0:
            raise InvalidByteString(f"Negative string length {length}", start)

        self.i = colon + 1
        if len(self.data) - self.i < length:
            raise InvalidByteString(
                f"String of length {length} truncated to "
                f"{len(self.data) - self.i} bytes",
                start,
            )
        return BencodeString(self._consume(length))

    def _parse_list(self):
        """Parses a list from the Bencoded data."""
        self._enter()
        self._consume(1)  # skip 'l'
        items = []

        while self._peek() != b'e':
            items.append(self._parse_value())

        self._consume(1)  # skip 'e'
        self.depth -= 1
        return BencodeList(items)

    def _parse_dict(self):
        """Parses a dictionary from the Bencoded data."""
        self._enter()
        self._consume(1)  # skip 'd'
        obj = {}

        while self._peek() != b'e':
            # keys MUST be strings
            ch = self._peek()
            if ch not in _DIGITS and ch != b'-':
                raise UnexpectedToken(f"Dictionary key must be a string, got {ch!r}", self.i)
            key = self._parse_string().value
            # a repeated key keeps its first position and takes the later value
            obj[key] = self._parse_value()

        self._consume(1)  # skip 'e'
        self.depth -= 1
        return BencodeDict(obj)


def parse(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH):
    """
    Decodes the first Bencoded value in data.

    Returns a (value, remaining) tuple; trailing bytes are not an error.
    """
    return BencodeDecoder(data, max_depth).decode()


def decode(data: bytes, max_depth: int = DEFAULT_MAX_DEPTH):
    """
    Convenience function to decode Bencoded data.
    """
    return parse(data, max_depth)[0]
