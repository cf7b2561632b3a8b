"""
Data structures for representing Bencoded types.

Every value is immutable once built. Containers hold other BencodeType
instances; dictionary keys are raw bytes and keep insertion order.
"""
from types import MappingProxyType

__all__ = [
    "BencodeType",
    "BencodeInt",
    "BencodeString",
    "BencodeList",
    "BencodeDict",
    "INT64_MIN",
    "INT64_MAX",
]

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class BencodeType:
    """Base class for all Bencode data types."""
    __slots__ = ("_value",)

    def __init__(self, value):
        object.__setattr__(self, "_value", value)

    @property
    def value(self):
        return self._value

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._value == other._value

    def __hash__(self):
        return hash((type(self).__name__, self._value))

    def __repr__(self):
        return f"{type(self).__name__}({self._value!r})"


class BencodeInt(BencodeType):
    """Represents a Bencoded integer (signed 64-bit)."""
    __slots__ = ()

    def __init__(self, value: int):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("BencodeInt requires an integer.")
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueError(f"BencodeInt out of 64-bit range: {value}")
        super().__init__(value)


class BencodeString(BencodeType):
    """Represents a Bencoded byte string."""
    __slots__ = ()

    def __init__(self, value: bytes):
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError("BencodeString requires bytes.")
        super().__init__(bytes(value))

    def __len__(self):
        return len(self._value)

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the bytes as text; raises UnicodeDecodeError if invalid."""
        return self._value.decode(encoding)


class BencodeList(BencodeType):
    """Represents a Bencoded list."""
    __slots__ = ()

    def __init__(self, value):
        if not isinstance(value, (list, tuple)):
            raise TypeError("BencodeList requires a list.")
        for item in value:
            if not isinstance(item, BencodeType):
                raise TypeError("BencodeList items must be Bencode types.")
        super().__init__(tuple(value))

    def __len__(self):
        return len(self._value)

    def __iter__(self):
        return iter(self._value)

    def __getitem__(self, index):
        return self._value[index]


class BencodeDict(BencodeType):
    """
    Represents a Bencoded dictionary.

    Keys are bytes and iteration follows insertion order, which is also the
    order the encoder writes them back in. Two dictionaries are equal only
    when their items match in the same order.
    """
    __slots__ = ()

    def __init__(self, value):
        if isinstance(value, MappingProxyType):
            value = dict(value)
        if not isinstance(value, dict):
            raise TypeError("BencodeDict requires a dict.")
        items = {}
        for k, v in value.items():
            # keys must be bytes (bencode requirement)
            if not isinstance(k, (bytes, bytearray)):
                raise TypeError("BencodeDict keys must be bytes.")
            if not isinstance(v, BencodeType):
                raise TypeError("BencodeDict values must be Bencode types.")
            items[bytes(k)] = v
        super().__init__(MappingProxyType(items))

    def __eq__(self, other):
        if not isinstance(other, BencodeDict):
            return NotImplemented
        return list(self._value.items()) == list(other._value.items())

    def __hash__(self):
        return hash(("BencodeDict", tuple(self._value.items())))

    def __repr__(self):
        return f"BencodeDict({dict(self._value)!r})"

    def __len__(self):
        return len(self._value)

    def __iter__(self):
        return iter(self._value)

    def __contains__(self, key):
        return key in self._value

    def __getitem__(self, key):
        return self._value[key]

    def get(self, key, default=None):
        return self._value.get(key, default)

    def items(self):
        return self._value.items()
