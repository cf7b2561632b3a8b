"""
Bencode encoder for BitTorrent metainfo and tracker responses.

Dictionaries are written in their stored iteration order, never re-sorted,
so re-encoding a decoded value reproduces its original bytes.
"""
from .structure import (
    INT64_MAX,
    INT64_MIN,
    BencodeDict,
    BencodeInt,
    BencodeList,
    BencodeString,
)


def encode(obj) -> bytes:
    """
    Encodes a Python object or BencodeType into bencoded bytes.

    Containers are walked with an explicit stack, so any nesting the decoder
    accepts can be written back without hitting the recursion limit.
    """
    parts = []
    # (True, chunk) entries are already-encoded bytes, (False, obj) still need encoding
    stack = [(False, obj)]

    while stack:
        done, item = stack.pop()
        if done:
            parts.append(item)
            continue

        if isinstance(item, bool):
            raise TypeError("Cannot bencode a bool")

        if isinstance(item, (int, BencodeInt)):
            parts.append(encode_int(item if isinstance(item, int) else item.value))

        elif isinstance(item, str):
            parts.append(encode_str(item))

        elif isinstance(item, (bytes, bytearray, BencodeString)):
            # BencodeString wraps bytes
            parts.append(encode_bytes(bytes(item.value if isinstance(item, BencodeString) else item)))

        elif isinstance(item, (list, tuple, BencodeList)):
            value = item.value if isinstance(item, BencodeList) else item
            parts.append(b"l")
            stack.append((True, b"e"))
            stack.extend((False, x) for x in reversed(value))

        elif isinstance(item, (dict, BencodeDict)):
            value = item.value if isinstance(item, BencodeDict) else item
            parts.append(b"d")
            stack.append((True, b"e"))
            for key, val in reversed(list(value.items())):
                stack.append((False, val))
                stack.append((True, encode_bytes(_key_bytes(key))))

        else:
            raise TypeError(f"Cannot bencode object of type {type(item)}")

    return b"".join(parts)


# ------------------------------------------------------------
#   Encoding primitives
# ------------------------------------------------------------

def _key_bytes(key) -> bytes:
    if isinstance(key, str):
        return key.encode()
    if isinstance(key, BencodeString):
        return key.value
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    raise TypeError(f"Dictionary keys must be bytes or str, not {type(key)}")


def encode_int(n: int) -> bytes:
    """Encodes an integer to bencoded bytes (e.g., i123e)."""
    if not INT64_MIN <= n <= INT64_MAX:
        raise ValueError(f"Integer out of 64-bit range: {n}")
    return f"i{n}e".encode()


def encode_bytes(b: bytes) -> bytes:
    """Encodes bytes to bencoded bytes (e.g., 4:spam)."""
    return str(len(b)).encode() + b":" + b


def encode_str(s: str) -> bytes:
    """Encodes a string to bencoded bytes (e.g., 4:spam)."""
    b = s.encode()
    return encode_bytes(b)

