"""
Bencode package for encoding and decoding BitTorrent data.
"""
from .decoder import (
    DEFAULT_MAX_DEPTH,
    BencodeDecodeError,
    InvalidByteString,
    InvalidPrefixNumber,
    NestingTooDeep,
    UnexpectedEnd,
    UnexpectedToken,
    decode,
    parse,
)
from .encoder import encode
from .structure import BencodeDict, BencodeInt, BencodeList, BencodeString, BencodeType

__all__ = [
    'decode', 'parse', 'encode', 'DEFAULT_MAX_DEPTH',
    'BencodeType', 'BencodeInt', 'BencodeString', 'BencodeList', 'BencodeDict',
    'BencodeDecodeError', 'InvalidPrefixNumber', 'InvalidByteString',
    'UnexpectedToken', 'UnexpectedEnd', 'NestingTooDeep',
]
