import hashlib
import logging
from collections.abc import Sequence
from pathlib import Path

from bencode import BencodeDecodeError, decode, encode
from bencode.structure import BencodeDict, BencodeInt, BencodeList, BencodeString

logger = logging.getLogger(__name__)

PIECE_HASH_LEN = 20


class InvalidInput(ValueError):
    """The bytes are not a well-formed metadata document."""


class PieceHashes(Sequence):
    """
    The 'pieces' field viewed as consecutive 20-byte SHA-1 hashes.

    Chunks are sliced on access; every iteration starts from the first piece.
    """
    def __init__(self, raw: bytes):
        if len(raw) % PIECE_HASH_LEN:
            raise ValueError("length is not a multiple of 20")
        self._raw = raw

    def __len__(self):
        return len(self._raw) // PIECE_HASH_LEN

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("piece index out of range")
        start = index * PIECE_HASH_LEN
        return self._raw[start:start + PIECE_HASH_LEN]

    def __iter__(self):
        for i in range(0, len(self._raw), PIECE_HASH_LEN):
            yield self._raw[i:i + PIECE_HASH_LEN]

    def __repr__(self):
        return f"PieceHashes(count={len(self)})"


def _require(mapping: BencodeDict, key: bytes, kind):
    value = mapping.get(key)
    if value is None:
        raise InvalidInput(f"missing {key.decode()!r}")
    if not isinstance(value, kind):
        raise InvalidInput(f"{key.decode()!r} has the wrong type")
    return value


def _text(value: BencodeString, field: str) -> str:
    try:
        return value.text()
    except UnicodeDecodeError as exc:
        raise InvalidInput(f"{field!r} is not valid UTF-8 text") from exc


def _optional_text(mapping: BencodeDict, key: bytes):
    value = mapping.get(key)
    if value is None:
        return None
    if not isinstance(value, BencodeString):
        raise InvalidInput(f"{key.decode()!r} has the wrong type")
    return _text(value, key.decode())


def _optional_int(mapping: BencodeDict, key: bytes):
    value = mapping.get(key)
    if value is None:
        return None
    if not isinstance(value, BencodeInt):
        raise InvalidInput(f"{key.decode()!r} has the wrong type")
    return value.value


def _announce_tiers(value) -> list:
    if not isinstance(value, BencodeList):
        raise InvalidInput("'announce-list' has the wrong type")
    tiers = []
    for tier in value:
        if not isinstance(tier, BencodeList):
            raise InvalidInput("'announce-list' tier is not a list")
        urls = []
        for u in tier:
            if not isinstance(u, BencodeString):
                raise InvalidInput("'announce-list' entry is not a string")
            urls.append(_text(u, "announce-list"))
        if urls:
            tiers.append(urls)
    return tiers


class TorrentMeta:
    """
    Typed view of a single-file metadata document.

    info_hash is the SHA-1 of the re-encoded 'info' dictionary. The encoder
    keeps dictionary order, so this equals the hash of the original bytes.
    """
    def __init__(self, root: BencodeDict):
        if not isinstance(root, BencodeDict):
            raise InvalidInput("root must be a dictionary")

        # ------------------ ANNOUNCE URL ------------------
        self.announce = _text(_require(root, b"announce", BencodeString), "announce")

        # ------------------ INFO ------------------
        info = _require(root, b"info", BencodeDict)
        self.info = info

        self.name = _text(_require(info, b"name", BencodeString), "name")
        self.length = _require(info, b"length", BencodeInt).value
        self.piece_length = _require(info, b"piece length", BencodeInt).value

        # ------------------ PIECES ------------------
        raw_pieces = _require(info, b"pieces", BencodeString).value
        try:
            self.pieces = PieceHashes(raw_pieces)
        except ValueError as exc:
            raise InvalidInput(f"'pieces' {exc}") from exc

        if self.piece_length <= 0:
            raise InvalidInput("'piece length' must be positive")
        if self.length < 0:
            raise InvalidInput("'length' must not be negative")

        # ------------------ INFO HASH ------------------
        self.info_hash = hashlib.sha1(encode(info)).digest()

        # ------------------ OPTIONAL FIELDS ------------------
        self.announce_list = None
        if b"announce-list" in root:
            self.announce_list = _announce_tiers(root[b"announce-list"]) or None

        self.comment = _optional_text(root, b"comment")
        self.created_by = _optional_text(root, b"created by")
        self.creation_date = _optional_int(root, b"creation date")
        self.private = bool(_optional_int(info, b"private"))

        logger.debug("Parsed %r, info_hash=%s", self.name, self.info_hash_hex)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "TorrentMeta":
        try:
            root = decode(raw)
        except (BencodeDecodeError, TypeError) as exc:
            logger.debug("Rejecting metadata: %s", exc)
            raise InvalidInput("not a valid bencoded document") from exc
        try:
            return cls(root)
        except InvalidInput as exc:
            logger.debug("Rejecting metadata: %s", exc)
            raise

    @property
    def info_hash_hex(self) -> str:
        return self.info_hash.hex()

    @property
    def total_length(self) -> int:
        return self.length

    @property
    def num_pieces(self) -> int:
        return len(self.pieces)

    @property
    def last_piece_length(self) -> int:
        return (self.length % self.piece_length) or self.piece_length

    def __repr__(self):
        return (
            f"TorrentMeta(name={self.name!r}, length={self.length}, pieces={self.num_pieces}, "
            f"announce={self.announce!r}, info_hash={self.info_hash_hex})"
        )


def extract(raw: bytes) -> TorrentMeta:
    """Validates a metadata document and derives its info hash."""
    return TorrentMeta.from_bytes(raw)


def load_torrent(path) -> TorrentMeta:
    """Reads a .torrent file and extracts its metadata."""
    return extract(Path(path).read_bytes())
