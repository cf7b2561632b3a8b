
import hashlib
from pathlib import Path

import pytest

from bencode import BencodeDecodeError, encode
from torrent.metainfo import InvalidInput, PieceHashes, TorrentMeta, extract, load_torrent

ARCHLINUX = Path(__file__).parent / "data" / "archlinux-2020.06.01-x86_64.iso.torrent"

PIECES = b"".join(bytes([i]) * 20 for i in range(5))


def make_info(overrides=None):
    info = {
        b"length": 5 * 16384 - 100,
        b"name": b"sample.iso",
        b"piece length": 16384,
        b"pieces": PIECES,
    }
    info.update(overrides or {})
    return {k: v for k, v in info.items() if v is not None}


def make_torrent(info=None, overrides=None):
    root = {
        b"announce": b"http://tracker.example.org:6969/announce",
        b"info": make_info() if info is None else info,
    }
    root.update(overrides or {})
    return encode({k: v for k, v in root.items() if v is not None})


def test_extract_fields():
    meta = extract(make_torrent())

    assert meta.announce == "http://tracker.example.org:6969/announce"
    assert meta.name == "sample.iso"
    assert meta.length == 5 * 16384 - 100
    assert meta.piece_length == 16384
    assert meta.num_pieces == 5
    assert meta.last_piece_length == 16384 - 100
    assert meta.announce_list is None
    assert meta.private is False


def test_info_hash_matches_original_info_bytes():
    raw = make_torrent()
    info_bytes = encode(make_info())
    assert info_bytes in raw

    meta = extract(raw)
    assert meta.info_hash == hashlib.sha1(info_bytes).digest()
    assert meta.info_hash_hex == hashlib.sha1(info_bytes).hexdigest()
    assert len(meta.info_hash) == 20


def test_info_hash_uses_unsorted_order():
    info = {b"pieces": PIECES, b"name": b"x", b"piece length": 16384, b"length": 1}
    raw = make_torrent(info=info)
    assert extract(raw).info_hash == hashlib.sha1(encode(info)).digest()


def test_info_hash_ignores_fields_outside_info():
    a = extract(make_torrent(overrides={b"comment": b"one"}))
    b = extract(make_torrent(overrides={b"comment": b"two", b"announce": b"http://other/announce"}))
    assert a.info_hash == b.info_hash
    assert a.comment == "one"


def test_pieces_sequence():
    meta = extract(make_torrent())
    pieces = meta.pieces

    assert isinstance(pieces, PieceHashes)
    assert len(pieces) == 5
    assert pieces[0] == b"\x00" * 20
    assert pieces[-1] == b"\x04" * 20
    # restartable: each iteration starts again from the first piece
    assert list(pieces) == list(pieces)
    assert [p[0] for p in pieces] == [0, 1, 2, 3, 4]
    assert pieces[1:3] == [b"\x01" * 20, b"\x02" * 20]
    with pytest.raises(IndexError):
        pieces[5]


def test_optional_fields():
    raw = make_torrent(
        info=make_info({b"private": 1}),
        overrides={
            b"announce-list": [[b"http://a/announce", b"http://b/announce"], [], [b"udp://c:80"]],
            b"created by": b"mktorrent 1.1",
            b"creation date": 1591021517,
        },
    )
    meta = extract(raw)
    assert meta.announce_list == [["http://a/announce", "http://b/announce"], ["udp://c:80"]]
    assert meta.created_by == "mktorrent 1.1"
    assert meta.creation_date == 1591021517
    assert meta.private is True


@pytest.mark.parametrize("raw", [
    b"",
    b"i42e",
    b"l4:spame",
    b"d8:announce4:spam",
    b"d8:announce-1:xe",
])
def test_rejects_bad_documents(raw):
    with pytest.raises(InvalidInput):
        extract(raw)


def test_parse_error_is_chained():
    with pytest.raises(InvalidInput) as excinfo:
        extract(b"d8:announcei1x2ee")
    assert isinstance(excinfo.value.__cause__, BencodeDecodeError)


@pytest.mark.parametrize("overrides", [
    {b"announce": None},
    {b"announce": 42},
    {b"announce": b"\xff\xfe"},
    {b"info": b"not a dict"},
    {b"announce-list": b"http://a"},
    {b"announce-list": [b"http://a"]},
    {b"comment": 1},
])
def test_rejects_bad_top_level_fields(overrides):
    with pytest.raises(InvalidInput):
        extract(make_torrent(overrides=overrides))


@pytest.mark.parametrize("info", [
    make_info({b"name": None}),
    make_info({b"name": 7}),
    make_info({b"name": b"\xc3"}),
    make_info({b"length": None}),
    make_info({b"length": b"12"}),
    make_info({b"length": -1}),
    make_info({b"piece length": None}),
    make_info({b"piece length": 0}),
    make_info({b"pieces": None}),
    make_info({b"pieces": [PIECES]}),
    make_info({b"pieces": PIECES[:-1]}),
    make_info({b"private": b"yes"}),
])
def test_rejects_bad_info_fields(info):
    with pytest.raises(InvalidInput):
        extract(make_torrent(info=info))


def test_root_must_be_dict():
    with pytest.raises(InvalidInput):
        TorrentMeta(None)


def test_load_torrent(tmp_path: Path):
    path = tmp_path / "sample.torrent"
    path.write_bytes(make_torrent())

    meta = load_torrent(path)
    assert meta.name == "sample.iso"
    assert "sample.iso" in repr(meta)


@pytest.mark.skipif(not ARCHLINUX.exists(), reason="real-world torrent fixture not available")
def test_archlinux_torrent():
    meta = load_torrent(ARCHLINUX)

    assert meta.announce == "http://tracker.archlinux.org:6969/announce"
    assert meta.info_hash_hex == "e79d1fac0e60598bf0f1133487852d81cf716ced"
    assert meta.length == 694157312
    assert len(meta.pieces) == meta.length // meta.piece_length


def test_pieces_count_matches_length():
    info = make_info({b"length": 5 * 16384})
    meta = extract(make_torrent(info=info))
    assert len(meta.pieces) == meta.length // meta.piece_length == 5
    assert meta.last_piece_length == meta.piece_length


def test_piece_hashes_rejects_partial_hash():
    with pytest.raises(ValueError):
        PieceHashes(b"\x00" * 21)


def test_huge_integer_is_invalid_input():
    with pytest.raises(InvalidInput) as excinfo:
        extract(b"d8:announcei" + b"1" * 5000 + b"ee")
    assert isinstance(excinfo.value.__cause__, BencodeDecodeError)


def test_non_bytes_input_is_invalid_input():
    with pytest.raises(InvalidInput):
        extract("d8:announce4:spame")


def deep_info_document(levels):
    info_tail = encode(make_info())[1:]
    info = b"d4:deep" + b"l" * levels + b"e" * levels + info_tail
    return b"d8:announce" + encode(b"http://t/announce") + b"4:info" + info + b"e", info


def test_info_nested_at_depth_limit():
    # root and info dicts plus 254 lists reach the default limit of 256
    raw, info = deep_info_document(254)
    meta = extract(raw)
    assert meta.info_hash == hashlib.sha1(info).digest()


def test_info_nested_past_depth_limit():
    raw, _ = deep_info_document(255)
    with pytest.raises(InvalidInput):
        extract(raw)
