import asyncio
import logging
from dataclasses import dataclass
from typing import List, Tuple

import aiohttp

from bencode import BencodeDecodeError, decode
from bencode.structure import BencodeDict, BencodeList, BencodeInt, BencodeString
from .utils import compact_to_peers, pct_encode

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6881
DEFAULT_TIMEOUT = 10.0


class TrackerError(RuntimeError):
    """The tracker refused the announce or answered with garbage."""


@dataclass(frozen=True)
class AnnounceResponse:
    interval: int
    peers: List[Tuple[str, int]]


def build_announce_url(torrent_meta, peer_id: bytes, port: int = DEFAULT_PORT, url: str = None) -> str:
    """Appends the announce query for torrent_meta to its tracker URL."""
    base = url if url else torrent_meta.announce
    if not base:
        raise ValueError("No announce URL provided")

    params = {
        "info_hash": torrent_meta.info_hash,
        "peer_id": peer_id,
        "port": port,
        "uploaded": 0,
        "downloaded": 0,
        "compact": 1,
        "left": torrent_meta.total_length,
    }

    # URL-encode binary fields
    encoded = {}
    for k, v in params.items():
        if isinstance(v, bytes):
            encoded[k] = pct_encode(v)
        else:
            encoded[k] = str(v)

    query = "&".join(f"{k}={v}" for k, v in encoded.items())
    sep = "&" if "?" in base else "?"
    return f"{base}{sep}{query}"


def _parse_peer_list(peers_field: BencodeList) -> List[Tuple[str, int]]:
    # Non-compact peer list (list of dictionaries)
    peers = []
    for peer_dict in peers_field:
        if not isinstance(peer_dict, BencodeDict):
            continue
        ip_b = peer_dict.get(b"ip")
        port_b = peer_dict.get(b"port")

        if isinstance(ip_b, BencodeString) and isinstance(port_b, BencodeInt):
            peers.append((ip_b.value.decode(errors="replace"), port_b.value))
    return peers


def parse_announce_response(data: bytes) -> AnnounceResponse:
    """Decodes a tracker announce body into its interval and peer list."""
    try:
        root = decode(data)
    except BencodeDecodeError as exc:
        raise TrackerError(f"Undecodable tracker response: {exc}") from exc

    if not isinstance(root, BencodeDict):
        raise TrackerError("Tracker response is not a dictionary")

    failure = root.get(b"failure reason")
    if isinstance(failure, BencodeString):
        raise TrackerError("Tracker error: " + failure.value.decode(errors="replace"))

    interval = root.get(b"interval")
    if not isinstance(interval, BencodeInt):
        raise TrackerError("Tracker response has no integer 'interval'")

    peers_field = root.get(b"peers")
    if isinstance(peers_field, BencodeString):
        try:
            peers = compact_to_peers(peers_field.value)
        except ValueError as exc:
            raise TrackerError(str(exc)) from exc
    elif isinstance(peers_field, BencodeList):
        peers = _parse_peer_list(peers_field)
    else:
        raise TrackerError("Tracker returned invalid peer list")

    return AnnounceResponse(interval=interval.value, peers=peers)


class HTTPTrackerClient:
    def __init__(self, torrent_meta, peer_id: bytes, port=DEFAULT_PORT, url: str = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.meta = torrent_meta
        self.peer_id = peer_id  # MUST be 20 bytes
        self.port = port
        self.timeout = timeout
        self.url = url if url else torrent_meta.announce
        self.interval = None

        if not self.url:
            raise ValueError("No announce URL provided for HTTPTrackerClient")
        if len(peer_id) != 20:
            raise ValueError("peer_id must be 20 bytes")

    async def announce(self) -> List[Tuple[str, int]]:
        full_url = build_announce_url(self.meta, self.peer_id, self.port, url=self.url)
        logger.debug("Announcing to %s", full_url)

        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.get(full_url) as resp:
                    data = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Announce to %s failed: %r", self.url, exc)
            raise TrackerError(f"Announce to {self.url} failed: {exc!r}") from exc

        logger.debug("Tracker answered with %d bytes", len(data))
        response = parse_announce_response(data)
        self.interval = response.interval
        logger.debug("Tracker returned %d peers, interval %ds", len(response.peers), response.interval)
        return response.peers
