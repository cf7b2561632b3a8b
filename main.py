import argparse
import asyncio
import logging
import os
import sys

sys.path.append(os.path.join(os.path.dirname(__file__), 'src'))

from torrent.metainfo import InvalidInput, load_torrent
from tracker.http_tracker import DEFAULT_PORT, HTTPTrackerClient, TrackerError

PEER_ID = b"-PC0001-123456abcdef"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect a .torrent file and compute its info hash.")
    parser.add_argument("torrent", help="path to the .torrent file")
    parser.add_argument("--announce", action="store_true", help="contact the tracker and report peers")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port reported to the tracker")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return parser


async def announce(meta, port: int) -> int:
    tracker = HTTPTrackerClient(meta, PEER_ID, port=port)
    peers = await tracker.announce()
    print(f"peers: {len(peers)} (interval {tracker.interval}s)")
    return len(peers)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        meta = load_torrent(args.torrent)
    except (OSError, InvalidInput) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print("announce:", meta.announce)
    print("name:", meta.name)
    print("length:", meta.length)
    print("piece length:", meta.piece_length)
    print("pieces:", meta.num_pieces)
    print("info_hash:", meta.info_hash_hex)

    if args.announce:
        try:
            asyncio.run(announce(meta, args.port))
        except TrackerError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
