"""
Tracker package for communicating with BitTorrent trackers.
"""
from .http_tracker import (
    AnnounceResponse,
    HTTPTrackerClient,
    TrackerError,
    build_announce_url,
    parse_announce_response,
)
from .utils import compact_to_peers

__all__ = [
    'HTTPTrackerClient', 'TrackerError', 'AnnounceResponse',
    'build_announce_url', 'parse_announce_response', 'compact_to_peers',
]
