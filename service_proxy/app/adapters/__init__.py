"""
Adapters package for the Proxy Service.

Wraps the two external collaborators of the read path:

- UpstreamClient: HTTP GET against the configured API URL
- SnapshotStore: the local JSON snapshot file

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .snapshot_store import SnapshotStore, SnapshotRead
from .upstream_client import UpstreamClient

__all__ = [
    "SnapshotStore",
    "SnapshotRead",
    "UpstreamClient",
]
