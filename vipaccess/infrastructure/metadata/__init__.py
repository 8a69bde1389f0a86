"""
JSON document persistence over object storage.

MetadataStore is the generic layer; backends decide where documents
actually go (metadata bucket directly, or a client-side cache with a
server proxy); repositories add types on top.
"""

from .backends import DirectBackend, MetadataBackend, ProxiedBackend
from .store import MetadataStore

__all__ = [
    "DirectBackend",
    "MetadataBackend",
    "MetadataStore",
    "ProxiedBackend",
]
