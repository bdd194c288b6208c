"""titlecache: a read-through cache of RDF resource titles.

Main modules:
- service: TitleCache facade returning result envelopes
- populator / resolver: rebuild a graph's cache, look titles up
- store / cache: triple store clients and key/value cache backends
- batch: YAML action files and result files
"""

from .config import TitleCacheConfig, merge_config
from .models import Envelope, GraphStats, SubjectTitleEntry, TitleCandidate, TitleRequest
from .service import TitleCache
from .version import VERSION

__all__ = [
    "VERSION",
    "Envelope",
    "GraphStats",
    "SubjectTitleEntry",
    "TitleCache",
    "TitleCacheConfig",
    "TitleCandidate",
    "TitleRequest",
    "merge_config",
]
