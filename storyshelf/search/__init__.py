"""
Catalogue search and suggestion engine.

The primary catalogue (serialised stories) is held in an in-memory
inverted index that is built lazily and rebuilt after content changes;
licensed works and ebooks are searched directly in storage. When the
index cannot be built, primary results come from a linear substring
scan and the response is flagged as degraded.
"""

from .errors import BuildFailure, FetchTimeout, SearchError, SourceUnavailable  # noqa: F401
from .index import EmptyIndex, IndexSnapshot, Posting, build  # noqa: F401
from .manager import CatalogIndexManager, IndexState, IndexStatus  # noqa: F401
from .merger import MultiSourceMerger  # noqa: F401
from .query import ScoredId  # noqa: F401
from .service import CatalogSearchService  # noqa: F401
from .tokenizer import normalize, tokenize  # noqa: F401
