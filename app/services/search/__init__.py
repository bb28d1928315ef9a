"""Search services - index processors and indexers."""

from app.services.search.indexer import DocumentIndexer, SearchIndexContext, SearchIndexer
from app.services.search.posts import POSTS_INDEX, PostsIndexer
from app.services.search.processor import SearchIndexUpdateProcessor

__all__ = [
    "DocumentIndexer",
    "SearchIndexContext",
    "SearchIndexer",
    "SearchIndexUpdateProcessor",
    "PostsIndexer",
    "POSTS_INDEX",
]
