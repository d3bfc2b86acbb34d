"""Signalist: stock search, watchlist news and AI-summarized market emails.

Submodules are imported on demand (``signalist.news``, ``signalist.notifications``,
...); nothing is re-exported here.
"""

__version__ = "0.1.0"

__all__: list[str] = []
