"""Remote GraphQL collaborators."""

from .client import ACCEPTED_LABEL, LeetCodeClient, RemoteFetchError, parse_item
from .protocols import CatalogSource, ItemLookup, RecentAcceptedSource

__all__ = [
    "ACCEPTED_LABEL",
    "CatalogSource",
    "ItemLookup",
    "LeetCodeClient",
    "RecentAcceptedSource",
    "RemoteFetchError",
    "parse_item",
]
