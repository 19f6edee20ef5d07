"""Search rules: suggestions and multi-word result ranking."""

from __future__ import annotations

from collections import Counter
from typing import Protocol

from storefront.models import Filter, Product, Suggest


class SearchStore(Protocol):
    def get_suggests(self, text: str) -> Suggest: ...

    def get_search_results(self, words: list[str], filter: Filter) -> list[list[Product]]: ...


class SearchUseCase:
    """Ranks products by how many search words matched them."""

    def __init__(self, repository: SearchStore) -> None:
        self._repository = repository

    def get_suggests(self, text: str) -> Suggest:
        return self._repository.get_suggests(text)

    def get_search_results(self, words: list[str], filter: Filter) -> list[Product]:
        """Return each matching product once, most matched words first."""
        results = self._repository.get_search_results(words, filter)
        hits = Counter(product for matches in results for product in matches)
        return sorted(hits, key=hits.__getitem__, reverse=True)