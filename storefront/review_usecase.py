"""Review business rules: one review per user and product, kept-up product ratings."""

from __future__ import annotations

from typing import Optional, Protocol

from storefront.models import NoReviewError, ProductRating, Review, ReviewExistsError


class ReviewStore(Protocol):
    def add_review(self, review: Review, product_rating: float) -> None: ...

    def update_review(self, review: Review, product_rating: float) -> None: ...

    def get_reviews_by_product_id(self, product_id: int) -> list[Review]: ...

    def get_all_ratings_of_product(self, product_id: int) -> list[ProductRating]: ...

    def get_reviews_by_user(self, user_name: str) -> list[Review]: ...

    def get_review_by_user_and_product(self, user_id: int, product_id: int) -> Optional[Review]: ...

    def delete_review(self, user_id: int, product_id: int, product_rating: float) -> None: ...


def _exists(review: Optional[Review]) -> bool:
    return review is not None and review.user_id != 0


class ReviewUseCase:
    """Adds, changes and removes reviews while recomputing the product's mean rating."""

    def __init__(self, repository: ReviewStore) -> None:
        self._repository = repository

    def _rating_totals(self, product_id: int) -> tuple[int, int]:
        ratings = self._repository.get_all_ratings_of_product(product_id)
        total = sum(item.rating * item.count for item in ratings)
        count = sum(item.count for item in ratings)
        return total, count

    def add_review(self, review: Review) -> None:
        old = self._repository.get_review_by_user_and_product(review.user_id, review.product_id)
        if _exists(old):
            raise ReviewExistsError()
        total, count = self._rating_totals(review.product_id)
        product_rating = (total + review.rating) / (count + 1)
        self._repository.add_review(review, product_rating)

    def update_review(self, review: Review) -> None:
        old = self._repository.get_review_by_user_and_product(review.user_id, review.product_id)
        if not _exists(old):
            raise NoReviewError()
        assert old is not None
        total, count = self._rating_totals(review.product_id)
        product_rating = (total - old.rating + review.rating) / count
        self._repository.update_review(review, product_rating)

    def delete_review(self, user_id: int, product_id: int) -> None:
        old = self._repository.get_review_by_user_and_product(user_id, product_id)
        if not _exists(old):
            raise NoReviewError()
        assert old is not None
        total, count = self._rating_totals(product_id)
        product_rating = (total - old.rating) / (count - 1) if count > 1 else 0.0
        self._repository.delete_review(user_id, product_id, product_rating)

    def get_reviews_by_product_id(self, product_id: int) -> list[Review]:
        return self._repository.get_reviews_by_product_id(product_id)

    def get_reviews_by_user(self, user_name: str) -> list[Review]:
        return self._repository.get_reviews_by_user(user_name)