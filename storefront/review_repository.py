"""Review storage in a PostgreSQL database reached through a DB-API connection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from storefront.models import ProductRating, Review
from storefront.product_repository import _SqlStore, _as_int, _as_str

_UPDATE_PRODUCT_RATING = "update products set rating=%s where id=%s"


class ReviewRepository(_SqlStore):
    """Reads and writes reviews; every write also stores the product's new rating."""

    def _write_with_rating(
        self, sql: str, params: Sequence[Any], product_id: int, product_rating: float
    ) -> None:
        self._execute((sql, params), (_UPDATE_PRODUCT_RATING, (float(product_rating), product_id)))

    def get_all_ratings_of_product(self, product_id: int) -> list[ProductRating]:
        """Return how many reviews of the product gave each rating."""
        return self._query(
            "select rating, count(*) as count from reviews where product_id=%s group by rating",
            (product_id,),
            ProductRating,
            (("rating", _as_int), ("count", _as_int)),
        )

    def add_review(self, review: Review, product_rating: float) -> None:
        self._write_with_rating(
            "insert into reviews(user_id, product_id, rating, text) values (%s, %s, %s, %s)",
            (review.user_id, review.product_id, review.rating, review.text),
            review.product_id,
            product_rating,
        )

    def update_review(self, review: Review, product_rating: float) -> None:
        self._write_with_rating(
            "update reviews set rating=%s, text=%s where user_id=%s and product_id=%s",
            (review.rating, review.text, review.user_id, review.product_id),
            review.product_id,
            product_rating,
        )

    def delete_review(self, user_id: int, product_id: int, product_rating: float) -> None:
        self._write_with_rating(
            "delete from reviews where user_id=%s and product_id=%s",
            (user_id, product_id),
            product_id,
            product_rating,
        )

    def get_reviews_by_product_id(self, product_id: int) -> list[Review]:
        """Return the product's reviews with author name, rating and text."""
        return self._query(
            "select c.name, r.rating, r.text from reviews as r "
            "join customers c on c.id = r.user_id "
            "where r.product_id=%s",
            (product_id,),
            Review,
            (("user_name", _as_str), ("rating", _as_int), ("text", _as_str)),
        )

    def get_reviews_by_user(self, user_name: str) -> list[Review]:
        """Return the user's reviews with product id, rating and text."""
        return self._query(
            "select product_id, rating, text from reviews as r "
            "join customers c on c.id = r.user_id "
            "where c.name=%s",
            (user_name,),
            Review,
            (("product_id", _as_int), ("rating", _as_int), ("text", _as_str)),
        )

    def get_review_by_user_and_product(self, user_id: int, product_id: int) -> Review:
        """Return the review, or an empty Review (user_id 0) when there is none."""
        return self._query_one(
            "select user_id, product_id, rating, text from reviews "
            "where user_id=%s and product_id=%s",
            (user_id, product_id),
            Review,
            (
                ("user_id", _as_int),
                ("product_id", _as_int),
                ("rating", _as_int),
                ("text", _as_str),
            ),
        )