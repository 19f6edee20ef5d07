"""Search queries against a PostgreSQL database reached through a DB-API connection."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import closing, contextmanager
from typing import Any

from storefront.models import CategoryForSuggest, Filter, Product, ProductForSuggest, Suggest

SUGGEST_LIMIT = 5

_SELECT_SUGGEST_PRODUCTS = (
    "select id, name, image from products where name ilike %s "
    f"order by rating desc limit {SUGGEST_LIMIT}"
)

_SELECT_SUGGEST_CATEGORIES = (
    f"select name, description from categories where description ilike %s limit {SUGGEST_LIMIT}"
)

_SELECT_MATCHES = (
    "select p.id, p.image, p.name, p.price, p.rating, nc1.name, p.count_in_stock, "
    "p.description from products as p "
    "join categories as nc1 on p.category_id = nc1.id "
    "join categories as nc2 on nc1.lft >= nc2.lft and nc1.rgt <= nc2.rgt "
    "where nc2.name = %s and p.name ilike %s "
    "and p.price >= %s and p.price <= %s "
    "and p.rating >= %s and p.rating <= %s "
    "order by {order_by} {type_order}"
)


def _as_int(value: Any) -> int:
    if value is None:
        raise ValueError("unexpected NULL in an integer column")
    return int(value)


def _as_float(value: Any) -> float:
    if value is None:
        raise ValueError("unexpected NULL in a numeric column")
    return float(value)


def _as_str(value: Any) -> str:
    if value is None:
        raise ValueError("unexpected NULL in a text column")
    return str(value)


def _scan(row: Sequence[Any], converters: Sequence[Callable[[Any], Any]]) -> list[Any]:
    """Convert one result row, failing when the column count does not match."""
    if len(row) != len(converters):
        raise ValueError(f"expected {len(converters)} columns, got {len(row)}")
    return [convert(value) for convert, value in zip(converters, row)]


_PRODUCT_ROW = (_as_int, _as_str, _as_str, _as_float, _as_float, _as_str, _as_int, _as_str)


def _product(row: Sequence[Any]) -> Product:
    id_, image, name, price, rating, category, count, description = _scan(row, _PRODUCT_ROW)
    return Product(
        id=id_,
        image=image,
        name=name,
        price=price,
        rating=rating,
        category=category,
        count_in_stock=count,
        description=description,
    )


def _pattern(text: str) -> str:
    return f"%{text}%"


class SearchRepository:
    """Finds products and categories whose names or descriptions contain a text."""

    def __init__(self, connection: Any) -> None:
        if connection is None:
            raise ValueError("a database connection is required")
        self._conn = connection

    @contextmanager
    def _transaction(self) -> Iterator[Any]:
        """Yield a cursor; commit when the block succeeds, roll back when it raises."""
        try:
            with closing(self._conn.cursor()) as cursor:
                yield cursor
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()

    def get_suggests(self, text: str) -> Suggest:
        """Return up to five best-rated matching products and five matching categories."""
        pattern = _pattern(text)
        with self._transaction() as cursor:
            cursor.execute(_SELECT_SUGGEST_PRODUCTS, (pattern,))
            products = []
            for row in cursor.fetchall():
                id_, name, image = _scan(row, (_as_int, _as_str, _as_str))
                products.append(ProductForSuggest(id=id_, name=name, image=image))

            cursor.execute(_SELECT_SUGGEST_CATEGORIES, (pattern,))
            categories = []
            for row in cursor.fetchall():
                name, description = _scan(row, (_as_str, _as_str))
                categories.append(CategoryForSuggest(name=name, description=description))
        return Suggest(products=products, categories=categories)

    def get_search_results(self, words: Sequence[str], filter: Filter) -> list[list[Product]]:
        """Return, for each word in order, the filtered products whose name contains it."""
        normal = filter.normalized()
        sql = _SELECT_MATCHES.format(order_by=normal.order_by, type_order=normal.type_order)
        results: list[list[Product]] = []
        with self._transaction() as cursor:
            for word in words:
                cursor.execute(
                    sql,
                    (
                        normal.name_category,
                        _pattern(word),
                        normal.min_price,
                        normal.max_price,
                        normal.min_rating,
                        normal.max_rating,
                    ),
                )
                results.append([_product(row) for row in cursor.fetchall()])
        return results