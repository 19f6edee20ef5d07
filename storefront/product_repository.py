"""Product storage in a PostgreSQL database reached through a DB-API connection."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import closing, contextmanager
from typing import Any, TypeVar

from storefront.models import FavouriteProduct, Filter, Product

T = TypeVar("T")
Field = tuple[str, Callable[[Any], Any]]

_SELECT_PRODUCTS = (
    "select id, image, name, price, rating, category_id, count_in_stock, description "
    "from products"
)

_SELECT_BY_CATEGORY = (
    "select p.id, p.image, p.name, p.price, p.rating, nc1.name, p.count_in_stock, "
    "p.description from products as p "
    "join categories as nc1 on p.category_id = nc1.id "
    "join categories as nc2 on nc1.lft >= nc2.lft and nc1.rgt <= nc2.rgt "
    "where nc2.name = %s and p.price >= %s and p.price <= %s "
    "and p.rating >= %s and p.rating <= %s "
    "order by {order_by} {type_order}"
)

_SELECT_FAVOURITES = (
    "select p.id, p.name, p.price, p.rating, p.category_id, "
    "p.count_in_stock, p.description, p.image from products as p "
    "join favourite_prod fp on p.id = fp.product_id "
    "where fp.user_id=%s "
    "order by name"
)

_INSERT_PRODUCT = (
    "with a(id) as (select id from categories where name=%s) "
    "insert into products (name, price, rating, category_id, count_in_stock, description) "
    "values (%s, %s, %s, (select id from a), %s, %s) returning id"
)


def _not_null(convert: Callable[[Any], T], kind: str) -> Callable[[Any], T]:
    def converter(value: Any) -> T:
        if value is None:
            raise ValueError(f"unexpected NULL in {kind} column")
        return convert(value)

    return converter


_as_int = _not_null(int, "an integer")
_as_float = _not_null(float, "a numeric")
_as_str = _not_null(str, "a text")


def _scan(row: Sequence[Any], converters: Sequence[Callable[[Any], Any]]) -> list[Any]:
    """Convert one result row, failing when the column count does not match."""
    if len(row) != len(converters):
        raise ValueError(f"expected {len(converters)} columns, got {len(row)}")
    return [convert(value) for convert, value in zip(converters, row)]


def _build(model: Callable[..., T], row: Sequence[Any], fields: Sequence[Field]) -> T:
    """Make a model from a row whose columns are the given fields, in order."""
    values = _scan(row, [convert for _, convert in fields])
    return model(**{name: value for (name, _), value in zip(fields, values)})


_PRODUCT_FIELDS: tuple[Field, ...] = (
    ("id", _as_int),
    ("image", _as_str),
    ("name", _as_str),
    ("price", _as_float),
    ("rating", _as_float),
    ("category", _as_str),
    ("count_in_stock", _as_int),
    ("description", _as_str),
)
_FIELD_TYPES = dict(_PRODUCT_FIELDS)
_FAVOURITE_FIELDS: tuple[Field, ...] = tuple(
    (name, _FIELD_TYPES[name])
    for name in ("id", "name", "price", "rating", "category", "count_in_stock", "description", "image")
)


class _SqlStore:
    """Common access to a DB-API connection using "format"-style parameters."""

    def __init__(self, connection: Any) -> None:
        if connection is None:
            raise ValueError("a database connection is required")
        self._conn = connection

    def _query(
        self, sql: str, params: Sequence[Any], model: Callable[..., T], fields: Sequence[Field]
    ) -> list[T]:
        with closing(self._conn.cursor()) as cursor:
            cursor.execute(sql, tuple(params))
            rows = list(cursor.fetchall())
        return [_build(model, row, fields) for row in rows]

    def _query_one(
        self, sql: str, params: Sequence[Any], model: Callable[..., T], fields: Sequence[Field]
    ) -> T:
        """Return the first row as a model, or an empty model when there is none."""
        with closing(self._conn.cursor()) as cursor:
            cursor.execute(sql, tuple(params))
            row = cursor.fetchone()
        return model() if row is None else _build(model, row, fields)

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

    def _execute(self, *statements: tuple[str, Sequence[Any]]) -> None:
        """Run the statements in one transaction."""
        with self._transaction() as cursor:
            for sql, params in statements:
                cursor.execute(sql, tuple(params))


class ProductRepository(_SqlStore):
    """Reads and writes products and favourites."""

    def get_all(self) -> list[Product]:
        return self._query(_SELECT_PRODUCTS, (), Product, _PRODUCT_FIELDS)

    def get_by_id(self, product_id: int) -> Product:
        """Return the product, or an empty Product when no row has that id."""
        return self._query_one(
            _SELECT_PRODUCTS + " where id=%s", (product_id,), Product, _PRODUCT_FIELDS
        )

    def get_by_category(self, filter: Filter) -> list[Product]:
        """Return products in the named category or any of its sub-categories."""
        normal = filter.normalized()
        sql = _SELECT_BY_CATEGORY.format(order_by=normal.order_by, type_order=normal.type_order)
        params = (
            normal.name_category,
            normal.min_price,
            normal.max_price,
            normal.min_rating,
            normal.max_rating,
        )
        return self._query(sql, params, Product, _PRODUCT_FIELDS)

    def add_favourite_product(self, product: FavouriteProduct) -> None:
        self._execute(
            (
                "insert into favourite_prod (user_id, product_id) values (%s, %s)",
                (product.user_id, product.id),
            )
        )

    def delete_favourite_product(self, product: FavouriteProduct) -> None:
        self._execute(
            (
                "delete from favourite_prod where user_id=%s and product_id=%s",
                (product.user_id, product.id),
            )
        )

    def get_favourite_products(self, user_id: int) -> list[Product]:
        return self._query(_SELECT_FAVOURITES, (user_id,), Product, _FAVOURITE_FIELDS)

    def insert(self, product: Product) -> int:
        """Store a new product under the category named by product.category; return its id."""
        with self._transaction() as cursor:
            cursor.execute(
                _INSERT_PRODUCT,
                (
                    product.category,
                    product.name,
                    product.price,
                    product.rating,
                    product.count_in_stock,
                    product.description,
                ),
            )
            row = cursor.fetchone()
            if row is None:
                raise LookupError("insert returned no id")
            (new_id,) = _scan(row, (_as_int,))
        return new_id

    def save_product_image_name(self, product_id: int, file_name: str) -> None:
        self._execute(("UPDATE products SET image = %s WHERE id = %s", (file_name, product_id)))