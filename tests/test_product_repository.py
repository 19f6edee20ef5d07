from collections import deque
from dataclasses import dataclass
from typing import Optional

import pytest

from storefront.models import FavouriteProduct, Filter, Product
from storefront.product_repository import ProductRepository


@dataclass
class _Step:
    kind: str
    fragment: str = ""
    args: Optional[tuple] = None
    rows: Optional[list] = None
    error: Optional[Exception] = None


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self._rows: list = []

    def execute(self, sql, params=()):
        step = self._conn.take("execute")
        assert step.fragment in sql, f"{step.fragment!r} not in {sql!r}"
        self._conn.statements.append((sql, tuple(params)))
        if step.args is not None:
            assert tuple(params) == step.args
        if step.error is not None:
            raise step.error
        self._rows = list(step.rows or [])

    def fetchall(self):
        return list(self._rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def close(self):
        pass


class FakeConnection:
    def __init__(self):
        self.steps: deque = deque()
        self.statements: list = []

    def expect(self, fragment, args=None, rows=None, error=None):
        self.steps.append(_Step("execute", fragment, args, rows, error))

    def expect_end(self, kind):
        self.steps.append(_Step(kind))

    def take(self, kind):
        assert self.steps, f"unexpected {kind}"
        step = self.steps.popleft()
        assert step.kind == kind, f"expected {step.kind}, got {kind}"
        return step

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.take("commit")

    def rollback(self):
        self.take("rollback")

    def all_met(self):
        return not self.steps


EXPECTED = [
    Product(id=n, image="product", name="Phone", price=1000.0, rating=5.0, category=str(n),
            count_in_stock=1, description="product")
    for n in (1, 2, 3)
]

CATEGORY = Filter(
    name_category="ALL",
    min_price=100,
    max_price=1000,
    min_rating=2,
    max_rating=5,
    order_by="rating",
    type_order="desc",
)

FAVOURITE = FavouriteProduct(id=7, user_id=3)

NEW_PRODUCT = Product(
    name="product", price=1000.0, rating=5.0, category="1", count_in_stock=1000,
    description="product",
)
INSERT_ARGS = ("1", "product", 1000.0, 5.0, 1000, "product")


def _rows(products):
    return [
        (p.id, p.image, p.name, p.price, p.rating, p.category, p.count_in_stock, p.description)
        for p in products
    ]


@pytest.fixture
def conn():
    return FakeConnection()


@pytest.fixture
def storage(conn):
    return ProductRepository(conn)


READERS = [
    pytest.param(lambda s: s.get_all(), id="get_all"),
    pytest.param(lambda s: s.get_by_id(1), id="get_by_id"),
    pytest.param(lambda s: s.get_by_category(CATEGORY), id="get_by_category"),
    pytest.param(lambda s: s.get_favourite_products(3), id="get_favourite_products"),
]


@pytest.mark.parametrize("read", READERS)
def test_read_query_error(conn, storage, read):
    conn.expect("select", error=RuntimeError("db_error"))
    with pytest.raises(RuntimeError) as excinfo:
        read(storage)
    assert str(excinfo.value) == "db_error"
    assert len(conn.statements) == 1
    assert conn.all_met()


@pytest.mark.parametrize("read", READERS)
def test_read_scan_error(conn, storage, read):
    conn.expect("select", rows=[(1, "product", "Phone"), (2, "product", "Phone")])
    with pytest.raises(ValueError):
        read(storage)
    assert conn.all_met()
    conn.expect("select", rows=[])
    assert storage.get_all() == []
    assert len(conn.statements) == 2


def test_get_all(conn, storage):
    conn.expect("select", args=(), rows=_rows(EXPECTED))
    assert storage.get_all() == EXPECTED
    assert conn.all_met()


def test_get_all_converts_category_id_to_text(conn, storage):
    conn.expect("select", rows=[(1, "img", "Phone", 10, 4, 7, 2, "d")])
    result = storage.get_all()
    assert result[0].category == "7"
    assert result[0].price == 10.0


def test_get_all_no_rows(conn, storage):
    conn.expect("select", rows=[])
    assert storage.get_all() == []


def test_get_by_id(conn, storage):
    conn.expect("where id=", args=(1,), rows=_rows(EXPECTED[:1]))
    assert storage.get_by_id(1) == EXPECTED[0]
    assert conn.all_met()


def test_get_by_id_missing_gives_empty_product(conn, storage):
    conn.expect("where id=", args=(9,), rows=[])
    assert storage.get_by_id(9) == Product()


@pytest.mark.parametrize(
    "filter, ordering",
    [
        (CATEGORY, "order by p.rating desc"),
        (Filter(name_category="ALL", order_by="bogus", type_order="sideways"),
         "order by p.rating asc"),
        (Filter(name_category="ALL", order_by="price", type_order="asc"),
         "order by p.price asc"),
    ],
)
def test_get_by_category_ordering(conn, storage, filter, ordering):
    conn.expect(ordering, rows=[])
    assert storage.get_by_category(filter) == []
    assert conn.all_met()


def test_get_by_category(conn, storage):
    conn.expect("order by p.rating desc", args=("ALL", 100, 1000, 2, 5), rows=_rows(EXPECTED))
    assert storage.get_by_category(CATEGORY) == EXPECTED
    assert conn.all_met()


def test_get_favourite_products(conn, storage):
    conn.expect("favourite_prod", args=(3,),
                rows=[(1, "Phone", 1000.0, 5.0, 2, 4, "product", "img")])
    assert storage.get_favourite_products(3) == [
        Product(id=1, image="img", name="Phone", price=1000.0, rating=5.0, category="2",
                count_in_stock=4, description="product")
    ]
    assert conn.all_met()


def test_insert(conn, storage):
    conn.expect("insert into products", args=INSERT_ARGS, rows=[(1,)])
    conn.expect_end("commit")
    assert storage.insert(NEW_PRODUCT) == 1
    assert conn.all_met()


@pytest.mark.parametrize(
    "outcome, error",
    [
        ({"error": RuntimeError("db_error")}, RuntimeError),
        ({"rows": [(1, "product")]}, ValueError),
    ],
    ids=["query", "scan"],
)
def test_insert_failure_rolls_back(conn, storage, outcome, error):
    conn.expect("insert into products", args=INSERT_ARGS, **outcome)
    conn.expect_end("rollback")
    with pytest.raises(error):
        storage.insert(NEW_PRODUCT)
    assert conn.all_met()


WRITES = [
    pytest.param("UPDATE products", ("avatar", 1),
                 lambda s: s.save_product_image_name(1, "avatar"), id="save_image"),
    pytest.param("insert into favourite_prod", (3, 7),
                 lambda s: s.add_favourite_product(FAVOURITE), id="add_favourite"),
    pytest.param("delete from favourite_prod", (3, 7),
                 lambda s: s.delete_favourite_product(FAVOURITE), id="delete_favourite"),
]


@pytest.mark.parametrize("fragment, args, write", WRITES)
def test_write_commits(conn, storage, fragment, args, write):
    conn.expect(fragment, args=args)
    conn.expect_end("commit")
    assert write(storage) is None
    assert [params for _, params in conn.statements] == [args]
    assert conn.all_met()


@pytest.mark.parametrize("fragment, args, write", WRITES)
def test_write_error_rolls_back(conn, storage, fragment, args, write):
    conn.expect(fragment, args=args, error=RuntimeError("db error"))
    conn.expect_end("rollback")
    with pytest.raises(RuntimeError) as excinfo:
        write(storage)
    assert str(excinfo.value) == "db error"
    assert [params for _, params in conn.statements] == [args]
    assert conn.all_met()


def test_new_repository_requires_connection():
    with pytest.raises(ValueError):
        ProductRepository(None)