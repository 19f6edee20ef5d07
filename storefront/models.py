"""Domain records shared by the storefront layers, plus JSON encoding."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass, replace
from typing import Any, TypeVar

SERVER_ERROR = 1
DB_ERROR = 2
BIND_ERROR = 3
VALIDATION_ERROR = 4
TOKEN_ERROR = 5
REVIEW_EXISTS_ERROR = 6
NO_REVIEW_ERROR = 7

SERVER_ERROR_DESCR = "internal server error"
BD_ERROR_DESCR = "database error"
BIND_DESCR = "request body could not be decoded"
VALIDATION_DESCR = "request data is not valid"
TOKEN_ERROR_DESCR = "token"
REVIEW_EXISTS_DESCR = "review already exists"
NO_REVIEW_DESCR = "review does not exist"
BAD_INIT_SECRET_KEY = "secret"

TYPE_ORDER_RATING = "rating"
TYPE_ORDER_PRICE = "price"
TYPE_ORDER_MIN = "asc"
TYPE_ORDER_MAX = "desc"

_ACCEPTED_TYPES: dict[str, tuple[type, ...]] = {
    "int": (int,),
    "float": (int, float),
    "str": (str,),
}

T = TypeVar("T", bound="_Bindable")


class ValidationError(Exception):
    """Raised when decoded request data breaks a model's rules."""


class ReviewExistsError(Exception):
    """Raised when a user reviews a product they have already reviewed."""

    def __init__(self, message: str = REVIEW_EXISTS_DESCR) -> None:
        super().__init__(message)


class NoReviewError(Exception):
    """Raised when a review that should exist cannot be found."""

    def __init__(self, message: str = NO_REVIEW_DESCR) -> None:
        super().__init__(message)


class _Bindable:
    """Mixin that builds a flat dataclass from decoded JSON."""

    @classmethod
    def from_dict(cls: type[T], data: Any) -> T:
        """Build an instance from a mapping; unknown keys are ignored.

        Raises ValueError when the data is not a mapping or a field has the
        wrong type. Missing or null fields keep their defaults.
        """
        if not isinstance(data, Mapping):
            raise ValueError("expected a JSON object")
        values: dict[str, Any] = {}
        for item in fields(cls):  # type: ignore[arg-type]
            value = data.get(item.name)
            if value is None:
                continue
            accepted = _ACCEPTED_TYPES.get(str(item.type))
            if accepted is None or isinstance(value, bool) or not isinstance(value, accepted):
                raise ValueError(f"field {item.name!r} has the wrong type")
            if item.type == "float":
                value = float(value)
            values[item.name] = value
        return cls(**values)

    def validate(self) -> None:
        """Raise ValidationError when the record is not acceptable."""


@dataclass(frozen=True)
class Product(_Bindable):
    id: int = 0
    image: str = ""
    name: str = ""
    price: float = 0.0
    rating: float = 0.0
    category: str = ""
    count_in_stock: int = 0
    description: str = ""

    def validate(self) -> None:
        if not self.name:
            raise ValidationError("name is required")
        if self.price < 0:
            raise ValidationError("price must not be negative")
        if self.count_in_stock < 0:
            raise ValidationError("count_in_stock must not be negative")


@dataclass(frozen=True)
class FavouriteProduct(_Bindable):
    id: int = 0
    user_id: int = 0

    def validate(self) -> None:
        if self.id <= 0:
            raise ValidationError("id is required")


@dataclass(frozen=True)
class Review(_Bindable):
    user_id: int = 0
    user_name: str = ""
    product_id: int = 0
    rating: int = 0
    text: str = ""

    def validate(self) -> None:
        if self.product_id <= 0:
            raise ValidationError("product_id is required")
        if not 1 <= self.rating <= 5:
            raise ValidationError("rating must be between 1 and 5")


@dataclass(frozen=True)
class ProductRating:
    rating: int = 0
    count: int = 0


@dataclass(frozen=True)
class ProductId(_Bindable):
    product_id: int = 0

    def validate(self) -> None:
        if self.product_id <= 0:
            raise ValidationError("product_id is required")


@dataclass(frozen=True)
class ProductForSuggest:
    id: int = 0
    name: str = ""
    image: str = ""


@dataclass(frozen=True)
class CategoryForSuggest:
    name: str = ""
    description: str = ""


@dataclass
class Suggest:
    products: list[ProductForSuggest] = field(default_factory=list)
    categories: list[CategoryForSuggest] = field(default_factory=list)


@dataclass(frozen=True)
class Filter:
    name_category: str = ""
    min_price: float = 0.0
    max_price: float = 0.0
    min_rating: float = 0.0
    max_rating: float = 0.0
    order_by: str = TYPE_ORDER_RATING
    type_order: str = TYPE_ORDER_MIN

    def normalized(self) -> Filter:
        """Return a copy with a known ordering column (prefixed for SQL) and direction."""
        order_by = self.order_by
        if order_by not in (TYPE_ORDER_RATING, TYPE_ORDER_PRICE):
            order_by = TYPE_ORDER_RATING
        type_order = self.type_order
        if type_order not in (TYPE_ORDER_MIN, TYPE_ORDER_MAX):
            type_order = TYPE_ORDER_MIN
        return replace(self, order_by="p." + order_by, type_order=type_order)


@dataclass(frozen=True)
class ErrorBody:
    code: int
    description: str


def _plain(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {item.name: _plain(getattr(obj, item.name)) for item in fields(obj)}
    if isinstance(obj, Mapping):
        return {str(key): _plain(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(value) for value in obj]
    if isinstance(obj, float) and math.isfinite(obj) and obj.is_integer():
        return int(obj)
    return obj


def to_json(obj: Any) -> str:
    """Encode records compactly, writing whole floats as integers and escaping HTML characters."""
    text = json.dumps(_plain(obj), separators=(",", ":"), ensure_ascii=False)
    for char, escaped in (
        ("&", "\\u0026"),
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escaped)
    return text