"""HTTP endpoints for products and favourites."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Optional, Protocol, TypeVar

from werkzeug.wrappers import Request, Response

from storefront.models import (
    BD_ERROR_DESCR,
    BIND_DESCR,
    BIND_ERROR,
    DB_ERROR,
    SERVER_ERROR,
    TOKEN_ERROR,
    TOKEN_ERROR_DESCR,
    VALIDATION_DESCR,
    VALIDATION_ERROR,
    ErrorBody,
    FavouriteProduct,
    Product,
    ValidationError,
    to_json,
)

_log = logging.getLogger(__name__)
_TRACE = "ProductHandler"
_JSON_CONTENT_TYPE = "application/json; charset=UTF-8"
_INTEGER = re.compile(r"[+-]?[0-9]+")

M = TypeVar("M")


class ProductService(Protocol):
    def add_product(self, product: Product) -> int: ...

    def get_all_products(self) -> list[Product]: ...

    def get_favourite_products(self, user_id: int) -> list[Product]: ...

    def get_product_by_id(self, product_id: int) -> Optional[Product]: ...

    def add_favourite_product(self, product: FavouriteProduct) -> None: ...

    def delete_favourite_product(self, product: FavouriteProduct) -> None: ...


class SessionTokens(Protocol):
    def parse_token_from_context(self, ctx: Mapping[str, Any]) -> int: ...


def _json_response(status: int, body: Any) -> Response:
    return Response(to_json(body) + "\n", status=status, content_type=_JSON_CONTENT_TYPE)


def _error(status: int, code: int, description: str) -> Response:
    return _json_response(status, ErrorBody(code, description))


def _bind(request: Request, model: type[M]) -> M:
    """Decode the JSON body into the model; raise ValueError when it cannot be decoded."""
    text = request.get_data(as_text=True)
    data = json.loads(text) if text.strip() else {}
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object")
    return model.from_dict(data)  # type: ignore[attr-defined]


class ProductHandler:
    """Turns product requests into use-case calls and JSON responses."""

    def __init__(self, use_case: ProductService, session_manager: SessionTokens) -> None:
        self._use_case = use_case
        self.session_manager = session_manager

    def _user_id(self, request: Request) -> int:
        return int(self.session_manager.parse_token_from_context(request.environ))

    def add_product(self, request: Request) -> Response:
        """Store the product in the body and answer with it, id filled in."""
        _log.debug("%s.add_product", _TRACE)
        try:
            product = _bind(request, Product)
        except ValueError:
            return _error(400, BIND_ERROR, BIND_DESCR)
        try:
            product.validate()
        except ValidationError:
            return _error(400, VALIDATION_ERROR, VALIDATION_DESCR)

        try:
            product_id = self._use_case.add_product(product)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(500, SERVER_ERROR, BD_ERROR_DESCR)
        return _json_response(200, replace(product, id=product_id))

    def add_favourite_product(self, request: Request) -> Response:
        """Mark the product in the body as a favourite of the signed-in user."""
        _log.debug("%s.add_favourite_product", _TRACE)
        try:
            user_id = self._user_id(request)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(401, TOKEN_ERROR, TOKEN_ERROR_DESCR)

        try:
            favourite = _bind(request, FavouriteProduct)
        except ValueError:
            return _error(400, BIND_ERROR, BIND_DESCR)
        try:
            favourite.validate()
        except ValidationError:
            return _error(400, VALIDATION_ERROR, VALIDATION_DESCR)

        favourite = replace(favourite, user_id=user_id)
        try:
            self._use_case.add_favourite_product(favourite)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(500, SERVER_ERROR, BD_ERROR_DESCR)
        return _json_response(200, favourite)

    def delete_favourite_product(self, request: Request) -> Response:
        """Remove the product in the body from the signed-in user's favourites."""
        _log.debug("%s.delete_favourite_product", _TRACE)
        try:
            user_id = self._user_id(request)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(401, TOKEN_ERROR, TOKEN_ERROR_DESCR)

        try:
            favourite = _bind(request, FavouriteProduct)
        except ValueError as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(400, BIND_ERROR, BIND_DESCR)
        try:
            favourite.validate()
        except ValidationError as exc:
            _log.error("%s: %s %s", _TRACE, exc, favourite)
            return _error(400, VALIDATION_ERROR, VALIDATION_DESCR)

        favourite = replace(favourite, user_id=user_id)
        try:
            self._use_case.delete_favourite_product(favourite)
        except Exception as exc:
            _log.error("%s: %s %s", _TRACE, exc, favourite)
            return _error(500, SERVER_ERROR, str(exc))

        _log.debug("%s success delete_favourite_product", _TRACE)
        return _json_response(200, favourite)

    def get_all_products(self, request: Request) -> Response:
        """Answer with every product."""
        _log.debug("%s.get_all_products", _TRACE)
        try:
            products = self._use_case.get_all_products()
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(500, DB_ERROR, BD_ERROR_DESCR)
        return _json_response(200, list(products or []))

    def get_favourite_products(self, request: Request) -> Response:
        """Answer with the signed-in user's favourite products."""
        _log.debug("%s.get_favourite_products", _TRACE)
        try:
            user_id = self._user_id(request)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(401, TOKEN_ERROR, TOKEN_ERROR_DESCR)

        try:
            products = self._use_case.get_favourite_products(user_id)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(500, DB_ERROR, BD_ERROR_DESCR)
        return _json_response(200, list(products or []))

    def get_product_by_id(self, request: Request) -> Response:
        """Answer with the product named by the "id" query parameter."""
        _log.debug("%s.get_product_by_id", _TRACE)
        id_text = request.args.get("id", "")
        if not id_text or not _INTEGER.fullmatch(id_text):
            _log.error("%s: bad query param for get_product_by_id", _TRACE)
            return _error(400, VALIDATION_ERROR, VALIDATION_DESCR)

        try:
            product = self._use_case.get_product_by_id(int(id_text))
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(400, DB_ERROR, str(exc))
        return _json_response(200, product if product is not None else Product())