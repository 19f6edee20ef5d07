"""HTTP endpoints for product reviews."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any, Optional, Protocol

from werkzeug.wrappers import Request, Response

from storefront.models import (
    BIND_DESCR,
    BIND_ERROR,
    NO_REVIEW_DESCR,
    NO_REVIEW_ERROR,
    REVIEW_EXISTS_DESCR,
    REVIEW_EXISTS_ERROR,
    SERVER_ERROR,
    TOKEN_ERROR,
    TOKEN_ERROR_DESCR,
    VALIDATION_DESCR,
    VALIDATION_ERROR,
    ErrorBody,
    NoReviewError,
    ProductId,
    Review,
    ReviewExistsError,
    ValidationError,
    to_json,
)

_log = logging.getLogger(__name__)
_TRACE = "ReviewHandler"
_JSON_CONTENT_TYPE = "application/json; charset=UTF-8"
_INTEGER = re.compile(r"[+-]?[0-9]+")


class ReviewService(Protocol):
    def add_review(self, review: Review) -> None: ...

    def update_review(self, review: Review) -> None: ...

    def get_reviews_by_product_id(self, product_id: int) -> list[Review]: ...

    def get_reviews_by_user(self, user_name: str) -> list[Review]: ...

    def delete_review(self, user_id: int, product_id: int) -> None: ...


class SessionTokens(Protocol):
    def parse_token_from_context(self, ctx: Mapping[str, Any]) -> int: ...


def _json_response(status: int, body: Any) -> Response:
    return Response(to_json(body) + "\n", status=status, content_type=_JSON_CONTENT_TYPE)


def _error(status: int, code: int, description: str) -> Response:
    return _json_response(status, ErrorBody(code, description))


def _opaque_error() -> Response:
    """An unexpected failure, reported without details as an empty object."""
    return _json_response(500, {})


def _read_object(request: Request) -> dict[str, Any]:
    text = request.get_data(as_text=True)
    data = json.loads(text) if text.strip() else {}
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object")
    return dict(data)


def _bind_review(request: Request, user_id: int) -> Review:
    """Decode a review; the token's user id stands unless the body sets one."""
    data = _read_object(request)
    merged: dict[str, Any] = {"user_id": user_id}
    merged.update((key, value) for key, value in data.items() if value is not None)
    return Review.from_dict(merged)


def _parse_int(text: str) -> Optional[int]:
    return int(text) if _INTEGER.fullmatch(text) else None


class ReviewHandler:
    """Turns review requests into use-case calls and JSON responses."""

    def __init__(self, use_case: ReviewService, session_manager: SessionTokens) -> None:
        self._use_case = use_case
        self._session_manager = session_manager

    def _user_id(self, request: Request) -> int:
        return int(self._session_manager.parse_token_from_context(request.environ))

    def _write_review(self, request: Request, name: str) -> Response:
        _log.debug("%s.%s", _TRACE, name)
        try:
            user_id = self._user_id(request)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(401, TOKEN_ERROR, TOKEN_ERROR_DESCR)

        try:
            review = _bind_review(request, user_id)
        except ValueError as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(400, BIND_ERROR, BIND_DESCR)
        try:
            review.validate()
        except ValidationError as exc:
            _log.error("%s: %s %s", _TRACE, exc, review)
            return _error(400, VALIDATION_ERROR, VALIDATION_DESCR)

        try:
            if name == "add_review":
                self._use_case.add_review(review)
            else:
                self._use_case.update_review(review)
        except ReviewExistsError as exc:
            _log.error("%s: %s %s", _TRACE, exc, review)
            return _error(400, REVIEW_EXISTS_ERROR, REVIEW_EXISTS_DESCR)
        except NoReviewError as exc:
            _log.error("%s: %s %s", _TRACE, exc, review)
            return _error(400, NO_REVIEW_ERROR, NO_REVIEW_DESCR)
        except Exception as exc:
            _log.error("%s: %s %s", _TRACE, exc, review)
            return _error(500, SERVER_ERROR, str(exc))

        _log.debug("%s success %s", _TRACE, name)
        return _json_response(200, review)

    def add_review(self, request: Request) -> Response:
        """Add the signed-in user's review of a product."""
        return self._write_review(request, "add_review")

    def update_review(self, request: Request) -> Response:
        """Replace the signed-in user's review of a product."""
        return self._write_review(request, "update_review")

    def delete_review(self, request: Request) -> Response:
        """Remove the signed-in user's review of the product in the body."""
        _log.debug("%s.delete_review", _TRACE)
        try:
            user_id = self._user_id(request)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(401, TOKEN_ERROR, TOKEN_ERROR_DESCR)

        try:
            product = ProductId.from_dict(_read_object(request))
        except ValueError as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _error(400, BIND_ERROR, BIND_DESCR)
        try:
            product.validate()
        except ValidationError as exc:
            _log.error("%s: %s %s", _TRACE, exc, product)
            return _error(400, VALIDATION_ERROR, VALIDATION_DESCR)

        try:
            self._use_case.delete_review(user_id, product.product_id)
        except NoReviewError as exc:
            _log.error("%s: %s %s", _TRACE, exc, product)
            return _error(400, NO_REVIEW_ERROR, NO_REVIEW_DESCR)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _opaque_error()

        _log.debug("%s success delete_review", _TRACE)
        return _json_response(200, product)

    def get_reviews_by_product_id(self, request: Request) -> Response:
        """Answer with the reviews of the product named by "product_id"."""
        _log.debug("%s.get_reviews_by_product_id", _TRACE)
        id_text = request.args.get("product_id", "")
        if not id_text:
            _log.error("%s: bad query param for get_reviews_by_product_id", _TRACE)
            return _error(400, VALIDATION_ERROR, VALIDATION_DESCR)

        product_id = _parse_int(id_text) or 0
        try:
            reviews = self._use_case.get_reviews_by_product_id(product_id)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _opaque_error()

        _log.debug("%s success get_reviews_by_product_id", _TRACE)
        return _json_response(200, list(reviews or []))

    def get_reviews_by_user(self, request: Request) -> Response:
        """Answer with the reviews written by the user named by "name"."""
        _log.debug("%s.get_reviews_by_user", _TRACE)
        user_name = request.args.get("name", "")
        if not user_name:
            _log.error("%s: bad query param for get_reviews_by_user", _TRACE)
            return _error(400, VALIDATION_ERROR, VALIDATION_DESCR)

        try:
            reviews = self._use_case.get_reviews_by_user(user_name)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _opaque_error()

        _log.debug("%s success get_reviews_by_user", _TRACE)
        return _json_response(200, list(reviews or []))