"""HTTP endpoints for search suggestions."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from werkzeug.wrappers import Request, Response

from storefront.models import SERVER_ERROR, ErrorBody, Suggest, to_json

_log = logging.getLogger(__name__)
_TRACE = "SearchHandler"
_JSON_CONTENT_TYPE = "application/json; charset=UTF-8"


class SuggestSource(Protocol):
    def get_suggests(self, text: str) -> Suggest: ...


def _json_response(status: int, body: Any) -> Response:
    return Response(to_json(body) + "\n", status=status, content_type=_JSON_CONTENT_TYPE)


class SearchHandler:
    """Turns search requests into use-case calls and JSON responses."""

    def __init__(self, use_case: SuggestSource) -> None:
        self._use_case = use_case

    def get_suggests(self, request: Request) -> Response:
        """Answer with suggestions for the "str" query parameter."""
        _log.debug("%s.get_suggests", _TRACE)
        text = request.args.get("str", "")
        try:
            suggests = self._use_case.get_suggests(text)
        except Exception as exc:
            _log.error("%s: %s", _TRACE, exc)
            return _json_response(400, ErrorBody(SERVER_ERROR, str(exc)))

        body = Suggest(
            products=list(suggests.products or []),
            categories=list(suggests.categories or []),
        )
        _log.debug("%s success get_suggests", _TRACE)
        return _json_response(200, body)