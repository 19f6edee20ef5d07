from werkzeug.test import EnvironBuilder

from storefront.models import (
    BD_ERROR_DESCR,
    SERVER_ERROR,
    CategoryForSuggest,
    ErrorBody,
    ProductForSuggest,
    Suggest,
    to_json,
)
from storefront.search_handler import SearchHandler


class FakeUseCase:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def get_suggests(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.result


def make_request(query):
    return EnvironBuilder(path="/search/suggest", query_string=query).get_request()


def test_suggests_ok():
    suggest = Suggest(
        products=[ProductForSuggest(id=1, name="Phone", image="img")],
        categories=[CategoryForSuggest(name="phones", description="mobile phones")],
    )
    use_case = FakeUseCase(result=suggest)
    response = SearchHandler(use_case).get_suggests(make_request({"str": "pho"}))

    assert response.status_code == 200
    assert response.get_data(as_text=True) == to_json(suggest) + "\n"
    assert response.mimetype == "application/json"
    assert use_case.calls == ["pho"]


def test_suggests_empty_lists_are_written_as_arrays():
    use_case = FakeUseCase(result=Suggest(products=None, categories=None))
    response = SearchHandler(use_case).get_suggests(make_request({"str": "zzz"}))

    assert response.status_code == 200
    assert response.get_json() == {"products": [], "categories": []}


def test_suggests_missing_param_passes_empty_text():
    use_case = FakeUseCase(result=Suggest())
    response = SearchHandler(use_case).get_suggests(make_request({}))

    assert response.status_code == 200
    assert use_case.calls == [""]


def test_suggests_error_is_bad_request():
    use_case = FakeUseCase(error=RuntimeError(BD_ERROR_DESCR))
    response = SearchHandler(use_case).get_suggests(make_request({"str": "pho"}))

    assert response.status_code == 400
    assert response.get_data(as_text=True) == to_json(ErrorBody(SERVER_ERROR, BD_ERROR_DESCR)) + "\n"