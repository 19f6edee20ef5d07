# storefront

The business core of an online shop: the product catalogue, users'
favourite products, product reviews with running ratings, and product
search suggestions. It includes JSON request handlers built on
werkzeug requests and responses, and signed session tokens.

## Installing

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Layers

The package has three layers. Each layer is given the layer below it
when it is built.

- **Repositories** (`storefront.product_repository.ProductRepository`,
  `storefront.review_repository.ReviewRepository`,
  `storefront.search_repository.SearchRepository`) hold the SQL for a
  PostgreSQL schema. Each takes a DB-API connection that uses `%s`
  parameters; writes run in a transaction that is committed on success
  and rolled back when a statement fails.
- **Use cases** (`storefront.product_usecase.ProductUseCase`,
  `storefront.review_usecase.ReviewUseCase`,
  `storefront.search_usecase.SearchUseCase`) hold the rules. The review
  use case recomputes a product's average rating whenever a review is
  added, changed or removed, raises `ReviewExistsError` for a second
  review from the same user and `NoReviewError` when the review to change
  or remove is missing. The search use case returns each matching product
  once, those matched by the most search words first.
- **Handlers** (`storefront.product_handler.ProductHandler`,
  `storefront.review_handler.ReviewHandler`,
  `storefront.search_handler.SearchHandler`) take a
  `werkzeug.wrappers.Request` and return a `werkzeug.wrappers.Response`
  with a JSON body and the matching status code. Error bodies are
  `ErrorBody` records with a code and a description. Handlers that need
  a signed-in user read the token from the request's WSGI environ.

## Sessions

`storefront.tokens.TokenManager` signs HS256 tokens that carry the user
id and expire after 72 hours. `parse_token_from_context` reads the user
id back from a mapping whose `"token"` entry holds either an encoded
token or already verified claims; it raises `TokenError` when the entry
is missing or invalid. Building a manager with an empty secret key
raises `ValueError`.

```python
from storefront.tokens import TokenManager

manager = TokenManager("secret")
signed = manager.get_token(1, "alice")
user_id = manager.parse_token_from_context({"token": signed})
```

## Data

The records live in `storefront.models`: `Product`, `FavouriteProduct`,
`Review`, `ProductRating`, `ProductId`, `ProductForSuggest`,
`CategoryForSuggest`, `Suggest`, `Filter` and `ErrorBody`. `to_json`
serialises any of them the same way the handlers do.

## What it does not do

- It has no server, routing or command: mount the handler methods in a
  WSGI application of your own.
- It does not create the database schema; the tables are expected to
  exist already.
- It has no endpoint for uploading product images, and the search
  handler answers suggestions only; full search results are available
  through `SearchUseCase.get_search_results`.