"""Shop catalogue, favourites, reviews and search with JSON handlers and session tokens."""

__version__ = "0.1.0"