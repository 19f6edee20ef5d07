"""Product business rules on top of a product store."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from storefront.models import FavouriteProduct, Product

if TYPE_CHECKING:
    from storefront.product_repository import ProductRepository


class ProductUseCase:
    """Passes product operations through to the store."""

    def __init__(self, repository: ProductRepository) -> None:
        self._repository = repository

    def add_product(self, product: Product) -> int:
        return self._repository.insert(product)

    def get_all_products(self) -> list[Product]:
        return self._repository.get_all()

    def add_favourite_product(self, product: FavouriteProduct) -> None:
        self._repository.add_favourite_product(product)

    def delete_favourite_product(self, product: FavouriteProduct) -> None:
        self._repository.delete_favourite_product(product)

    def get_favourite_products(self, user_id: int) -> list[Product]:
        return self._repository.get_favourite_products(user_id)

    def get_product_by_id(self, product_id: int) -> Product:
        return self._repository.get_by_id(product_id)

    def generate_product_image_name(self) -> str:
        """Return a fresh random file name for a product image."""
        return str(uuid.uuid4())

    def save_product_image_name(self, product_id: int, file_name: str) -> None:
        self._repository.save_product_image_name(product_id, file_name)