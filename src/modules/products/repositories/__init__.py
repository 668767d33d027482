"""Inventory repositories package."""

from modules.products.repositories.django_repository import ProductInventoryRepository
from modules.products.repositories.interfaces import IInventoryRepository

__all__ = ["IInventoryRepository", "ProductInventoryRepository"]
