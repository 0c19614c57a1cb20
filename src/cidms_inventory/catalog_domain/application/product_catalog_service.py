# src/cidms_inventory/catalog_domain/application/product_catalog_service.py
"""Application service for product catalog management."""

import dataclasses
import logging
from decimal import Decimal
from typing import Any, Optional

from cidms_inventory.catalog_domain.domain.entities.product import Product, ProductStatus
from cidms_inventory.catalog_domain.domain.repositories.product_repository import IProductRepository
from cidms_inventory.common.config.settings import settings
from cidms_inventory.common.dtos.inventory_dtos import (
    InventoryStatisticsDTO,
    ProductPageDTO,
    ProductQueryDTO,
)
from cidms_inventory.common.exceptions.custom_exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
)
from cidms_inventory.common.utils.pagination import normalize_paging

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"sku", "name", "description", "category", "price", "min_stock_level", "max_stock_level", "unit"}
)

PRODUCT_MAX_PAGE_SIZE = 100


class ProductCatalogService:
    """Creates and maintains product records.

    Stock is set once as the opening balance on creation; afterwards it only
    moves through the stock adjustment service.
    """

    def __init__(self, product_repo: IProductRepository) -> None:
        self.product_repo = product_repo

    def create_product(
        self,
        sku: str,
        name: str,
        price: Decimal | int | str,
        stock: int = 0,
        min_stock_level: Optional[int] = None,
        max_stock_level: Optional[int] = None,
        unit: Optional[str] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
        status: ProductStatus | str = ProductStatus.ACTIVE,
    ) -> Product:
        product = Product(
            sku=sku,
            name=name,
            price=price,
            stock=stock,
            min_stock_level=settings.DEFAULT_MIN_STOCK_LEVEL if min_stock_level is None else min_stock_level,
            max_stock_level=max_stock_level,
            unit=unit or settings.DEFAULT_UNIT,
            category=category,
            description=description,
            status=status,
        )
        if self.product_repo.get_product_by_sku(product.sku) is not None:
            raise ConflictError(f"Product with SKU {product.sku} already exists")

        created = self.product_repo.create_product(product)
        logger.info(f"New product created: {created.id} (SKU: {created.sku}) with opening stock {created.stock}")
        return created

    def get_product(self, product_id: int) -> Product:
        product = self.product_repo.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def list_products(
        self,
        page: int = 1,
        page_size: int = 10,
        search: Optional[str] = None,
        category: Optional[str] = None,
        status: ProductStatus | str | None = None,
        low_stock_only: bool = False,
    ) -> ProductPageDTO:
        page, page_size = normalize_paging(page, page_size, 10, PRODUCT_MAX_PAGE_SIZE)
        if status is not None:
            try:
                status = ProductStatus(status).value
            except ValueError as e:
                raise InvalidArgumentError(f"Unknown product status: {status!r}", original_exception=e)
        query = ProductQueryDTO(
            page=page,
            page_size=page_size,
            search=search.strip() if search and search.strip() else None,
            category=category or None,
            status=status,
            low_stock_only=bool(low_stock_only),
        )
        return self.product_repo.list_products(query)

    def update_product_details(self, product_id: int, **changes: Any) -> Product:
        """Edits catalog fields. Stock is rejected here; use a stock movement instead."""
        if not changes:
            raise InvalidArgumentError("No changes supplied")
        if "stock" in changes:
            raise InvalidArgumentError("Stock can only be changed through a stock movement")
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise InvalidArgumentError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        current = self.get_product(product_id)
        # Re-run entity validation on the merged record
        candidate = dataclasses.replace(current, **changes)

        if candidate.sku != current.sku:
            owner = self.product_repo.get_product_by_sku(candidate.sku)
            if owner is not None and owner.id != product_id:
                raise ConflictError(f"Product with SKU {candidate.sku} already exists")

        normalized = {name: getattr(candidate, name) for name in changes}
        updated = self.product_repo.update_product_details(product_id, normalized)
        if updated is None:
            raise NotFoundError(f"Product {product_id} not found")
        logger.info(f"Product updated: {product_id} ({', '.join(sorted(normalized))})")
        return updated

    def deactivate_product(self, product_id: int) -> Product:
        """Soft delete. The product's ledger history is kept."""
        updated = self.product_repo.set_status(product_id, ProductStatus.INACTIVE)
        if updated is None:
            raise NotFoundError(f"Product {product_id} not found")
        logger.info(f"Product soft deleted: {product_id}")
        return updated

    def list_low_stock_products(self) -> list[Product]:
        return self.product_repo.list_low_stock_products()

    def get_inventory_statistics(self) -> InventoryStatisticsDTO:
        return self.product_repo.get_inventory_statistics()
