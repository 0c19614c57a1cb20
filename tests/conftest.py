# tests/conftest.py
import dataclasses
import itertools
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from unittest.mock import Mock

import pytest

from cidms_inventory.catalog_domain.application.product_catalog_service import ProductCatalogService
from cidms_inventory.catalog_domain.domain.entities.product import Product, ProductStatus
from cidms_inventory.catalog_domain.domain.repositories.product_repository import IProductRepository
from cidms_inventory.common.config.settings import settings
from cidms_inventory.common.dtos.inventory_dtos import (
    InventoryStatisticsDTO,
    MovementPageDTO,
    MovementQueryDTO,
    PaginationDTO,
    ProductPageDTO,
    ProductQueryDTO,
)
from cidms_inventory.common.exceptions.custom_exceptions import APIError, ConflictError, StorageFailureError
from cidms_inventory.common.utils.date_utils import now_utc
from cidms_inventory.inventory_domain.application.low_stock_monitor_service import LowStockMonitorService
from cidms_inventory.inventory_domain.application.stock_adjustment_service import (
    StockAdjustmentApplicationService,
)
from cidms_inventory.inventory_domain.domain.entities.actor import Actor, UserRole, UserStatus
from cidms_inventory.inventory_domain.domain.entities.stock_movement import StockMovement
from cidms_inventory.inventory_domain.domain.repositories.inventory_unit_of_work import (
    IInventoryUnitOfWork,
    IStockTransaction,
)
from cidms_inventory.inventory_domain.domain.repositories.stock_movement_repository import (
    IStockMovementRepository,
)
from cidms_inventory.inventory_domain.domain.repositories.user_repository import IUserRepository
from cidms_inventory.inventory_domain.domain.services.event_publisher import IEventPublisher
from cidms_inventory.inventory_domain.domain.services.inventory_authorizer import RoleBasedInventoryAuthorizer

ADMIN_ID = 1
STAFF_ID = 2
DELIVERY_ID = 3
SUSPENDED_STAFF_ID = 4


# --- In-memory fakes ----------------------------------------------------------


class InMemoryInventoryStore:
    """Committed products and ledger rows shared by the fakes below.

    Each product has its own lock standing in for the database row lock, held
    from ``get_product_for_update`` until the transaction ends.
    """

    def __init__(self) -> None:
        self.products: dict[int, Product] = {}
        self.movements: list[StockMovement] = []
        self._row_locks: dict[int, threading.Lock] = {}
        self._guard = threading.Lock()
        self._product_ids = itertools.count(1)
        self._movement_ids = itertools.count(1)
        # Failure injection
        self.fail_on_record_movement = False
        self.conflicts_to_raise = 0

    def add_product(self, **fields: Any) -> Product:
        fields.setdefault("sku", f"SKU-{len(self.products) + 1:03d}")
        fields.setdefault("name", "Test product")
        fields.setdefault("price", Decimal("9.99"))
        product = Product(**fields)
        with self._guard:
            product.id = next(self._product_ids)
            product.created_at = product.updated_at = now_utc()
            self.products[product.id] = product
        return dataclasses.replace(product)

    def row_lock(self, product_id: int) -> threading.Lock:
        with self._guard:
            return self._row_locks.setdefault(product_id, threading.Lock())

    def next_movement_id(self) -> int:
        with self._guard:
            return next(self._movement_ids)

    def take_conflict(self) -> bool:
        with self._guard:
            if self.conflicts_to_raise > 0:
                self.conflicts_to_raise -= 1
                return True
            return False

    def commit(self, stock_changes: dict[int, int], movements: list[StockMovement]) -> None:
        with self._guard:
            for product_id, new_stock in stock_changes.items():
                current = self.products[product_id]
                self.products[product_id] = dataclasses.replace(current, stock=new_stock, updated_at=now_utc())
            self.movements.extend(movements)


class InMemoryStockTransaction(IStockTransaction):
    """Stages writes until the unit of work commits them."""

    def __init__(self, store: InMemoryInventoryStore) -> None:
        self.store = store
        self.held_locks: list[threading.Lock] = []
        self.stock_changes: dict[int, int] = {}
        self.movements: list[StockMovement] = []

    def get_product_for_update(self, product_id: int) -> Optional[Product]:
        if self.store.take_conflict():
            raise ConflictError("Deadlock found when trying to get lock; try restarting transaction")
        lock = self.store.row_lock(product_id)
        lock.acquire()
        self.held_locks.append(lock)
        product = self.store.products.get(product_id)
        return dataclasses.replace(product) if product else None

    def save_stock(self, product_id: int, new_stock: int) -> None:
        self.stock_changes[product_id] = new_stock

    def record_movement(self, movement: StockMovement) -> StockMovement:
        if self.store.fail_on_record_movement:
            raise StorageFailureError("Error recording stock movement: connection lost")
        recorded = dataclasses.replace(movement, id=self.store.next_movement_id(), created_at=movement.created_at or now_utc())
        self.movements.append(recorded)
        return recorded

    def release(self) -> None:
        while self.held_locks:
            self.held_locks.pop().release()


class InMemoryInventoryUnitOfWork(IInventoryUnitOfWork):

    def __init__(self, store: InMemoryInventoryStore) -> None:
        self.store = store
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def atomic(self):
        tx = InMemoryStockTransaction(self.store)
        try:
            yield tx
            self.store.commit(tx.stock_changes, tx.movements)
            self.commits += 1
        except BaseException:
            self.rollbacks += 1
            raise
        finally:
            tx.release()


class InMemoryProductRepository(IProductRepository):

    def __init__(self, store: InMemoryInventoryStore) -> None:
        self.store = store

    def create_product(self, product: Product) -> Product:
        fields = {f.name: getattr(product, f.name) for f in dataclasses.fields(product)}
        for generated in ("id", "created_at", "updated_at"):
            fields.pop(generated)
        return self.store.add_product(**fields)

    def get_product(self, product_id: int) -> Optional[Product]:
        product = self.store.products.get(product_id)
        return dataclasses.replace(product) if product else None

    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        return next((dataclasses.replace(p) for p in self.store.products.values() if p.sku == sku), None)

    def list_products(self, query: ProductQueryDTO) -> ProductPageDTO:
        products = list(self.store.products.values())
        if query.search:
            needle = query.search.lower()
            products = [
                p for p in products if needle in p.name.lower() or needle in p.sku.lower()
                or needle in (p.description or "").lower()
            ]
        if query.category:
            products = [p for p in products if p.category == query.category]
        if query.status:
            products = [p for p in products if p.status.value == query.status]
        if query.low_stock_only:
            products = [p for p in products if p.is_low_stock]
        products.sort(key=lambda p: p.id, reverse=True)
        page = products[query.offset : query.offset + query.page_size]
        return ProductPageDTO(
            products=page, pagination=PaginationDTO.from_counts(len(products), query.page, query.page_size)
        )

    def update_product_details(self, product_id: int, changes: dict[str, Any]) -> Optional[Product]:
        current = self.store.products.get(product_id)
        if current is None:
            return None
        self.store.products[product_id] = dataclasses.replace(current, **changes)
        return self.get_product(product_id)

    def set_status(self, product_id: int, status: ProductStatus) -> Optional[Product]:
        return self.update_product_details(product_id, {"status": status})

    def list_low_stock_products(self) -> list[Product]:
        low = [p for p in self.store.products.values() if p.is_active and p.is_low_stock]
        return sorted(low, key=lambda p: (p.stock, p.id))

    def get_inventory_statistics(self) -> InventoryStatisticsDTO:
        active = [p for p in self.store.products.values() if p.is_active]
        return InventoryStatisticsDTO(
            total_products=len(active),
            total_stock=sum(p.stock for p in active),
            low_stock_count=sum(1 for p in active if p.is_low_stock),
            out_of_stock_count=sum(1 for p in active if p.stock == 0),
            total_value=sum((p.price * p.stock for p in active), Decimal("0")),
        )


class InMemoryStockMovementRepository(IStockMovementRepository):

    def __init__(self, store: InMemoryInventoryStore) -> None:
        self.store = store

    def list_movements(self, query: MovementQueryDTO) -> MovementPageDTO:
        movements = list(self.store.movements)
        if query.product_id is not None:
            movements = [m for m in movements if m.product_id == query.product_id]
        if query.kind is not None:
            movements = [m for m in movements if m.kind == query.kind]
        if query.date_from is not None:
            movements = [m for m in movements if m.created_at >= query.date_from]
        if query.date_to is not None:
            movements = [m for m in movements if m.created_at <= query.date_to]
        movements.sort(key=lambda m: (m.created_at, m.id), reverse=query.newest_first)
        page = movements[query.offset : query.offset + query.page_size]
        return MovementPageDTO(
            movements=page, pagination=PaginationDTO.from_counts(len(movements), query.page, query.page_size)
        )


class InMemoryUserRepository(IUserRepository):

    def __init__(self, users: list[Actor]) -> None:
        self.users = {user.id: user for user in users}

    def get_user(self, user_id: int) -> Optional[Actor]:
        return self.users.get(user_id)


class RecordingEventPublisher(IEventPublisher):
    """Keeps published events in memory; ``fail=True`` makes every publish raise."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.connected = False
        self.events: list[tuple[str, dict[str, Any]]] = []

    def connect(self) -> None:
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def publish(self, event: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise APIError(f"Error publishing {event}", status_code=503)
        self.events.append((event, payload))

    def names(self) -> list[str]:
        return [event for event, _ in self.events]


# --- Settings -----------------------------------------------------------------


@pytest.fixture(autouse=True)
def mock_inventory_settings(mocker) -> None:
    """Pins the settings the services read so tests do not depend on a local .env file."""
    mocker.patch.object(settings, "DEFAULT_MIN_STOCK_LEVEL", 10)
    mocker.patch.object(settings, "DEFAULT_UNIT", "piece")
    mocker.patch.object(settings, "MOVEMENT_PAGE_SIZE", 10)
    mocker.patch.object(settings, "MOVEMENT_MAX_PAGE_SIZE", 100)
    mocker.patch.object(settings, "CONFLICT_MAX_RETRIES", 3)
    mocker.patch.object(settings, "EVENT_RELAY_URL", "http://relay.test")
    mocker.patch.object(settings, "EVENT_RELAY_TOKEN", "relay_token")
    mocker.patch.object(settings, "EVENT_RELAY_TIMEOUT", 5)


# --- Fakes wired together -----------------------------------------------------


@pytest.fixture
def store() -> InMemoryInventoryStore:
    return InMemoryInventoryStore()


@pytest.fixture
def unit_of_work(store) -> InMemoryInventoryUnitOfWork:
    return InMemoryInventoryUnitOfWork(store)


@pytest.fixture
def product_repo(store) -> InMemoryProductRepository:
    return InMemoryProductRepository(store)


@pytest.fixture
def movement_repo(store) -> InMemoryStockMovementRepository:
    return InMemoryStockMovementRepository(store)


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository(
        [
            Actor(id=ADMIN_ID, name="Admin", role=UserRole.ADMIN, email="admin@cidms.test"),
            Actor(id=STAFF_ID, name="Stock Clerk", role=UserRole.STAFF, email="staff@cidms.test"),
            Actor(id=DELIVERY_ID, name="Driver", role=UserRole.DELIVERY, email="driver@cidms.test"),
            Actor(
                id=SUSPENDED_STAFF_ID,
                name="Former Clerk",
                role=UserRole.STAFF,
                status=UserStatus.SUSPENDED,
                email="former@cidms.test",
            ),
        ]
    )


@pytest.fixture
def admin_id() -> int:
    return ADMIN_ID


@pytest.fixture
def staff_id() -> int:
    return STAFF_ID


@pytest.fixture
def delivery_id() -> int:
    return DELIVERY_ID


@pytest.fixture
def suspended_staff_id() -> int:
    return SUSPENDED_STAFF_ID


@pytest.fixture
def publisher() -> RecordingEventPublisher:
    publisher = RecordingEventPublisher()
    publisher.connect()
    return publisher


@pytest.fixture
def stock_service(unit_of_work, product_repo, movement_repo, user_repo, publisher) -> StockAdjustmentApplicationService:
    """Stock adjustment service over the in-memory fakes."""
    return StockAdjustmentApplicationService(
        unit_of_work=unit_of_work,
        product_repo=product_repo,
        movement_repo=movement_repo,
        authorizer=RoleBasedInventoryAuthorizer(user_repo),
        event_publisher=publisher,
        max_conflict_retries=3,
    )


@pytest.fixture
def catalog_service(product_repo) -> ProductCatalogService:
    return ProductCatalogService(product_repo=product_repo)


@pytest.fixture
def monitor_service(product_repo, publisher) -> LowStockMonitorService:
    return LowStockMonitorService(product_repo=product_repo, event_publisher=publisher)


# --- Mocks and samples --------------------------------------------------------


@pytest.fixture
def mock_product_repository() -> Mock:
    """Mock for IProductRepository."""
    return Mock(spec=IProductRepository)


@pytest.fixture
def sample_product(store) -> Product:
    """An active product with 50 units and a minimum level of 10."""
    return store.add_product(sku="WID-001", name="Widget", price=Decimal("2.50"), stock=50, min_stock_level=10)


@pytest.fixture
def sample_product_row() -> dict:
    """A products row as returned by a dictionary cursor."""
    return {
        "id": 7,
        "sku": "WID-001",
        "name": "Widget",
        "description": "Blue widget",
        "category": "widgets",
        "price": Decimal("2.50"),
        "stock": 50,
        "min_stock_level": 10,
        "max_stock_level": 200,
        "unit": "piece",
        "status": "active",
        "created_at": datetime(2024, 1, 1, 9, 0, 0),
        "updated_at": datetime(2024, 1, 2, 9, 0, 0),
    }
