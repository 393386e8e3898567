"""
Business core for products.

Owns creation, mutation, deletion and querying of products. Callers work with
the plain domain values defined here; the ORM model never leaves this module.
Every public method is a coroutine that runs its session work in the
threadpool, so a cancelled request abandons the await without blocking the loop.
"""
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from sales_api.models.product import Product as ProductModel
from sales_api.services.order import ASC, DESC, OrderBy

logger = logging.getLogger(__name__)

ORDER_BY_PRODUCT_ID = "product_id"
ORDER_BY_NAME = "name"
ORDER_BY_COST = "cost"
ORDER_BY_QUANTITY = "quantity"
ORDER_BY_USER_ID = "user_id"
ORDER_BY_DATE_CREATED = "date_created"

DEFAULT_ORDER_BY = OrderBy(ORDER_BY_PRODUCT_ID, ASC)

_order_by_columns = {
    ORDER_BY_PRODUCT_ID: ProductModel.product_id,
    ORDER_BY_NAME: ProductModel.name,
    ORDER_BY_COST: ProductModel.cost,
    ORDER_BY_QUANTITY: ProductModel.quantity,
    ORDER_BY_USER_ID: ProductModel.user_id,
    ORDER_BY_DATE_CREATED: ProductModel.date_created,
}

SORTABLE_FIELDS = frozenset(_order_by_columns)


class ProductNotFoundError(Exception):
    """Raised when a product cannot be found."""

    def __init__(self, product_id: uuid.UUID) -> None:
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


@dataclass(frozen=True)
class Product:
    product_id: uuid.UUID
    name: str
    cost: float
    quantity: int
    user_id: uuid.UUID
    date_created: datetime
    date_updated: datetime


@dataclass(frozen=True)
class NewProduct:
    name: str
    cost: float
    quantity: int
    user_id: uuid.UUID


@dataclass(frozen=True)
class UpdateProduct:
    """Partial change to a product. None leaves the field as it is."""
    name: str | None = None
    cost: float | None = None
    quantity: int | None = None


@dataclass(frozen=True)
class QueryFilter:
    """Constraints for a product query. None means no constraint on that field."""
    product_id: uuid.UUID | None = None
    name: str | None = None
    cost: float | None = None
    quantity: int | None = None
    user_id: uuid.UUID | None = None


def _to_product(row: ProductModel) -> Product:
    return Product(
        product_id=uuid.UUID(row.product_id),
        name=row.name,
        cost=row.cost,
        quantity=row.quantity,
        user_id=uuid.UUID(row.user_id),
        date_created=row.date_created,
        date_updated=row.date_updated,
    )


def _apply_filter(query, flt: QueryFilter):
    if flt.product_id is not None:
        query = query.filter(ProductModel.product_id == str(flt.product_id))
    if flt.name is not None:
        query = query.filter(ProductModel.name.icontains(flt.name, autoescape=True))
    if flt.cost is not None:
        query = query.filter(ProductModel.cost == flt.cost)
    if flt.quantity is not None:
        query = query.filter(ProductModel.quantity == flt.quantity)
    if flt.user_id is not None:
        query = query.filter(ProductModel.user_id == str(flt.user_id))
    return query


class ProductCore:
    """Manages the set of operations for products against the database."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def create(self, np: NewProduct) -> Product:
        return await run_in_threadpool(self._create, np)

    async def update(self, product: Product, up: UpdateProduct) -> Product:
        return await run_in_threadpool(self._update, product, up)

    async def delete(self, product: Product) -> None:
        await run_in_threadpool(self._delete, product)

    async def query(self, flt: QueryFilter, order_by: OrderBy, page_number: int, rows_per_page: int) -> list[Product]:
        return await run_in_threadpool(self._query, flt, order_by, page_number, rows_per_page)

    async def count(self, flt: QueryFilter) -> int:
        return await run_in_threadpool(self._count, flt)

    async def query_by_id(self, product_id: uuid.UUID) -> Product:
        return await run_in_threadpool(self._query_by_id, product_id)

    def _create(self, np: NewProduct) -> Product:
        now = datetime.now(timezone.utc)
        row = ProductModel(
            product_id=str(uuid.uuid4()),
            name=np.name,
            cost=np.cost,
            quantity=np.quantity,
            user_id=str(np.user_id),
            date_created=now,
            date_updated=now,
        )
        with self._session_factory() as db:
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info(f"Created product {row.product_id}")
            return _to_product(row)

    def _update(self, product: Product, up: UpdateProduct) -> Product:
        changes = {
            field: value
            for field, value in (("name", up.name), ("cost", up.cost), ("quantity", up.quantity))
            if value is not None
        }
        updated = replace(product, date_updated=datetime.now(timezone.utc), **changes)

        with self._session_factory() as db:
            row = db.get(ProductModel, str(product.product_id))
            if row is None:
                # Deleted between the caller's lookup and this update
                raise ProductNotFoundError(product.product_id)

            row.name = updated.name
            row.cost = updated.cost
            row.quantity = updated.quantity
            row.date_updated = updated.date_updated
            db.commit()
            db.refresh(row)
            logger.info(f"Updated product {row.product_id}")
            return _to_product(row)

    def _delete(self, product: Product) -> None:
        with self._session_factory() as db:
            row = db.get(ProductModel, str(product.product_id))
            if row is None:
                return
            db.delete(row)
            db.commit()
            logger.info(f"Deleted product {product.product_id}")

    def _query(self, flt: QueryFilter, order_by: OrderBy, page_number: int, rows_per_page: int) -> list[Product]:
        column = _order_by_columns.get(order_by.field)
        if column is None:
            raise ValueError(f"field {order_by.field!r} does not exist")
        ordering = column.desc() if order_by.direction == DESC else column.asc()

        with self._session_factory() as db:
            query = _apply_filter(db.query(ProductModel), flt)
            rows = (
                query.order_by(ordering)
                .offset((page_number - 1) * rows_per_page)
                .limit(rows_per_page)
                .all()
            )
            return [_to_product(row) for row in rows]

    def _count(self, flt: QueryFilter) -> int:
        with self._session_factory() as db:
            query = _apply_filter(db.query(func.count(ProductModel.product_id)), flt)
            return query.scalar() or 0

    def _query_by_id(self, product_id: uuid.UUID) -> Product:
        with self._session_factory() as db:
            row = db.get(ProductModel, str(product_id))
            if row is None:
                raise ProductNotFoundError(product_id)
            return _to_product(row)
