from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from sales_api.services import product_core

T = TypeVar("T")


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    cost: float = Field(ge=0)
    quantity: int = Field(ge=1)
    user_id: UUID

    model_config = ConfigDict(extra="forbid")


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    cost: float | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class Product(BaseModel):
    id: UUID
    name: str
    cost: float
    quantity: int
    user_id: UUID
    date_created: datetime
    date_updated: datetime


class QueryResponse(BaseModel, Generic[T]):
    """One page of results plus the number of rows matching the filter."""
    items: list[T]
    total: int
    page: int
    rows_per_page: int = Field(alias="rowsPerPage")

    model_config = ConfigDict(populate_by_name=True)


def to_new_product(app: ProductCreate) -> product_core.NewProduct:
    return product_core.NewProduct(
        name=app.name,
        cost=app.cost,
        quantity=app.quantity,
        user_id=app.user_id,
    )


def to_update_product(app: ProductUpdate) -> product_core.UpdateProduct:
    """Fields left out of the request (or sent as null) stay None and are not changed."""
    return product_core.UpdateProduct(
        name=app.name,
        cost=app.cost,
        quantity=app.quantity,
    )


def to_app_product(prd: product_core.Product) -> Product:
    return Product(
        id=prd.product_id,
        name=prd.name,
        cost=prd.cost,
        quantity=prd.quantity,
        user_id=prd.user_id,
        date_created=prd.date_created,
        date_updated=prd.date_updated,
    )
