import logging
import uuid
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from sales_api.api.query_params import QueryConfig, parse_list_query
from sales_api.core.config import settings
from sales_api.core.errors import FieldsError, InternalError, RequestError
from sales_api.database import SessionLocal
from sales_api.schemas.product import (
    Product,
    ProductCreate,
    ProductUpdate,
    QueryResponse,
    to_app_product,
    to_new_product,
    to_update_product,
)
from sales_api.services.product_core import ProductCore, ProductNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

_product_core = ProductCore(SessionLocal)


def get_product_core() -> ProductCore:
    """Dependency returning the shared product business core."""
    return _product_core


@lru_cache
def get_query_config() -> QueryConfig:
    return QueryConfig.from_settings(settings)


ProductCoreDep = Annotated[ProductCore, Depends(get_product_core)]


def parse_product_id(raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise FieldsError.for_field("product_id", "ID is not in its proper form")


async def _fetch(core: ProductCore, product_id: uuid.UUID):
    """Look a product up, reporting a miss as 404."""
    try:
        return await core.query_by_id(product_id)
    except ProductNotFoundError:
        raise RequestError(404, "product not found")
    except Exception as e:
        raise InternalError("querybyid", id=product_id) from e


@router.post("/", response_model=Product, status_code=201)
async def create_product(product: ProductCreate, core: ProductCoreDep):
    """Create a new product."""
    try:
        prd = await core.create(to_new_product(product))
    except Exception as e:
        raise InternalError("create", app=product) from e

    return to_app_product(prd)


@router.put("/{product_id}", response_model=Product)
async def update_product(product_id: str, product_update: ProductUpdate, core: ProductCoreDep):
    """Update a product."""
    prd_id = parse_product_id(product_id)
    prd = await _fetch(core, prd_id)

    try:
        prd = await core.update(prd, to_update_product(product_update))
    except ProductNotFoundError:
        logger.warning(f"Product {prd_id} was removed before it could be updated")
        raise RequestError(404, "product not found")
    except Exception as e:
        raise InternalError("update", id=prd_id, app=product_update) from e

    return to_app_product(prd)


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: str, core: ProductCoreDep):
    """Delete a product. Deleting a product that does not exist succeeds."""
    prd_id = parse_product_id(product_id)

    try:
        prd = await core.query_by_id(prd_id)
    except ProductNotFoundError:
        logger.info(f"Product {prd_id} already absent, nothing to delete")
        return Response(status_code=204)
    except Exception as e:
        raise InternalError("querybyid", id=prd_id) from e

    try:
        await core.delete(prd)
    except Exception as e:
        raise InternalError("delete", id=prd_id) from e

    return Response(status_code=204)


@router.get("/", response_model=QueryResponse[Product])
async def list_products(
    request: Request,
    core: ProductCoreDep,
    config: Annotated[QueryConfig, Depends(get_query_config)],
):
    """
    Get a page of products.

    Query parameters:
        page, rows: paging, both at least 1.
        product_id, name, cost, quantity, user_id: filters; name matches a substring.
        orderby: field[,ASC|DESC].
    """
    lq = parse_list_query(request.query_params, config)
    logger.info(f"Query params: filter={lq.filter}, order_by={lq.order_by}, page={lq.page}, rows={lq.rows}")

    try:
        prds = await core.query(lq.filter, lq.order_by, lq.page, lq.rows)
    except Exception as e:
        raise InternalError("query", filter=lq.filter, order_by=lq.order_by) from e

    items = [to_app_product(prd) for prd in prds]

    try:
        total = await core.count(lq.filter)
    except Exception as e:
        raise InternalError("count", filter=lq.filter) from e

    return QueryResponse[Product](items=items, total=total, page=lq.page, rows_per_page=lq.rows)


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str, core: ProductCoreDep):
    """Get a product by ID."""
    prd = await _fetch(core, parse_product_id(product_id))
    return to_app_product(prd)
