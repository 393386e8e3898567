import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from sales_api.api.product_routes import get_product_core
from sales_api.main import app
from sales_api.services.order import DESC
from sales_api.services.product_core import Product, ProductNotFoundError


class FakeProductCore:
    """In-memory stand-in for ProductCore that records every call it receives."""

    def __init__(self) -> None:
        self.products: dict[uuid.UUID, Product] = {}
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def add(self, name: str = "Comic Books", cost: float = 50.0, quantity: int = 42, user_id: uuid.UUID | None = None) -> Product:
        now = self._now()
        prd = Product(
            product_id=uuid.uuid4(),
            name=name,
            cost=cost,
            quantity=quantity,
            user_id=user_id or uuid.uuid4(),
            date_created=now,
            date_updated=now,
        )
        self.products[prd.product_id] = prd
        return prd

    @property
    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def create(self, np):
        self._record("create", np)
        return self.add(name=np.name, cost=np.cost, quantity=np.quantity, user_id=np.user_id)

    async def update(self, prd, up):
        self._record("update", prd, up)
        if prd.product_id not in self.products:
            raise ProductNotFoundError(prd.product_id)
        changes = {k: v for k, v in (("name", up.name), ("cost", up.cost), ("quantity", up.quantity)) if v is not None}
        updated = replace(prd, date_updated=self._now(), **changes)
        self.products[prd.product_id] = updated
        return updated

    async def delete(self, prd):
        self._record("delete", prd)
        self.products.pop(prd.product_id, None)

    def _matching(self, flt) -> list[Product]:
        def match(prd: Product) -> bool:
            if flt.product_id is not None and prd.product_id != flt.product_id:
                return False
            if flt.name is not None and flt.name.lower() not in prd.name.lower():
                return False
            if flt.cost is not None and prd.cost != flt.cost:
                return False
            if flt.quantity is not None and prd.quantity != flt.quantity:
                return False
            if flt.user_id is not None and prd.user_id != flt.user_id:
                return False
            return True

        return [prd for prd in self.products.values() if match(prd)]

    async def query(self, flt, order_by, page_number, rows_per_page):
        self._record("query", flt, order_by, page_number, rows_per_page)
        prds = sorted(
            self._matching(flt),
            key=lambda prd: getattr(prd, order_by.field),
            reverse=order_by.direction == DESC,
        )
        start = (page_number - 1) * rows_per_page
        return prds[start:start + rows_per_page]

    async def count(self, flt):
        self._record("count", flt)
        return len(self._matching(flt))

    async def query_by_id(self, product_id):
        self._record("query_by_id", product_id)
        try:
            return self.products[product_id]
        except KeyError:
            raise ProductNotFoundError(product_id)


@pytest.fixture
def core() -> FakeProductCore:
    return FakeProductCore()


@pytest.fixture
def client(core):
    app.dependency_overrides[get_product_core] = lambda: core
    yield TestClient(app)
    app.dependency_overrides.clear()
