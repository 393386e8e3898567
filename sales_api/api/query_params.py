"""
Parsing of the product list query string: paging, filtering and ordering.

Every failure is a FieldsError naming the offending parameter, so a bad
query string is reported as a client error before the business core is
consulted.
"""
import math
import uuid
from collections.abc import Mapping
from dataclasses import dataclass

from sales_api.core.config import Settings
from sales_api.core.errors import FieldsError
from sales_api.services.order import ASC, DIRECTIONS, OrderBy
from sales_api.services.product_core import DEFAULT_ORDER_BY, SORTABLE_FIELDS, QueryFilter

PAGE_PARAM = "page"
ROWS_PARAM = "rows"
ORDER_BY_PARAM = "orderby"

RESERVED_PARAMS = frozenset((PAGE_PARAM, ROWS_PARAM, ORDER_BY_PARAM))
FILTER_PARAMS = frozenset(("product_id", "name", "cost", "quantity", "user_id"))

# Largest value a signed 64-bit offset or limit can hold
MAX_INT64 = 2**63 - 1


@dataclass(frozen=True)
class QueryConfig:
    """Defaults and the sortable field allow-list used when parsing a list query."""
    default_page: int = 1
    default_rows: int = 10
    sortable_fields: frozenset[str] = SORTABLE_FIELDS
    default_order_by: OrderBy = DEFAULT_ORDER_BY

    def __post_init__(self) -> None:
        if self.default_page < 1 or self.default_rows < 1:
            raise ValueError("default page and rows must be at least 1")
        if self.default_order_by.field not in self.sortable_fields:
            raise ValueError(f"default order field {self.default_order_by.field!r} is not sortable")

    @classmethod
    def from_settings(cls, settings: Settings) -> "QueryConfig":
        return cls(
            default_page=settings.QUERY_DEFAULT_PAGE,
            default_rows=settings.QUERY_DEFAULT_ROWS,
        )


@dataclass(frozen=True)
class ListQuery:
    page: int
    rows: int
    filter: QueryFilter
    order_by: OrderBy


def parse_positive_int(values: Mapping[str, str], name: str, default: int) -> int:
    raw = values.get(name, "")
    if raw == "":
        return default
    try:
        number = int(raw)
    except ValueError:
        raise FieldsError.for_field(name, f"{raw!r} is not an integer")
    if number < 1:
        raise FieldsError.for_field(name, "must be at least 1")
    if number > MAX_INT64:
        raise FieldsError.for_field(name, f"must be at most {MAX_INT64}")
    return number


def _parse_uuid(name: str, raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise FieldsError.for_field(name, f"{raw!r} is not a valid id")


def parse_filter(values: Mapping[str, str]) -> QueryFilter:
    """Build a QueryFilter from the recognized filter keys; empty values are ignored."""
    unknown = sorted(set(values.keys()) - FILTER_PARAMS - RESERVED_PARAMS)
    if unknown:
        raise FieldsError({key: "unknown filter" for key in unknown})

    fields: dict = {}

    if product_id := values.get("product_id", ""):
        fields["product_id"] = _parse_uuid("product_id", product_id)

    if name := values.get("name", ""):
        fields["name"] = name

    if cost := values.get("cost", ""):
        try:
            fields["cost"] = float(cost)
        except ValueError:
            raise FieldsError.for_field("cost", f"{cost!r} is not a number")
        if not math.isfinite(fields["cost"]):
            raise FieldsError.for_field("cost", f"{cost!r} is not a number")

    if quantity := values.get("quantity", ""):
        try:
            fields["quantity"] = int(quantity)
        except ValueError:
            raise FieldsError.for_field("quantity", f"{quantity!r} is not an integer")
        if abs(fields["quantity"]) > MAX_INT64:
            raise FieldsError.for_field("quantity", f"{quantity!r} is out of range")

    if user_id := values.get("user_id", ""):
        fields["user_id"] = _parse_uuid("user_id", user_id)

    return QueryFilter(**fields)


def parse_order_by(values: Mapping[str, str], config: QueryConfig) -> OrderBy:
    """Parse ``orderby=field[,direction]``, falling back to the configured default."""
    raw = values.get(ORDER_BY_PARAM, "")
    if raw == "":
        return config.default_order_by

    parts = [part.strip() for part in raw.split(",")]
    if len(parts) == 1:
        order_by = OrderBy(parts[0], ASC)
    elif len(parts) == 2:
        order_by = OrderBy(parts[0], parts[1].upper())
    else:
        raise FieldsError.for_field(ORDER_BY_PARAM, f"invalid order specification {raw!r}")

    if order_by.direction not in DIRECTIONS:
        raise FieldsError.for_field(ORDER_BY_PARAM, f"unknown direction {parts[1]!r}")
    if order_by.field not in config.sortable_fields:
        raise FieldsError.for_field(ORDER_BY_PARAM, f"field {order_by.field!r} is not sortable")

    return order_by


def parse_list_query(values: Mapping[str, str], config: QueryConfig) -> ListQuery:
    page = parse_positive_int(values, PAGE_PARAM, config.default_page)
    rows = parse_positive_int(values, ROWS_PARAM, config.default_rows)
    if (page - 1) * rows > MAX_INT64:
        raise FieldsError.for_field(PAGE_PARAM, "page is out of range for the given rows")

    return ListQuery(
        page=page,
        rows=rows,
        filter=parse_filter(values),
        order_by=parse_order_by(values, config),
    )
