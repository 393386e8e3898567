import uuid

import pytest

from sales_api.api.query_params import (
    QueryConfig,
    parse_filter,
    parse_list_query,
    parse_order_by,
    parse_positive_int,
)
from sales_api.core.config import Settings
from sales_api.core.errors import FieldsError
from sales_api.services.order import ASC, DESC, OrderBy
from sales_api.services.product_core import DEFAULT_ORDER_BY, QueryFilter


class TestPaging:

    def test_defaults_come_from_config(self) -> None:
        lq = parse_list_query({}, QueryConfig(default_page=2, default_rows=25))
        assert (lq.page, lq.rows) == (2, 25)

    def test_explicit_values(self) -> None:
        lq = parse_list_query({"page": "3", "rows": "7"}, QueryConfig())
        assert (lq.page, lq.rows) == (3, 7)

    @pytest.mark.parametrize("raw", ["0", "-1", "abc", "1.0", str(2**63)])
    def test_rejects_non_positive_and_non_integer(self, raw) -> None:
        with pytest.raises(FieldsError) as exc_info:
            parse_positive_int({"rows": raw}, "rows", 10)
        assert set(exc_info.value.fields) == {"rows"}

    def test_accepts_largest_int64(self) -> None:
        assert parse_positive_int({"rows": str(2**63 - 1)}, "rows", 10) == 2**63 - 1

    def test_rejects_offset_past_int64(self) -> None:
        with pytest.raises(FieldsError) as exc_info:
            parse_list_query({"page": str(2**62), "rows": "4"}, QueryConfig())
        assert set(exc_info.value.fields) == {"page"}


class TestFilter:

    def test_empty(self) -> None:
        assert parse_filter({}) == QueryFilter()

    def test_all_fields(self) -> None:
        product_id, user_id = uuid.uuid4(), uuid.uuid4()
        flt = parse_filter({
            "product_id": str(product_id),
            "name": "Comic",
            "cost": "12.5",
            "quantity": "3",
            "user_id": str(user_id),
        })
        assert flt == QueryFilter(product_id=product_id, name="Comic", cost=12.5, quantity=3, user_id=user_id)

    def test_empty_values_are_no_constraint(self) -> None:
        assert parse_filter({"name": "", "cost": ""}) == QueryFilter()

    def test_paging_and_order_keys_are_not_filters(self) -> None:
        assert parse_filter({"page": "1", "rows": "2", "orderby": "name"}) == QueryFilter()

    def test_unknown_keys_are_rejected(self) -> None:
        with pytest.raises(FieldsError) as exc_info:
            parse_filter({"color": "red", "size": "xl", "name": "ok"})
        assert set(exc_info.value.fields) == {"color", "size"}

    @pytest.mark.parametrize("key,raw", [("cost", "nan"), ("cost", "inf"), ("user_id", "12"), ("quantity", str(2**63))])
    def test_malformed_values(self, key, raw) -> None:
        with pytest.raises(FieldsError) as exc_info:
            parse_filter({key: raw})
        assert set(exc_info.value.fields) == {key}


class TestOrderBy:

    def test_default_when_absent(self) -> None:
        assert parse_order_by({}, QueryConfig()) == DEFAULT_ORDER_BY

    def test_field_only_is_ascending(self) -> None:
        assert parse_order_by({"orderby": "name"}, QueryConfig()) == OrderBy("name", ASC)

    def test_direction_is_case_insensitive(self) -> None:
        assert parse_order_by({"orderby": " cost , desc "}, QueryConfig()) == OrderBy("cost", DESC)

    def test_allow_list_comes_from_config(self) -> None:
        config = QueryConfig(sortable_fields=frozenset({"product_id"}))
        with pytest.raises(FieldsError) as exc_info:
            parse_order_by({"orderby": "name"}, config)
        assert "orderby" in exc_info.value.fields

    def test_unknown_direction(self) -> None:
        with pytest.raises(FieldsError):
            parse_order_by({"orderby": "name,up"}, QueryConfig())


class TestQueryConfig:

    def test_from_settings(self) -> None:
        config = QueryConfig.from_settings(Settings(QUERY_DEFAULT_PAGE=1, QUERY_DEFAULT_ROWS=50))
        assert config.default_rows == 50
        assert config.default_order_by == DEFAULT_ORDER_BY

    def test_rejects_zero_rows(self) -> None:
        with pytest.raises(ValueError):
            QueryConfig(default_rows=0)

    def test_default_order_must_be_sortable(self) -> None:
        with pytest.raises(ValueError):
            QueryConfig(sortable_fields=frozenset({"name"}))
