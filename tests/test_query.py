"""Validação, filtros, ordenação e paginação do OrderQueryService."""
import logging
import threading
from datetime import datetime, timezone

import pytest

from conftest import make_order
from pharma_api.models import OrderQueryParams
from pharma_api.orders import OrderStore
from pharma_api.query import (
    InvalidQueryError,
    OrderQueryService,
    QueryCancelledError,
    validate_query,
)
from pharma_api.query import logger as query_logger

ORDERS = [
    make_order("a", 500, "2025-01-01T08:00:00Z", pharmacy_id="PHX1", status="Pending"),
    make_order("b", 100, "2025-01-03T08:00:00Z", pharmacy_id="NYC2", status="Shipped"),
    make_order("c", 300, "2025-01-02T08:00:00Z", pharmacy_id="phx1", status="Cancelled"),
]


@pytest.fixture
def service(write_orders):
    settings = write_orders(ORDERS, max_page_size=50)
    return OrderQueryService(OrderStore(settings), settings)


def ids(response):
    return [o.id for o in response.items]


@pytest.mark.parametrize(
    "params,field,rule",
    [
        ({"page": 0}, "Page", "out_of_range"),
        ({"page": -3}, "Page", "out_of_range"),
        ({"page_size": 0}, "PageSize", "out_of_range"),
        ({"page_size": 51}, "PageSize", "out_of_range"),
        ({"sort": "bogus"}, "Sort", "invalid_argument"),
        ({"sort": "CreatedAt"}, "Sort", "invalid_argument"),
        ({"dir": "sideways"}, "Dir", "invalid_argument"),
    ],
)
def test_invalid_parameters_are_reported(service, params, field, rule):
    with pytest.raises(InvalidQueryError) as exc_info:
        service.get(OrderQueryParams(**params))
    assert exc_info.value.error.field == field
    assert exc_info.value.error.rule == rule


def test_first_violated_rule_wins():
    query = OrderQueryParams(page=0, page_size=0, sort="x", dir="y")
    assert validate_query(query, 100).field == "Page"
    query = OrderQueryParams(page=1, page_size=0, sort="x", dir="y")
    assert validate_query(query, 100).field == "PageSize"
    query = OrderQueryParams(sort="x", dir="y")
    assert validate_query(query, 100).field == "Sort"


def test_error_carries_received_value():
    error = validate_query(OrderQueryParams(dir="sideways"), 100)
    assert error.value == "sideways"
    assert "sideways" in error.message


def test_max_page_size_is_accepted():
    assert validate_query(OrderQueryParams(page_size=100), 100) is None


@pytest.mark.parametrize(
    "sort,direction,expected",
    [
        ("totalCents", "asc", ["b", "c", "a"]),
        ("totalCents", "desc", ["a", "c", "b"]),
        ("createdAt", "asc", ["a", "c", "b"]),
        ("createdAt", "desc", ["b", "c", "a"]),
    ],
)
def test_sorting(service, sort, direction, expected):
    assert ids(service.get(OrderQueryParams(sort=sort, dir=direction))) == expected


def test_default_sort_is_newest_first(service):
    assert ids(service.get(OrderQueryParams())) == ["b", "c", "a"]


def test_pharmacy_filter_is_case_insensitive(service):
    response = service.get(OrderQueryParams(pharmacy_id="phx1", sort="totalCents", dir="asc"))
    assert ids(response) == ["c", "a"]


def test_status_filter_matches_any(service):
    response = service.get(OrderQueryParams(status=["Shipped", "Cancelled"]))
    assert ids(response) == ["b", "c"]


def test_empty_status_list_does_not_filter(service):
    assert len(service.get(OrderQueryParams(status=[])).items) == 3


def test_date_bounds_are_inclusive(service):
    query = OrderQueryParams(
        from_=datetime(2025, 1, 1, 8, tzinfo=timezone.utc),
        to=datetime(2025, 1, 2, 8, tzinfo=timezone.utc),
    )
    assert ids(service.get(query)) == ["c", "a"]


def test_naive_date_bounds_are_treated_as_utc(service):
    query = OrderQueryParams(from_=datetime(2025, 1, 2, 8))
    assert ids(service.get(query)) == ["b", "c"]


def test_pagination_and_total_is_page_size_returned(service):
    first = service.get(OrderQueryParams(page=1, page_size=2))
    second = service.get(OrderQueryParams(page=2, page_size=2))
    assert ids(first) == ["b", "c"]
    assert first.total == 2
    assert ids(second) == ["a"]
    assert second.total == 1


def test_page_past_the_end_is_empty(service):
    response = service.get(OrderQueryParams(page=10, page_size=2))
    assert response.items == []
    assert response.total == 0
    assert response.page == 10


def test_end_to_end_threshold_and_paging(write_orders):
    settings = write_orders(
        [
            make_order("x", 1000, "2025-01-01T00:00:00Z"),
            make_order("y", 2500, "2025-01-02T00:00:00Z"),
            make_order("z", 1800, "2025-01-03T00:00:00Z"),
        ],
        daily_order_threshold_cents=2000,
    )
    service = OrderQueryService(OrderStore(settings), settings)
    response = service.get(
        OrderQueryParams(sort="totalCents", dir="desc", page=1, page_size=2)
    )
    assert [o.total_cents for o in response.items] == [2500, 1800]
    assert [o.needs_review for o in response.items] == [True, False]
    assert response.total == 2


def test_query_does_not_mutate_cached_orders(service):
    before = list(service.store.get_orders())
    service.get(OrderQueryParams(sort="totalCents", dir="asc", pharmacy_id="nyc2"))
    assert service.store.get_orders() == before


def test_cancelled_before_start_skips_validation(service):
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(QueryCancelledError):
        service.get(OrderQueryParams(page=0), cancel_event=cancel)


def test_emits_one_diagnostic_record(service, caplog):
    with caplog.at_level(logging.DEBUG, logger=query_logger.name):
        service.get(OrderQueryParams(page_size=2), correlation_id="corr-123")
    records = [r for r in caplog.records if r.name == query_logger.name]
    assert len(records) == 1
    assert records[0].item_count == 2
    assert records[0].correlation_id == "corr-123"
    assert records[0].query["pageSize"] == 2
    assert records[0].elapsed_ms >= 0
