"""Consulta de pedidos: validação, filtros, ordenação e paginação em memória."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, get_args

from .config import Settings
from .models import Order, OrderQueryParams, OrderResponse, SortDir, SortField
from .orders import OrderStore

logger = logging.getLogger("uvicorn.error").getChild(__name__)

SORT_FIELDS = get_args(SortField)
SORT_DIRS = get_args(SortDir)

QueryRule = Literal["out_of_range", "invalid_argument"]


@dataclass(frozen=True)
class QueryError:
    """Regra violada por um parâmetro de consulta."""

    rule: QueryRule
    field: str
    value: Any
    message: str


class InvalidQueryError(ValueError):
    def __init__(self, error: QueryError) -> None:
        super().__init__(error.message)
        self.error = error


class QueryCancelledError(Exception):
    """A consulta foi cancelada antes de começar."""


def validate_query(query: OrderQueryParams, max_page_size: int) -> Optional[QueryError]:
    """Retorna a primeira regra violada (page, pageSize, sort, dir) ou None."""
    if query.page <= 0:
        return QueryError("out_of_range", "Page", query.page, "Page must be greater than 0.")
    if query.page_size <= 0 or query.page_size > max_page_size:
        return QueryError(
            "out_of_range",
            "PageSize",
            query.page_size,
            f"PageSize must be between 1 and {max_page_size}.",
        )
    if query.sort not in SORT_FIELDS:
        return QueryError(
            "invalid_argument",
            "Sort",
            query.sort,
            f"Invalid Sort '{query.sort}'. Sort must be either 'createdAt' or 'totalCents'.",
        )
    if query.dir not in SORT_DIRS:
        return QueryError(
            "invalid_argument",
            "Dir",
            query.dir,
            f"Invalid Dir '{query.dir}'. Dir must be either 'desc' or 'asc'.",
        )
    return None


def _sort(items: List[Order], sort: str, direction: str) -> List[Order]:
    # sorted() é estável: empates mantêm a ordem da coleção
    if (sort, direction) == ("createdAt", "asc"):
        return sorted(items, key=lambda o: o.created_at)
    if (sort, direction) == ("totalCents", "desc"):
        return sorted(items, key=lambda o: o.total_cents, reverse=True)
    if (sort, direction) == ("totalCents", "asc"):
        return sorted(items, key=lambda o: o.total_cents)
    return sorted(items, key=lambda o: o.created_at, reverse=True)


class OrderQueryService:
    def __init__(self, store: OrderStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def get(
        self,
        query: OrderQueryParams,
        correlation_id: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> OrderResponse:
        """Aplica filtros, ordenação e paginação sobre a coleção em cache.

        - Cancelamento só é verificado na entrada.
        - `total` é o tamanho da página devolvida, não o total de correspondências.
        """
        started = time.perf_counter()
        if cancel_event is not None and cancel_event.is_set():
            raise QueryCancelledError("Order query cancelled before start.")

        error = validate_query(query, self.settings.max_page_size)
        if error is not None:
            raise InvalidQueryError(error)

        items: List[Order] = list(self.store.get_orders())
        if query.pharmacy_id:
            wanted = query.pharmacy_id.lower()
            items = [o for o in items if o.pharmacy_id.lower() == wanted]
        if query.status:
            statuses = set(query.status)
            items = [o for o in items if o.status in statuses]
        if query.from_ is not None:
            items = [o for o in items if o.created_at >= query.from_]
        if query.to is not None:
            items = [o for o in items if o.created_at <= query.to]

        items = _sort(items, query.sort, query.dir)

        skip = (query.page - 1) * query.page_size
        page = items[skip : skip + query.page_size]

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            "Order query: %d orders in %.2f ms. Query: %r. CorrelationId: %s",
            len(page),
            elapsed_ms,
            query,
            correlation_id,
            extra={
                "item_count": len(page),
                "elapsed_ms": elapsed_ms,
                "query": query.model_dump(mode="json", by_alias=True),
                "correlation_id": correlation_id,
            },
        )
        return OrderResponse(
            page=query.page,
            page_size=query.page_size,
            total=len(page),
            items=page,
        )
