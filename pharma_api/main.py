"""FastAPI de consulta de pedidos de farmácia.

Fluxo:
- No startup, carrega `data/sample-orders.json` (ou `ORDERS_FILE`) e guarda em cache.
- `GET /orders` filtra, ordena e pagina a coleção em memória.
- Erros de parâmetro viram 400 com o campo e o valor recebidos.
"""

import logging
import threading
import uuid
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Header, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from .auth import verify_api_key
from .config import Settings
from .models import OrderQueryParams, OrderResponse, OrderStatus
from .orders import OrderStore
from .query import InvalidQueryError, OrderQueryService, QueryCancelledError

logger = logging.getLogger("uvicorn.error")

CORRELATION_HEADER = "X-Correlation-ID"


def create_app(settings: Settings) -> FastAPI:
    """Monta a aplicação com store, serviço de consulta e handlers de erro."""
    app = FastAPI(title="Pharma Orders API", version="0.1.0")
    store = OrderStore(settings)
    service = OrderQueryService(store, settings)
    app.state.settings = settings
    app.state.store = store
    app.state.service = service
    logger.getChild("pharma_api").setLevel(settings.log_level)

    @app.on_event("startup")
    def warm_orders_cache() -> None:
        """Carrega e guarda os pedidos em cache na inicialização."""
        orders = store.get_orders()
        logger.info(
            "Startup: %d pedidos carregados de %s | limite revisão=%d",
            len(orders),
            settings.orders_path,
            settings.daily_order_threshold_cents,
        )

    @app.exception_handler(InvalidQueryError)
    async def invalid_query(request: Request, exc: InvalidQueryError) -> JSONResponse:
        err = exc.error
        return JSONResponse(
            status_code=400,
            content={
                "error": err.rule,
                "field": err.field,
                "value": err.value,
                "message": err.message,
            },
        )

    @app.exception_handler(QueryCancelledError)
    async def cancelled_query(request: Request, exc: QueryCancelledError) -> JSONResponse:
        # 499: cliente encerrou a requisição
        return JSONResponse(status_code=499, content={"error": "cancelled", "message": str(exc)})

    @app.get("/healthz")
    def healthcheck() -> dict:
        """Endpoint de liveness; `orders` é o total da última carga, mesmo com o cache expirado."""
        return {"status": "ok", "orders": store.loaded_count}

    @app.get(
        "/orders",
        response_model=OrderResponse,
        dependencies=[Depends(verify_api_key)],
    )
    async def list_orders(
        request: Request,
        response: Response,
        pharmacy_id: Optional[str] = Query(default=None, alias="pharmacyId"),
        status: Optional[List[OrderStatus]] = Query(default=None),
        from_: Optional[datetime] = Query(default=None, alias="from"),
        to: Optional[datetime] = Query(default=None),
        sort: str = Query(default="createdAt"),
        dir: str = Query(default="desc"),
        page: int = Query(default=1),
        page_size: int = Query(default=20, alias="pageSize"),
        x_correlation_id: Optional[str] = Header(default=None),
    ) -> OrderResponse:
        """Lista pedidos com filtros opcionais, ordenação e paginação."""
        correlation_id = x_correlation_id or str(uuid.uuid4())
        response.headers[CORRELATION_HEADER] = correlation_id
        query = OrderQueryParams(
            pharmacy_id=pharmacy_id,
            status=status,
            from_=from_,
            to=to,
            sort=sort,
            dir=dir,
            page=page,
            page_size=page_size,
        )
        cancel_event = threading.Event()
        if await request.is_disconnected():
            cancel_event.set()
        return await run_in_threadpool(
            service.get, query, correlation_id=correlation_id, cancel_event=cancel_event
        )

    return app


# Carrega variáveis do .env (REVIEW_DAILY_ORDER_THRESHOLD_CENTS, ORDERS_FILE etc.)
load_dotenv()

app = create_app(Settings.from_env())
