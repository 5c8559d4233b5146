"""Carga dos pedidos a partir do JSON e cache em memória."""
import logging
import time
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError

from .cache import TTLCache
from .config import Settings
from .models import Order

logger = logging.getLogger("uvicorn.error").getChild(__name__)

ORDERS_CACHE_KEY = "Orders"

_orders_adapter = TypeAdapter(List[Order])


class OrderStore:
    """Mantém a coleção de pedidos carregada uma vez e reaproveitada até expirar."""

    def __init__(self, settings: Settings, cache: TTLCache | None = None) -> None:
        self.settings = settings
        self.cache = cache or TTLCache(settings.cache_ttl)
        self.loaded_count = 0

    def load(self, source: str | Path) -> List[Order]:
        """Lê o arquivo e marca `needs_review`; em caso de falha retorna lista vazia."""
        path = Path(source)
        threshold = self.settings.daily_order_threshold_cents
        try:
            orders = _orders_adapter.validate_json(path.read_bytes())
        except (OSError, ValidationError):
            logger.exception("Failed to load sample orders from %s", path)
            return []
        return [
            order.model_copy(update={"needs_review": order.total_cents > threshold})
            for order in orders
        ]

    def _load_and_log(self) -> List[Order]:
        started = time.perf_counter()
        orders = self.load(self.settings.orders_path)
        self.loaded_count = len(orders)
        logger.debug(
            "Cached %d orders in %.2f ms.",
            len(orders),
            (time.perf_counter() - started) * 1000,
        )
        return orders

    def get_orders(self) -> List[Order]:
        """Coleção em cache; recarrega no primeiro acesso após expirar."""
        return self.cache.get_or_create(ORDERS_CACHE_KEY, self._load_and_log)
