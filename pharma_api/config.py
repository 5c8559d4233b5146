"""Configuração da API lida do ambiente (e do `.env`, via python-dotenv)."""

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class Settings:
    """Valores construídos uma vez no startup e repassados aos componentes."""

    daily_order_threshold_cents: int = 2000
    cache_ttl: timedelta = timedelta(minutes=60)
    max_page_size: int = 100
    content_root: Path = PROJECT_ROOT
    orders_file: str = "data/sample-orders.json"
    api_key: str | None = None
    log_level: str = "INFO"

    @property
    def orders_path(self) -> Path:
        return Path(self.content_root) / self.orders_file

    @classmethod
    def from_env(cls) -> "Settings":
        """Monta as configurações a partir das variáveis de ambiente."""
        return cls(
            daily_order_threshold_cents=int(
                os.getenv("REVIEW_DAILY_ORDER_THRESHOLD_CENTS", "2000")
            ),
            cache_ttl=timedelta(minutes=float(os.getenv("ORDERS_CACHE_TTL_MINUTES", "60"))),
            max_page_size=int(os.getenv("MAX_PAGE_SIZE", "100")),
            content_root=Path(os.getenv("CONTENT_ROOT", str(PROJECT_ROOT))),
            orders_file=os.getenv("ORDERS_FILE", "data/sample-orders.json"),
            api_key=os.getenv("API_KEY") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
