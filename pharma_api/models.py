"""Modelos pydantic de pedidos, parâmetros de consulta e envelope de resposta."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

SortField = Literal["createdAt", "totalCents"]
SortDir = Literal["asc", "desc"]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # datas sem fuso são tratadas como UTC para permitir comparação
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    CANCELLED = "Cancelled"


class Order(BaseModel):
    """Pedido de farmácia carregado do arquivo JSON.

    `needs_review` é calculado uma única vez na carga, a partir do limite diário.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    pharmacy_id: str = Field(alias="pharmacyId")
    status: OrderStatus
    total_cents: int = Field(alias="totalCents")
    created_at: datetime = Field(alias="createdAt")
    needs_review: bool = Field(default=False, alias="needsReview")

    @field_validator("created_at")
    @classmethod
    def created_at_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class OrderQueryParams(BaseModel):
    """Filtros, ordenação e paginação de uma consulta.

    Sem validação de faixa aqui: quem valida é o `OrderQueryService`.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pharmacy_id: Optional[str] = Field(default=None, alias="pharmacyId")
    status: Optional[Sequence[OrderStatus]] = None
    from_: Optional[datetime] = Field(default=None, alias="from")
    to: Optional[datetime] = None
    sort: str = "createdAt"
    dir: str = "desc"
    page: int = 1
    page_size: int = Field(default=20, alias="pageSize")

    @field_validator("from_", "to")
    @classmethod
    def bounds_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class OrderResponse(BaseModel):
    """Envelope devolvido por GET /orders."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    items: List[Order]
