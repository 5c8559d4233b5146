"""Fixtures compartilhadas: arquivo de pedidos temporário e settings apontando para ele."""
import json

import pytest

from pharma_api.config import Settings


def make_order(order_id, total_cents, created_at, pharmacy_id="PHX1", status="Pending"):
    return {
        "id": order_id,
        "pharmacyId": pharmacy_id,
        "status": status,
        "totalCents": total_cents,
        "createdAt": created_at,
    }


class FakeClock:
    """Relógio manual para testar expiração do cache."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def write_orders(tmp_path):
    """Grava a lista de pedidos em `orders.json` e retorna Settings para ela."""

    def _write(orders, **overrides):
        (tmp_path / "orders.json").write_text(json.dumps(orders), encoding="utf-8")
        return Settings(content_root=tmp_path, orders_file="orders.json", **overrides)

    return _write
