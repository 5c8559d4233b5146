"""Cache em memória com expiração e carga única por chave.

- Cada entrada guarda o valor e o instante de expiração (relógio monotônico).
- A expiração é preguiçosa: só é verificada no acesso.
- Chamadas concorrentes para a mesma chave esperam no lock da chave; apenas
  uma executa a factory e as demais recebem o valor recém-gravado.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Hashable, Optional


@dataclass
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    def __init__(
        self,
        ttl: timedelta,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl.total_seconds()
        self._clock = clock
        self._entries: Dict[Hashable, _Entry] = {}
        self._lock = threading.Lock()
        self._fill_locks: Dict[Hashable, threading.Lock] = {}

    def _fresh(self, key: Hashable) -> Optional[_Entry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry

    def _fill_lock(self, key: Hashable) -> threading.Lock:
        with self._lock:
            return self._fill_locks.setdefault(key, threading.Lock())

    def get_or_create(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Retorna o valor em cache ou executa `factory` (uma vez) para preenchê-lo.

        Exceções da factory são propagadas e nada é gravado.
        """
        entry = self._fresh(key)
        if entry is not None:
            return entry.value
        with self._fill_lock(key):
            # outro chamador pode ter preenchido enquanto esperávamos
            entry = self._fresh(key)
            if entry is not None:
                return entry.value
            value = factory()
            with self._lock:
                self._entries[key] = _Entry(value, self._clock() + self.ttl_seconds)
            return value

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)
