from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal


@dataclass(frozen=True)
class Service:
    id: int
    employee_id: int
    name: str
    duration: timedelta
    price: Decimal
    currency: str = "EUR"
    description: str | None = None

    @property
    def price_label(self) -> str:
        return f"{self.price.normalize():f} {self.currency}"
