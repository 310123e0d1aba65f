"""Card payment gateway.

Cards are checked locally (holder, Luhn, expiry, CVC) and approved with a
generated reference. Only the brand and last four digits leave this module.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class PaymentDeclined(Exception):
    def __init__(self, reason: str, field: Optional[str] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.field = field


@dataclass(frozen=True)
class CardDetails:
    holder: str
    number: str
    exp_month: int
    exp_year: int
    cvc: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CardDetails":
        try:
            return cls(
                holder=str(data.get("holder") or "").strip(),
                number=str(data.get("number") or "").replace(" ", "").replace("-", ""),
                exp_month=int(data.get("exp_month")),
                exp_year=int(data.get("exp_year")),
                cvc=str(data.get("cvc") or "").strip(),
            )
        except (TypeError, ValueError):
            raise PaymentDeclined("Expiry month and year must be numbers", "exp")

    @property
    def last4(self) -> str:
        return self.number[-4:]

    @property
    def brand(self) -> str:
        if self.number.startswith("4"):
            return "VISA"
        if self.number[:2] in ("34", "37"):
            return "AMEX"
        prefix = int(self.number[:4] or 0)
        if 51 <= prefix // 100 <= 55 or 2221 <= prefix <= 2720:
            return "MASTERCARD"
        return "CARD"


@dataclass(frozen=True)
class PaymentReceipt:
    reference: str
    amount_cents: int
    brand: str
    last4: str


def luhn_valid(number: str) -> bool:
    total = 0
    for i, ch in enumerate(reversed(number)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CardPaymentGateway:
    def __init__(self, clock=utcnow) -> None:
        self._clock = clock

    def validate(self, card: CardDetails) -> None:
        if not card.holder:
            raise PaymentDeclined("Cardholder name is required", "holder")
        if not card.number.isdigit() or not 12 <= len(card.number) <= 19:
            raise PaymentDeclined("Card number must be 12 to 19 digits", "number")
        if not luhn_valid(card.number):
            raise PaymentDeclined("Card number is invalid", "number")
        if not 1 <= card.exp_month <= 12:
            raise PaymentDeclined("Expiry month must be between 1 and 12", "exp")
        now = self._clock()
        if (card.exp_year, card.exp_month) < (now.year, now.month):
            raise PaymentDeclined("Card has expired", "exp")
        if not card.cvc.isdigit() or len(card.cvc) not in (3, 4):
            raise PaymentDeclined("CVC must be 3 or 4 digits", "cvc")

    def charge(self, amount_cents: int, card: CardDetails) -> PaymentReceipt:
        if amount_cents <= 0:
            raise PaymentDeclined("Amount must be positive")
        self.validate(card)
        receipt = PaymentReceipt(
            reference=f"pay_{uuid.uuid4().hex[:20]}",
            amount_cents=amount_cents,
            brand=card.brand,
            last4=card.last4,
        )
        logger.info("charged %d cents to %s ****%s ref=%s", amount_cents, receipt.brand, receipt.last4, receipt.reference)
        return receipt
