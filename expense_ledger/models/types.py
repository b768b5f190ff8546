"""
Column types shared by the models.
"""

from decimal import Decimal

from sqlalchemy import BigInteger, Numeric
from sqlalchemy.types import TypeDecorator

MONEY_PLACES = 4
MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)

# Exclusive bound on any stored amount or balance. Scaled to
# ten-thousandths it still fits a signed 64-bit integer.
MAX_MONEY = Decimal(10) ** 14


class Money(TypeDecorator):
    """
    Exact decimal with 4 places.

    SQLite has no decimal storage and would keep Numeric as a
    float, so there the value is stored as an integer count of
    ten-thousandths. Ordering, range filters and SUM stay exact
    because they operate on the integer. Other databases get a
    plain NUMERIC(19, 4).
    """

    impl = Numeric(19, MONEY_PLACES)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(BigInteger())
        return dialect.type_descriptor(Numeric(19, MONEY_PLACES))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        value = value.quantize(MONEY_QUANTUM)
        if dialect.name == "sqlite":
            return int(value.scaleb(MONEY_PLACES))
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return Decimal(int(value)).scaleb(-MONEY_PLACES)
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return value.quantize(MONEY_QUANTUM)
