"""
Decimal response types shared by the booking and promotion schemas.

Prices and percentages are stored as ``Numeric`` columns and kept as
``Decimal`` internally; on the wire they are plain JSON numbers.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic_core import core_schema

CENTS = Decimal("0.01")


def _to_decimal(value: Any, type_name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"{value!r} is not a valid {type_name}")
    raise ValueError(f"Cannot convert {type(value)} to {type_name}")


def _decimal_schema(validator: Any) -> core_schema.CoreSchema:
    return core_schema.no_info_after_validator_function(
        validator,
        core_schema.union_schema(
            [
                core_schema.is_instance_schema(Decimal),
                core_schema.int_schema(),
                core_schema.float_schema(),
                core_schema.str_schema(),
            ]
        ),
        serialization=core_schema.plain_serializer_function_ser_schema(
            float,
            info_arg=False,
            return_schema=core_schema.float_schema(),
        ),
    )


class Money(Decimal):
    """Currency amount rounded to cents; serializes as float."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            amount = _to_decimal(value, "Money")
            if amount < 0:
                raise ValueError("Money amounts cannot be negative")
            return amount.quantize(CENTS, rounding=ROUND_HALF_UP)

        return _decimal_schema(validate_money)


class Percent(Decimal):
    """Discount percentage in the range 0-100; serializes as float."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_percent(value: Any) -> Decimal:
            percent = _to_decimal(value, "Percent")
            if not Decimal("0") <= percent <= Decimal("100"):
                raise ValueError("Percent must be between 0 and 100")
            return percent

        return _decimal_schema(validate_percent)
