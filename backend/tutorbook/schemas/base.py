"""
Base schemas with standardized field types for consistent API responses.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic_core import core_schema

from ..domain.pricing import round_for_display


class Money(Decimal):
    """Money field; JSON output is a float rounded to cents, python dumps keep the exact Decimal."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            if isinstance(value, (int, float)):
                return Decimal(str(value))
            if isinstance(value, str):
                try:
                    return Decimal(value)
                except InvalidOperation as exc:
                    raise ValueError(f"Invalid amount: {value!r}") from exc
            if isinstance(value, Decimal):
                return value
            raise ValueError(f"Cannot convert {type(value)} to Money")

        return core_schema.no_info_after_validator_function(
            validate_money,
            core_schema.union_schema(
                [
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                    core_schema.is_instance_schema(Decimal),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda value: float(round_for_display(value)),
                info_arg=False,
                when_used="json",
                return_schema=core_schema.float_schema(),
            ),
        )
