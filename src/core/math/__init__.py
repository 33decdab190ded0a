"""
Core math modules

Точная Decimal-арифметика для денежных величин ledger и decision engine.
"""

from src.core.math.decimal_safeguards import (
    # Precision constants
    BASE_QUANTUM,
    DECIMAL_PRECISION,
    FRACTION_QUANTUM,
    ONE,
    PRICE_QUANTUM,
    QUOTE_QUANTUM,
    ZERO,
    # Contexts
    calc_context,
    ledger_context,
    # Exact arithmetic
    exact_add,
    exact_mul,
    exact_sub,
    # Conversion and quantization
    divide_down,
    is_on_grid,
    quantize,
    quantize_down,
    quantize_up,
    to_decimal,
    # Validation
    validate_in_range,
    validate_non_negative,
    validate_positive,
)

__all__ = [
    # Precision constants
    "BASE_QUANTUM",
    "DECIMAL_PRECISION",
    "FRACTION_QUANTUM",
    "ONE",
    "PRICE_QUANTUM",
    "QUOTE_QUANTUM",
    "ZERO",
    # Contexts
    "calc_context",
    "ledger_context",
    # Exact arithmetic
    "exact_add",
    "exact_mul",
    "exact_sub",
    # Conversion and quantization
    "divide_down",
    "is_on_grid",
    "quantize",
    "quantize_down",
    "quantize_up",
    "to_decimal",
    # Validation
    "validate_in_range",
    "validate_non_negative",
    "validate_positive",
]
