"""
Decimal Safeguards — точная денежная арифметика

Модуль обеспечивает точность всех денежных операций ledger и decision engine:
- Decimal-контексты: строгий (ledger, Inexact → exception) и расчётный (engine)
- Квантование цен и количеств на фиксированную сетку с явным округлением
- Конверсия внешних значений (float/str/int) в Decimal без двоичных артефактов
- Валидация параметров (positive / non-negative / range)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Ledger никогда не округляет молча: любое неточное действие → decimal.Inexact
2. Float никогда не попадает в Decimal напрямую (только через str)
3. Квантование всегда с явным режимом округления
4. Все операции детерминированы и воспроизводимы
"""

from decimal import (
    ROUND_DOWN,
    ROUND_HALF_EVEN,
    ROUND_UP,
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
)
from typing import Any, Final

# =============================================================================
# ПАРАМЕТРЫ ТОЧНОСТИ
# =============================================================================

# Значащие цифры для всех денежных вычислений
# Цена (до 1e6, 8 знаков) × количество (до 1e6, 8 знаков) укладывается с запасом
DECIMAL_PRECISION: Final[int] = 48

# Шаг сетки цен (quote за 1 base)
PRICE_QUANTUM: Final[Decimal] = Decimal("1e-8")

# Шаг количества base
BASE_QUANTUM: Final[Decimal] = Decimal("1e-8")

# Шаг количества quote
QUOTE_QUANTUM: Final[Decimal] = Decimal("1e-8")

# Шаг случайных долей при randomized split
FRACTION_QUANTUM: Final[Decimal] = Decimal("1e-8")

ZERO: Final[Decimal] = Decimal(0)
ONE: Final[Decimal] = Decimal(1)


# =============================================================================
# DECIMAL-КОНТЕКСТЫ
# =============================================================================


def ledger_context() -> Context:
    """
    Строгий контекст для операций ledger.

    Inexact включён в traps: сложение/вычитание/умножение, которое потребовало бы
    округления, вызывает decimal.Inexact вместо тихой потери значения.
    Возвращается новый экземпляр на каждый вызов (Context — mutable объект).

    Returns:
        Context(prec=DECIMAL_PRECISION) с traps Inexact/InvalidOperation/DivisionByZero/Overflow
    """
    return Context(
        prec=DECIMAL_PRECISION,
        rounding=ROUND_HALF_EVEN,
        traps=[Inexact, InvalidOperation, DivisionByZero, Overflow],
    )


def calc_context() -> Context:
    """
    Расчётный контекст для decision engine.

    Деление и квантование допускают округление (Inexact не перехватывается),
    результат затем явно квантуется функциями этого модуля.
    """
    return Context(
        prec=DECIMAL_PRECISION,
        rounding=ROUND_HALF_EVEN,
        traps=[InvalidOperation, DivisionByZero, Overflow],
    )


def exact_mul(a: Decimal, b: Decimal) -> Decimal:
    """
    Точное произведение (raises decimal.Inexact если не помещается в точность).

    Examples:
        >>> exact_mul(Decimal("100.5"), Decimal("2"))
        Decimal('201.0')
    """
    return ledger_context().multiply(a, b)


def exact_add(a: Decimal, b: Decimal) -> Decimal:
    """Точная сумма (raises decimal.Inexact при потере точности)."""
    return ledger_context().add(a, b)


def exact_sub(a: Decimal, b: Decimal) -> Decimal:
    """Точная разность (raises decimal.Inexact при потере точности)."""
    return ledger_context().subtract(a, b)


# =============================================================================
# КОНВЕРСИЯ
# =============================================================================


def to_decimal(value: Any) -> Decimal:
    """
    Конверсия внешнего значения в Decimal.

    Float конвертируется через str(), чтобы 0.1 стал Decimal('0.1'),
    а не двоичным приближением.

    Args:
        value: Decimal, int, float или str

    Returns:
        Конечное Decimal значение

    Raises:
        ValueError: Если значение не число, NaN или Inf

    Examples:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal("2000")
        Decimal('2000')
    """
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a monetary value: {value!r}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a decimal number: {value!r}") from e
    else:
        raise ValueError(f"Unsupported numeric type {type(value).__name__}: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Value must be finite (not NaN/Inf), got {value!r}")

    return result


# =============================================================================
# КВАНТОВАНИЕ
# =============================================================================


def quantize(value: Decimal, quantum: Decimal, rounding: str = ROUND_HALF_EVEN) -> Decimal:
    """
    Квантование значения на сетку quantum с явным режимом округления.

    Args:
        value: Исходное значение
        quantum: Шаг сетки (например, PRICE_QUANTUM)
        rounding: Режим округления decimal (default: ROUND_HALF_EVEN)

    Returns:
        Значение, кратное quantum

    Raises:
        ValueError: Если quantum <= 0

    Examples:
        >>> quantize(Decimal("1.234567891"), Decimal("1e-8"), ROUND_DOWN)
        Decimal('1.23456789')
    """
    if quantum <= 0:
        raise ValueError(f"quantum must be positive, got {quantum}")

    return value.quantize(quantum, rounding=rounding, context=calc_context())


def quantize_down(value: Decimal, quantum: Decimal) -> Decimal:
    """Квантование с округлением к нулю (ROUND_DOWN)."""
    return quantize(value, quantum, ROUND_DOWN)


def quantize_up(value: Decimal, quantum: Decimal) -> Decimal:
    """Квантование с округлением от нуля (ROUND_UP)."""
    return quantize(value, quantum, ROUND_UP)


def divide_down(numerator: Decimal, denominator: Decimal, quantum: Decimal) -> Decimal:
    """
    Деление с округлением результата вниз на сетку quantum.

    Используется для перевода бюджета quote в количество base:
    результат никогда не превышает точное частное, поэтому make value
    полученного ордера не превышает выделенный бюджет.

    Raises:
        ValueError: Если denominator <= 0
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")

    return quantize_down(calc_context().divide(numerator, denominator), quantum)


def is_on_grid(value: Decimal, quantum: Decimal) -> bool:
    """Проверка, что значение кратно шагу сетки."""
    return quantize(value, quantum) == value


# =============================================================================
# ВАЛИДАЦИЯ И ПРОВЕРКИ
# =============================================================================


def validate_positive(value: Decimal, name: str) -> None:
    """
    Валидация, что значение строго положительное.

    Raises:
        ValueError: Если value <= 0 или не конечно
    """
    if not value.is_finite():
        raise ValueError(f"{name} must be finite, got {value}")

    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


def validate_non_negative(value: Decimal, name: str) -> None:
    """
    Валидация, что значение неотрицательное.

    Raises:
        ValueError: Если value < 0 или не конечно
    """
    if not value.is_finite():
        raise ValueError(f"{name} must be finite, got {value}")

    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def validate_in_range(
    value: Decimal,
    name: str,
    min_value: Decimal | None = None,
    max_value: Decimal | None = None,
) -> None:
    """
    Валидация, что значение в заданном диапазоне (границы включительно).

    Raises:
        ValueError: Если value вне диапазона или не конечно
    """
    if not value.is_finite():
        raise ValueError(f"{name} must be finite, got {value}")

    if min_value is not None and value < min_value:
        raise ValueError(f"{name} must be >= {min_value}, got {value}")

    if max_value is not None and value > max_value:
        raise ValueError(f"{name} must be <= {max_value}, got {value}")
