"""Decision Engine — refresh цикл: cancel вне span, simulated fills, replenishment."""

from .decision_engine import (
    MAX_EVICTIONS_DEFAULT,
    MAX_SLICE_FRACTION,
    MIN_AMOUNT,
    DecisionEngine,
    EngineConfig,
    EvictionLimitExceeded,
    random_fraction,
    random_price,
    span_bounds,
)

__all__ = [
    "DecisionEngine",
    "EngineConfig",
    "EvictionLimitExceeded",
    "MIN_AMOUNT",
    "MAX_SLICE_FRACTION",
    "MAX_EVICTIONS_DEFAULT",
    "random_fraction",
    "random_price",
    "span_bounds",
]
