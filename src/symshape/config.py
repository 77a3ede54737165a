from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class InferenceConfig:
    """Knobs for one shape inference run.

    Attributes:
        symbol_prefix: Prefix of fresh symbol names (`S0`, `S1`, ...).
        dynamic_dim: Marker for an unknown extent in `data` shape attributes.
        max_int_sentinel: Slice end meaning "to the end of the axis".
        fail_fast: Raise `ShapeInferenceAborted` on the first failing op
            instead of returning the partial context.
    """

    symbol_prefix: str = "S"
    dynamic_dim: int = -1
    max_int_sentinel: int = 2**31 - 1
    fail_fast: bool = True
