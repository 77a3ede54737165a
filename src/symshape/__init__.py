"""symshape: symbolic shape-and-value inference over a tensor graph IR.

The Python side is intentionally small and explicit: a tiny graph IR, a
symbolic dimension algebra, and one pass that folds per-operator rules over
the graph in order.
"""

from .config import InferenceConfig
from .errors import (
    InvariantViolation,
    MissingAttribute,
    ShapeInferenceAborted,
    ShapeInferenceError,
    UnimplementedOperator,
    UnsupportedDynamicOperand,
    ValueNotYetInferred,
    WrongAttributeType,
)
from .ir import Graph, Op, OpKind, Value
from .passes import ShapeInferencePass, infer_one
from .symbolic import AnalysisContext, DimExpr, TensorListShapeOrData, TensorShapeOrData

__all__ = [
    "InferenceConfig",
    "Graph",
    "Op",
    "OpKind",
    "Value",
    "ShapeInferencePass",
    "infer_one",
    "AnalysisContext",
    "DimExpr",
    "TensorShapeOrData",
    "TensorListShapeOrData",
    "ShapeInferenceError",
    "ShapeInferenceAborted",
    "MissingAttribute",
    "WrongAttributeType",
    "ValueNotYetInferred",
    "UnsupportedDynamicOperand",
    "UnimplementedOperator",
    "InvariantViolation",
]
