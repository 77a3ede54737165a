"""Symbolic dimension algebra, per-value records and the analysis context."""

from symshape.symbolic.constraints import (
    BroadcastConstraint,
    ConstraintStore,
    DimExprBuilder,
    EqualConstraint,
)
from symshape.symbolic.context import AnalysisContext, format_context
from symshape.symbolic.dim_expr import (
    Add,
    Broadcast,
    Const,
    DimExpr,
    Div,
    Mul,
    Sub,
    Symbol,
    product,
)
from symshape.symbolic.shape_or_data import (
    ShapeOrData,
    TensorListShapeOrData,
    TensorShapeOrData,
    format_dims,
)

__all__ = [
    # dim_expr.py
    "DimExpr",
    "Const",
    "Symbol",
    "Add",
    "Sub",
    "Mul",
    "Div",
    "Broadcast",
    "product",
    # shape_or_data.py
    "ShapeOrData",
    "TensorShapeOrData",
    "TensorListShapeOrData",
    "format_dims",
    # constraints.py
    "ConstraintStore",
    "EqualConstraint",
    "BroadcastConstraint",
    "DimExprBuilder",
    # context.py
    "AnalysisContext",
    "format_context",
]
