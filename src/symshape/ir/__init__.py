from .dtypes import DType, bool_, float16, float32, int32, int64
from .graph import Graph
from .op import IRValidationError, Op, OpKind
from .value import Value

__all__ = [
    "DType",
    "bool_",
    "float16",
    "float32",
    "int32",
    "int64",
    "Graph",
    "Value",
    "Op",
    "OpKind",
    "IRValidationError",
]
