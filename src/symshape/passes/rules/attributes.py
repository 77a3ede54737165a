"""Typed access to op attributes.

Attributes arrive as plain Python values or numpy scalars/arrays, depending
on the frontend. These helpers normalize them to `int`/`bool`/`list[int]` and
raise `MissingAttribute` / `WrongAttributeType` on anything else.
"""

from __future__ import annotations

import numpy as np

from symshape.errors import MissingAttribute, WrongAttributeType
from symshape.ir.op import Op

_MISSING = object()


def get_attr(op: Op, name: str, default: object = _MISSING) -> object:
    if name in op.attrs:
        return op.attrs[name]
    if default is _MISSING:
        raise MissingAttribute(f"attribute {name!r} is required by {op.display_kind}", op_name=op.name)
    return default


def get_bool(op: Op, name: str, default: object = _MISSING) -> bool:
    value = get_attr(op, name, default)
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    raise WrongAttributeType(f"attribute {name!r} must be a bool, got {value!r}", op_name=op.name)


def get_int(op: Op, name: str, default: object = _MISSING) -> int:
    value = get_attr(op, name, default)
    arr = np.asarray(value)
    if isinstance(value, (bool, np.bool_)) or arr.dtype.kind not in "iu":
        raise WrongAttributeType(f"attribute {name!r} must be an integer, got {value!r}", op_name=op.name)
    if arr.ndim == 1 and arr.size == 1:
        arr = arr.reshape(())
    if arr.ndim != 0:
        raise WrongAttributeType(f"attribute {name!r} must be a scalar, got shape {arr.shape}", op_name=op.name)
    return int(arr)


def get_int_list(op: Op, name: str, default: object = _MISSING) -> list[int]:
    value = get_attr(op, name, default)
    if isinstance(value, (bool, np.bool_)):
        raise WrongAttributeType(f"attribute {name!r} must be an integer array, got {value!r}", op_name=op.name)
    arr = np.asarray(value)
    if arr.size == 0:
        return []
    if arr.dtype.kind not in "iu":
        raise WrongAttributeType(f"attribute {name!r} must be an integer array, got {value!r}", op_name=op.name)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise WrongAttributeType(f"attribute {name!r} must be 1-D, got shape {arr.shape}", op_name=op.name)
    return [int(v) for v in arr]


def get_scalar_as_int(op: Op, name: str) -> int:
    """Numeric scalar attribute, truncated to int64 like a shape value."""
    value = get_attr(op, name)
    arr = np.asarray(value)
    if arr.dtype.kind not in "biuf" or arr.size != 1:
        raise WrongAttributeType(f"attribute {name!r} must be a numeric scalar, got {value!r}", op_name=op.name)
    return int(arr.reshape(()).astype(np.int64))
