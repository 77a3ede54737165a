"""Per-operator symbolic shape rules.

Importing this package imports every rule module, which fills the
OpKind -> rule table in `registry`.
"""

from symshape.passes.rules import creation, elementwise, manipulation, matmul, reduction  # noqa: F401
from symshape.passes.rules.registry import UNIMPLEMENTED, lookup, register, registered_kinds

__all__ = ["UNIMPLEMENTED", "lookup", "register", "registered_kinds"]
