from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .dtypes import DType

if TYPE_CHECKING:
	from .graph import Graph
	from .op import Op


@dataclass(slots=True, eq=False)
class Value:
	"""An SSA value in the graph.

	A Value has a single producer op and a list of consuming ops. Only its
	static rank is known up front (`None` for a tensor list built by
	`combine`); the symbolic extents live in the
	`AnalysisContext` once the producer has been visited. Values hash by
	identity so they can key the context's record map.
	"""

	graph: Graph
	name: str
	rank: int | None
	dtype: DType
	producer: Op | None = None
	users: list[Op] = field(default_factory=list)

	def add_user(self, op: Op) -> None:
		self.users.append(op)

	def __repr__(self) -> str:  # pragma: no cover
		return f"Value(name={self.name!r}, rank={self.rank}, dtype={self.dtype})"
