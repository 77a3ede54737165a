from __future__ import annotations

import logging
import sys
from pathlib import Path

repo_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(repo_root / "src"))

from symshape import InferenceConfig, ShapeInferenceAborted, ShapeInferencePass
from symshape.ir import Graph, OpKind, int64
from symshape.symbolic import format_context

def build_attention_scores(hidden: int = 64, heads: int = 4) -> Graph:
    g = Graph(name="attention_scores")
    x = g.data("x", (-1, -1, hidden))  # [batch, seq, hidden]
    wq = g.data("wq", (hidden, hidden))
    wk = g.data("wk", (hidden, hidden))

    q = g.matmul(x, wq, name="q_proj")
    k = g.matmul(x, wk, name="k_proj")

    # Fold batch and seq together and split hidden into heads.
    g.reshape(q, [-1, heads, hidden // heads], name="q_heads")
    g.slice(g.shape(q), [0], [0], [2], name="batch_seq")

    scores = g.matmul(q, k, transpose_y=True, name="scores")
    probs = g.scale(g.relu(scores), 1.0 / hidden**0.5, name="probs")
    g.sum(probs, [-1], keepdim=True, name="row_sum")
    g.unsqueeze(probs, [1], name="probs_4d")
    return g

def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("Building graph...")
    g = build_attention_scores()
    print(g.summary())

    print("\nRunning symbolic shape inference...")
    ctx = ShapeInferencePass().run(g)
    print(format_context(ctx, g.values))

    print("\nAppending an op without a shape rule...")
    g.append(OpKind.TRANSPOSE, [g.values[-1]], {"perm": [0, 2, 1, 3]}, name="transpose")
    try:
        ShapeInferencePass().run(g)
    except ShapeInferenceAborted as e:
        print(f"aborted: {e}")
        print(f"{len(e.context)} values were inferred before the failure")

    ctx = ShapeInferencePass(InferenceConfig(fail_fast=False)).run(g)
    print(f"partial run kept {len(ctx)} records, last error: {ctx.last_error}")

    stacked = Graph(name="shape_vector")
    vec = stacked.stack([stacked.full([], d, int64) for d in (2, 3, 4)])
    ctx = ShapeInferencePass().run(stacked)
    print(f"\nstack of scalars: {ctx.get_shape_or_data(vec)}")

if __name__ == "__main__":
    main()
