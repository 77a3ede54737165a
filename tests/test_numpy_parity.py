"""Concrete shapes must agree with what numpy computes on real arrays."""

import numpy as np
import pytest

from symshape import InferenceConfig, ShapeInferencePass
from symshape.ir import Graph

END = InferenceConfig().max_int_sentinel


def _infer(g: Graph, value) -> tuple[int, ...]:
    ctx = ShapeInferencePass().run(g)
    return tuple(d.as_int() for d in ctx.get_shape_or_data(value).shape)


@pytest.mark.parametrize(
    "x_shape, y_shape",
    [
        ((2, 3), (3,)),
        ((4, 1), (1, 5)),
        ((1,), (7, 1, 3)),
        ((8, 1, 6, 1), (7, 1, 5)),
    ],
)
def test_broadcasting_matches_numpy(x_shape, y_shape):
    g = Graph()
    out = g.add(g.data("x", x_shape), g.data("y", y_shape))
    assert _infer(g, out) == np.broadcast_shapes(x_shape, y_shape)


@pytest.mark.parametrize(
    "shape, target",
    [((2, 3, 4), (-1, 4)), ((2, 3, 4), (4, -1)), ((6,), (2, 1, 3)), ((2, 3, 4), (-1,))],
)
def test_reshape_matches_numpy(shape, target):
    g = Graph()
    out, _ = g.reshape(g.data("x", shape), list(target))
    assert _infer(g, out) == np.zeros(shape).reshape(target).shape


@pytest.mark.parametrize("axis", [0, 1, -1])
def test_concat_matches_numpy(axis):
    shapes = [(2, 3), (2, 3), (2, 3)]
    g = Graph()
    out = g.concat([g.data(f"x{i}", s) for i, s in enumerate(shapes)], axis=axis)
    expected = np.concatenate([np.zeros(s) for s in shapes], axis=axis).shape
    assert _infer(g, out) == expected


@pytest.mark.parametrize("axis", [0, 1, 2, -1])
def test_stack_matches_numpy(axis):
    g = Graph()
    out = g.stack([g.data("a", (2, 3)), g.data("b", (2, 3))], axis=axis)
    assert _infer(g, out) == np.stack([np.zeros((2, 3))] * 2, axis=axis).shape


@pytest.mark.parametrize(
    "x_shape, y_shape",
    [
        ((3, 4), (4, 5)),
        ((2, 3, 4), (4, 5)),
        ((3, 4), (2, 4, 5)),
        ((1, 3, 4), (5, 4, 6)),
        ((3, 4), (4,)),
        ((4,), (4, 5)),
    ],
)
def test_matmul_matches_numpy(x_shape, y_shape):
    g = Graph()
    out = g.matmul(g.data("x", x_shape), g.data("y", y_shape))
    assert _infer(g, out) == np.matmul(np.zeros(x_shape), np.zeros(y_shape)).shape


@pytest.mark.parametrize("start, end", [(0, 4), (2, END), (-3, END), (-5, -1), (1, -2), (-6, 7)])
def test_slice_matches_numpy(start, end):
    g = Graph()
    out = g.slice(g.data("x", (10, 2)), [0], [start], [end])
    stop = None if end == END else end
    assert _infer(g, out) == np.zeros((10, 2))[start:stop].shape


@pytest.mark.parametrize("axis, keepdim", [((1,), False), ((0, 2), True), ((-1,), False)])
def test_reduce_matches_numpy(axis, keepdim):
    g = Graph()
    out = g.sum(g.data("x", (2, 3, 4)), list(axis), keepdim=keepdim)
    assert _infer(g, out) == np.zeros((2, 3, 4)).sum(axis=axis, keepdims=keepdim).shape


@pytest.mark.parametrize("shape, reps", [((2, 3), (2,)), ((3,), (2, 2)), ((2, 1, 4), (1, 3, 1))])
def test_tile_matches_numpy(shape, reps):
    g = Graph()
    out = g.tile(g.data("x", shape), list(reps))
    assert _infer(g, out) == np.tile(np.zeros(shape), reps).shape


def test_squeeze_and_unsqueeze_match_numpy():
    g = Graph()
    x = g.data("x", (1, 3, 1, 4))
    squeezed = g.squeeze(x)
    unsqueezed = g.unsqueeze(g.data("y", (4, 5)), [0, 2])
    ctx = ShapeInferencePass().run(g)

    assert tuple(d.as_int() for d in ctx.get_shape_or_data(squeezed).shape) == np.squeeze(np.zeros((1, 3, 1, 4))).shape
    expected = np.expand_dims(np.zeros((4, 5)), axis=(0, 2)).shape
    assert tuple(d.as_int() for d in ctx.get_shape_or_data(unsqueezed).shape) == expected
