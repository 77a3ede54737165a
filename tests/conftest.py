import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """Put `src/` on the import path so tests run against the working tree."""
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root / "src"))


@pytest.fixture
def lenient_pass():
    """A shape inference pass that returns the partial context instead of raising."""
    from symshape import InferenceConfig, ShapeInferencePass

    return ShapeInferencePass(InferenceConfig(fail_fast=False))
