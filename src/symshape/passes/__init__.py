from .shape_inference import ShapeInferencePass, infer_one

__all__ = [
    "ShapeInferencePass",
    "infer_one",
]
