from ._extract_traits import (
    ExtractCapability,
    bfloat16,
    bfloat16_to_float32,
    capability_for,
    extract_tensor_data,
    tensor_element_type,
)
from ._tensor_data import PrimitiveView, Strings, TensorData

__all__ = [
    ExtractCapability.__name__,
    PrimitiveView.__name__,
    Strings.__name__,
    "TensorData",
    "bfloat16",
    bfloat16_to_float32.__name__,
    capability_for.__name__,
    extract_tensor_data.__name__,
    tensor_element_type.__name__,
]
