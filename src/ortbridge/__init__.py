"""
ortbridge: typed, zero-copy access to ONNX Runtime tensors from Python.

The public surface re-exported here covers element types, tensor extraction,
value handles and the custom operator kernel bridge. The ONNX Runtime library
itself is loaded lazily by `load_ort_api`.
"""

from .domain._element_type import (
    NativeElementType,
    TensorElementType,
    from_native,
    to_native,
)
from .domain._errors import (
    ContractViolation,
    DataAccessError,
    ForeignCallError,
    HandleExpiredError,
    HandleUsageError,
    NullOutputViolation,
    OrtBridgeError,
    TensorTypeMismatchError,
    TextDecodeError,
    ThreadAffinityError,
    UnsupportedNativeCodeError,
)
from .domain._kernel import Kernel
from .infrastructure.native.python._native_loader import load_onnxruntime
from .infrastructure.native.python.ort_api_ctypes import (
    OrtApi,
    OrtErrorCode,
    get_ort_api,
    load_ort_api,
)
from .infrastructure.operator._kernel_context import (
    KernelAttributes,
    KernelContext,
    KernelState,
)
from .infrastructure.operator._kernel_entry import create_kernel, run_kernel_compute
from .infrastructure.tensor import (
    ExtractCapability,
    PrimitiveView,
    Strings,
    TensorData,
    bfloat16,
    bfloat16_to_float32,
    capability_for,
    extract_tensor_data,
    tensor_element_type,
)
from .infrastructure.value._value import TensorTypeAndShape, Value, ValueView

__version__ = "0.1.0"

__all__ = [
    "ContractViolation",
    "DataAccessError",
    "ExtractCapability",
    "ForeignCallError",
    "HandleExpiredError",
    "HandleUsageError",
    "Kernel",
    "KernelAttributes",
    "KernelContext",
    "KernelState",
    "NativeElementType",
    "NullOutputViolation",
    "OrtApi",
    "OrtBridgeError",
    "OrtErrorCode",
    "PrimitiveView",
    "Strings",
    "TensorData",
    "TensorElementType",
    "TensorTypeAndShape",
    "TensorTypeMismatchError",
    "TextDecodeError",
    "ThreadAffinityError",
    "UnsupportedNativeCodeError",
    "Value",
    "ValueView",
    "bfloat16",
    "bfloat16_to_float32",
    "capability_for",
    "create_kernel",
    "extract_tensor_data",
    "from_native",
    "get_ort_api",
    "load_onnxruntime",
    "load_ort_api",
    "run_kernel_compute",
    "tensor_element_type",
    "to_native",
]
