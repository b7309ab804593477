"""
Zero-copy extraction of fixed-width tensors.

Only for element types whose in-memory form in ONNX Runtime is bit-identical
to NumPy's (IEEE-754 floats, two's-complement integers, one-byte booleans,
raw 16-bit brain floats). The engine's data pointer is reinterpreted as a
C-contiguous NumPy array; no conversion and no copy takes place.
"""

from __future__ import annotations

import ctypes
from typing import TYPE_CHECKING, Sequence, Tuple

import numpy as np

from ...domain._errors import DataAccessError
from ..native.python._status import ort_call
from ..native.python.ort_api_ctypes import OrtErrorCode
from ._tensor_data import PrimitiveView, _EngineBuffer

if TYPE_CHECKING:
    from ..value._value import Value


def _normalize_shape(shape: Sequence[int]) -> Tuple[int, ...]:
    dims = tuple(int(d) for d in shape)
    if any(d < 0 for d in dims):
        raise ValueError(f"tensor shape must be non-negative, got {dims}")
    return dims


def extract_primitive_array(
    shape: Sequence[int], value: "Value", dtype: np.dtype
) -> np.ndarray:
    """
    Build a NumPy array directly over a tensor's storage.

    Parameters
    ----------
    shape : Sequence[int]
        Tensor dimensions. Their product must equal the tensor's element
        count; the caller guarantees this (a mismatch reads past the buffer).
    value : Value
        Live handle of a tensor whose element type matches `dtype`.
    dtype : np.dtype
        Element dtype to reinterpret the storage as.

    Returns
    -------
    np.ndarray
        Array over engine memory whose ``base`` references `value`. It is
        read-only when `value` is a read-only (input) handle.

    Raises
    ------
    DataAccessError
        If ``GetTensorMutableData`` fails or returns a null pointer.
        ONNX Runtime allocates no buffer for a zero-element tensor and
        reports a null pointer for it, so zero-element tensors (including
        outputs requested with a ``0`` dimension) always raise here.
    ValueError
        If `shape` contains a negative dimension.
    """
    dims = _normalize_shape(shape)
    dtype = np.dtype(dtype)

    out = ctypes.c_void_p()
    ort_call(
        value.api,
        "GetTensorMutableData",
        value.ptr,
        ctypes.byref(out),
        error_cls=DataAccessError,
    )
    if not out.value:
        raise DataAccessError(
            "GetTensorMutableData",
            OrtErrorCode.ORT_FAIL,
            "engine returned a null tensor data pointer",
        )

    holder = _EngineBuffer(out.value, dims, dtype, value, readonly=value.readonly)
    return np.asarray(holder)


def extract_primitive_view(
    shape: Sequence[int], element_count: int, value: "Value", dtype: np.dtype
) -> PrimitiveView:
    """
    Extraction strategy for direct-layout types: a borrowed `PrimitiveView`.

    `element_count` is accepted for signature parity with the string
    strategy; the view is sized from `shape`.
    """
    return PrimitiveView(value, extract_primitive_array(shape, value, dtype))
