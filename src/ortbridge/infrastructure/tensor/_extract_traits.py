"""
Host type capabilities for tensor extraction.

Each supported host type is wired, once, to:

1. its `TensorElementType` tag, and
2. one extraction strategy: a zero-copy `PrimitiveView` for direct-layout
   types or owned `Strings` for text.

Host types are NumPy dtypes (anything ``np.dtype(...)`` accepts, so
``np.float32``, ``"int64"`` and Python ``float`` all work) plus ``str`` for
text. Brain floats have no native NumPy dtype and are exposed through the
`bfloat16` raw-bits structured dtype.

The table is static; there is no lookup by type name and no fallback
strategy. Extracting a tensor as a type whose tag differs from the tensor's
actual element type must be prevented by the caller (`Value.extract_tensor`
checks it).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence

import numpy as np

from ...domain._element_type import TensorElementType
from ._primitive_extract import extract_primitive_view
from ._string_extract import extract_strings
from ._tensor_data import TensorData

if TYPE_CHECKING:
    from ..value._value import Value

bfloat16 = np.dtype([("bits", "<u2")])


def bfloat16_to_float32(values: np.ndarray) -> np.ndarray:
    """
    Widen raw `bfloat16` elements to an owned ``float32`` array.
    """
    bits = np.asarray(values)["bits"].astype(np.uint32) << np.uint32(16)
    return bits.view(np.float32)


@dataclass(frozen=True)
class ExtractCapability:
    """
    Extraction capability of one host type.

    Attributes
    ----------
    element_type : TensorElementType
        Tag of tensors this host type can be extracted from.
    extract : Callable
        ``(shape, element_count, value) -> TensorData``.
    dtype : Optional[np.dtype]
        NumPy dtype of the zero-copy view, or None for owned strategies.
    """

    element_type: TensorElementType
    extract: Callable[[Sequence[int], int, "Value"], TensorData]
    dtype: Optional[np.dtype] = None

    @property
    def zero_copy(self) -> bool:
        return self.dtype is not None


def _direct(tag: TensorElementType, dtype: Any) -> ExtractCapability:
    dt = np.dtype(dtype)
    return ExtractCapability(tag, partial(_extract_direct, dtype=dt), dt)


def _extract_direct(
    shape: Sequence[int], element_count: int, value: "Value", *, dtype: np.dtype
) -> TensorData:
    return extract_primitive_view(shape, element_count, value, dtype)


_DIRECT_CAPABILITIES: Dict[np.dtype, ExtractCapability] = {
    cap.dtype: cap
    for cap in (
        _direct(TensorElementType.FLOAT32, np.float32),
        _direct(TensorElementType.FLOAT64, np.float64),
        _direct(TensorElementType.FLOAT16, np.float16),
        _direct(TensorElementType.BFLOAT16, bfloat16),
        _direct(TensorElementType.UINT8, np.uint8),
        _direct(TensorElementType.UINT16, np.uint16),
        _direct(TensorElementType.UINT32, np.uint32),
        _direct(TensorElementType.UINT64, np.uint64),
        _direct(TensorElementType.INT8, np.int8),
        _direct(TensorElementType.INT16, np.int16),
        _direct(TensorElementType.INT32, np.int32),
        _direct(TensorElementType.INT64, np.int64),
        _direct(TensorElementType.BOOL, np.bool_),
    )
}

_STRING_CAPABILITY = ExtractCapability(TensorElementType.STRING, extract_strings)


def capability_for(host_type: Any) -> ExtractCapability:
    """
    Return the extraction capability wired to `host_type`.

    Raises
    ------
    TypeError
        If `host_type` is not a supported host element type.
    """
    if host_type is str:
        return _STRING_CAPABILITY
    if host_type is None:
        raise TypeError("tensor host type must not be None")
    try:
        dtype = np.dtype(host_type)
    except TypeError:
        raise TypeError(f"unsupported tensor host type: {host_type!r}") from None
    cap = _DIRECT_CAPABILITIES.get(dtype)
    if cap is None:
        raise TypeError(f"unsupported tensor host type: {host_type!r} ({dtype})")
    return cap


def tensor_element_type(host_type: Any) -> TensorElementType:
    """
    Return the element type tag of `host_type`.
    """
    return capability_for(host_type).element_type


def extract_tensor_data(
    host_type: Any, shape: Sequence[int], element_count: int, value: "Value"
) -> TensorData:
    """
    Extract `value` as `host_type` using the strategy wired to that type.

    The tensor's element type is assumed to match; see `Value.extract_tensor`
    for the checked entry point.
    """
    return capability_for(host_type).extract(shape, element_count, value)
