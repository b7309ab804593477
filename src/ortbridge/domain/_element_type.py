"""
Tensor element type registry.

This module defines the closed set of tensor element encodings supported by
ortbridge and their bidirectional mapping onto ONNX Runtime's native
``ONNXTensorElementDataType`` codes:

- `NativeElementType`: every code the engine header defines, including the
  ones ortbridge cannot represent (complex, float8, undefined)
- `TensorElementType`: the supported subset, one tag per host encoding
- `to_native` / `from_native`: total and partial conversions between the two

`from_native` treats an unsupported code as an engine contract violation.
The engine only ever reports codes from its own closed set, so an unknown
code means the two sides disagree about the API, not that the input was bad.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Dict, Union

from ._errors import UnsupportedNativeCodeError


class NativeElementType(IntEnum):
    """
    ONNX Runtime ``ONNXTensorElementDataType`` codes.
    """

    UNDEFINED = 0
    FLOAT = 1
    UINT8 = 2
    INT8 = 3
    UINT16 = 4
    INT16 = 5
    INT32 = 6
    INT64 = 7
    STRING = 8
    BOOL = 9
    FLOAT16 = 10
    DOUBLE = 11
    UINT32 = 12
    UINT64 = 13
    COMPLEX64 = 14
    COMPLEX128 = 15
    BFLOAT16 = 16
    FLOAT8E4M3FN = 17
    FLOAT8E4M3FNUZ = 18
    FLOAT8E5M2 = 19
    FLOAT8E5M2FNUZ = 20


class TensorElementType(Enum):
    """
    Supported tensor element encodings.

    Attributes
    ----------
    FLOAT32 : TensorElementType
        32-bit IEEE-754 float (``np.float32``).
    UINT8, UINT16, UINT32, UINT64 : TensorElementType
        Unsigned integers of the given width.
    INT8, INT16, INT32, INT64 : TensorElementType
        Two's-complement signed integers of the given width.
    STRING : TensorElementType
        Variable-length UTF-8 text (``str``).
    BOOL : TensorElementType
        One byte per element, literal ``0``/``1`` (``np.bool_``).
    FLOAT16 : TensorElementType
        16-bit IEEE-754 half float (``np.float16``).
    FLOAT64 : TensorElementType
        64-bit IEEE-754 double (``np.float64``).
    BFLOAT16 : TensorElementType
        Brain float, exposed as raw 16-bit patterns.
    """

    FLOAT32 = "float32"
    UINT8 = "uint8"
    INT8 = "int8"
    UINT16 = "uint16"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    STRING = "string"
    BOOL = "bool"
    FLOAT16 = "float16"
    FLOAT64 = "float64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    BFLOAT16 = "bfloat16"

    def to_native(self) -> NativeElementType:
        return to_native(self)

    @classmethod
    def from_native(cls, code: Union[int, NativeElementType]) -> "TensorElementType":
        return from_native(code)

    def __str__(self) -> str:
        return self.value


_TO_NATIVE: Dict[TensorElementType, NativeElementType] = {
    TensorElementType.FLOAT32: NativeElementType.FLOAT,
    TensorElementType.UINT8: NativeElementType.UINT8,
    TensorElementType.INT8: NativeElementType.INT8,
    TensorElementType.UINT16: NativeElementType.UINT16,
    TensorElementType.INT16: NativeElementType.INT16,
    TensorElementType.INT32: NativeElementType.INT32,
    TensorElementType.INT64: NativeElementType.INT64,
    TensorElementType.STRING: NativeElementType.STRING,
    TensorElementType.BOOL: NativeElementType.BOOL,
    TensorElementType.FLOAT16: NativeElementType.FLOAT16,
    TensorElementType.FLOAT64: NativeElementType.DOUBLE,
    TensorElementType.UINT32: NativeElementType.UINT32,
    TensorElementType.UINT64: NativeElementType.UINT64,
    TensorElementType.BFLOAT16: NativeElementType.BFLOAT16,
}

_FROM_NATIVE: Dict[int, TensorElementType] = {
    int(code): tag for tag, code in _TO_NATIVE.items()
}


def to_native(tag: TensorElementType) -> NativeElementType:
    """
    Return the engine code for a supported element type.

    Parameters
    ----------
    tag : TensorElementType
        Supported element type tag.

    Returns
    -------
    NativeElementType
        The corresponding ``ONNXTensorElementDataType`` code.
    """
    return _TO_NATIVE[tag]


def from_native(code: Union[int, NativeElementType]) -> TensorElementType:
    """
    Return the element type tag for an engine code.

    Parameters
    ----------
    code : int or NativeElementType
        ``ONNXTensorElementDataType`` value reported by the engine.

    Returns
    -------
    TensorElementType
        The matching supported tag.

    Raises
    ------
    UnsupportedNativeCodeError
        If `code` is undefined, reserved, or not representable by ortbridge
        (complex and float8 encodings).
    """
    try:
        return _FROM_NATIVE[int(code)]
    except KeyError:
        raise UnsupportedNativeCodeError(int(code)) from None
