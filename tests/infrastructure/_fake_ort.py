"""
In-process stand-in for the ONNX Runtime C API.

`FakeOrtEngine` fills a real `OrtApi` structure with `CFUNCTYPE` callbacks
implemented in Python over NumPy buffers. Every call made by ortbridge goes
through genuine ctypes marshaling (out-parameters, raw addresses, status
pointers), so tests exercise the same code paths as a native library would.

Handles (``OrtValue*``, ``OrtKernelContext*``, ...) are the addresses of small
ctypes allocations owned by the engine; statuses are handles too.
"""

from __future__ import annotations

import ctypes
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

import numpy as np

from ortbridge.domain._element_type import NativeElementType
from ortbridge.infrastructure.native.python.ort_api_ctypes import (
    ORT_API_PROTOTYPES,
    OrtApi,
    OrtErrorCode,
)

_NATIVE_FOR_DTYPE = {
    np.dtype(np.float32): NativeElementType.FLOAT,
    np.dtype(np.float64): NativeElementType.DOUBLE,
    np.dtype(np.float16): NativeElementType.FLOAT16,
    np.dtype(np.uint8): NativeElementType.UINT8,
    np.dtype(np.uint16): NativeElementType.UINT16,
    np.dtype(np.uint32): NativeElementType.UINT32,
    np.dtype(np.uint64): NativeElementType.UINT64,
    np.dtype(np.int8): NativeElementType.INT8,
    np.dtype(np.int16): NativeElementType.INT16,
    np.dtype(np.int32): NativeElementType.INT32,
    np.dtype(np.int64): NativeElementType.INT64,
    np.dtype(np.bool_): NativeElementType.BOOL,
}


@dataclass
class FakeStatus:
    code: int
    message: Any  # ctypes string buffer


@dataclass
class FakeTensor:
    element_type: int
    shape: tuple
    data: Optional[np.ndarray] = None
    strings: Optional[List[bytes]] = None
    fail_calls: Set[str] = field(default_factory=set)
    null_data: bool = False
    scribble_last_offset: bool = False
    offsets_override: Optional[List[int]] = None

    @property
    def element_count(self) -> int:
        return int(np.prod(self.shape, dtype=np.int64)) if self.shape else 1


@dataclass
class FakeTypeAndShape:
    element_type: int
    shape: tuple
    element_count: int


@dataclass
class FakeKernelContext:
    inputs: List[Optional[int]]
    output_dtypes: Dict[int, np.dtype]
    fail_outputs: Set[int] = field(default_factory=set)
    null_outputs: Set[int] = field(default_factory=set)
    outputs: Dict[int, int] = field(default_factory=dict)


@dataclass
class FakeKernelInfo:
    attributes: Dict[str, Any]


class FakeOrtEngine:
    """
    Minimal engine implementing the ``OrtApi`` slots ortbridge calls.
    """

    def __init__(self) -> None:
        self.api = OrtApi()
        self.calls: List[str] = []
        self.released_statuses: List[int] = []
        self.created_statuses: List[FakeStatus] = []
        self.released_type_infos = 0
        self._objects: Dict[int, Any] = {}
        self._cells: List[Any] = []
        self._callbacks: List[Any] = []

        for name in ORT_API_PROTOTYPES:
            self._install(name, getattr(self, f"_{name}"))

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------

    def _install(self, name: str, fn) -> None:
        def recorded(*args):
            self.calls.append(name)
            return fn(*args)

        cb = ORT_API_PROTOTYPES[name](recorded)
        self._callbacks.append(cb)
        setattr(self.api, name, cb)

    def _new_handle(self, obj: Any) -> int:
        cell = ctypes.c_uint64(0)
        self._cells.append(cell)
        addr = ctypes.addressof(cell)
        self._objects[addr] = obj
        return addr

    def get(self, handle: int) -> Any:
        return self._objects[int(handle)]

    def _fail(self, code: OrtErrorCode, message: str) -> int:
        status = FakeStatus(int(code), ctypes.create_string_buffer(message.encode()))
        return self._new_handle(status)

    # ------------------------------------------------------------------
    # object factories
    # ------------------------------------------------------------------

    def tensor(self, data: np.ndarray, **kwargs: Any) -> int:
        arr = np.require(data, requirements="C")
        tensor = FakeTensor(
            element_type=int(_NATIVE_FOR_DTYPE[arr.dtype]),
            shape=tuple(arr.shape),
            data=arr,
            **kwargs,
        )
        return self._new_handle(tensor)

    def raw_tensor(self, element_type: int, shape: Sequence[int], data: np.ndarray) -> int:
        tensor = FakeTensor(
            element_type=int(element_type), shape=tuple(shape), data=data
        )
        return self._new_handle(tensor)

    def string_tensor(self, elements: Sequence[Any], shape: Sequence[int], **kwargs: Any) -> int:
        raw = [e if isinstance(e, bytes) else e.encode("utf-8") for e in elements]
        tensor = FakeTensor(
            element_type=int(NativeElementType.STRING),
            shape=tuple(shape),
            strings=raw,
            **kwargs,
        )
        return self._new_handle(tensor)

    def kernel_context(
        self,
        inputs: Sequence[Optional[int]],
        output_dtypes: Optional[Dict[int, Any]] = None,
        **kwargs: Any,
    ) -> int:
        dtypes = {int(k): np.dtype(v) for k, v in (output_dtypes or {}).items()}
        return self._new_handle(FakeKernelContext(list(inputs), dtypes, **kwargs))

    def kernel_info(self, **attributes: Any) -> int:
        return self._new_handle(FakeKernelInfo(dict(attributes)))

    # ------------------------------------------------------------------
    # status
    # ------------------------------------------------------------------

    def _CreateStatus(self, code, msg):
        status = FakeStatus(int(code), ctypes.create_string_buffer(msg or b""))
        self.created_statuses.append(status)
        return self._new_handle(status)

    def _GetErrorCode(self, status):
        return self.get(status).code

    def _GetErrorMessage(self, status):
        return ctypes.addressof(self.get(status).message)

    def _ReleaseStatus(self, status):
        self.released_statuses.append(int(status))

    # ------------------------------------------------------------------
    # tensor data
    # ------------------------------------------------------------------

    def _GetTensorMutableData(self, value, out):
        t: FakeTensor = self.get(value)
        if "GetTensorMutableData" in t.fail_calls or t.data is None:
            return self._fail(OrtErrorCode.ORT_INVALID_ARGUMENT, "not a numeric tensor")
        # ONNX Runtime hands out no buffer for zero-element tensors
        empty = t.null_data or t.data.size == 0
        out[0] = None if empty else t.data.ctypes.data
        return None

    def _GetStringTensorDataLength(self, value, out):
        t: FakeTensor = self.get(value)
        if "GetStringTensorDataLength" in t.fail_calls or t.strings is None:
            return self._fail(OrtErrorCode.ORT_INVALID_ARGUMENT, "not a string tensor")
        out[0] = sum(len(s) for s in t.strings)
        return None

    def _GetStringTensorContent(self, value, s, s_len, offsets, offsets_len):
        t: FakeTensor = self.get(value)
        if "GetStringTensorContent" in t.fail_calls:
            return self._fail(OrtErrorCode.ORT_FAIL, "content unavailable")
        content = b"".join(t.strings)
        if s_len < len(content) or offsets_len != len(t.strings):
            return self._fail(OrtErrorCode.ORT_INVALID_ARGUMENT, "buffer too small")
        if content:
            ctypes.memmove(s, content, len(content))
        if t.offsets_override is not None:
            starts = t.offsets_override
        else:
            starts, pos = [], 0
            for e in t.strings:
                starts.append(pos)
                pos += len(e)
        for i, start in enumerate(starts):
            offsets[i] = start
        if t.scribble_last_offset:
            offsets[offsets_len] = 7
        return None

    def _GetTensorTypeAndShape(self, value, out):
        t: FakeTensor = self.get(value)
        if "GetTensorTypeAndShape" in t.fail_calls:
            return self._fail(OrtErrorCode.ORT_FAIL, "type info unavailable")
        out[0] = self._new_handle(
            FakeTypeAndShape(t.element_type, t.shape, t.element_count)
        )
        return None

    def _GetTensorElementType(self, info, out):
        out[0] = self.get(info).element_type
        return None

    def _GetDimensionsCount(self, info, out):
        out[0] = len(self.get(info).shape)
        return None

    def _GetDimensions(self, info, dims, n):
        shape = self.get(info).shape
        for i in range(min(int(n), len(shape))):
            dims[i] = shape[i]
        return None

    def _GetTensorShapeElementCount(self, info, out):
        out[0] = self.get(info).element_count
        return None

    def _ReleaseTensorTypeAndShapeInfo(self, info):
        self.released_type_infos += 1

    # ------------------------------------------------------------------
    # kernel info / context
    # ------------------------------------------------------------------

    def _attribute(self, info, name, kind):
        attrs = self.get(info).attributes
        key = name.decode("utf-8")
        if key not in attrs:
            return None, self._fail(OrtErrorCode.ORT_FAIL, f"no attribute {key}")
        val = attrs[key]
        if type(val) is not kind:
            return None, self._fail(OrtErrorCode.ORT_FAIL, f"{key} has wrong type")
        return val, None

    def _KernelInfoGetAttribute_float(self, info, name, out):
        val, status = self._attribute(info, name, float)
        if status:
            return status
        out[0] = val
        return None

    def _KernelInfoGetAttribute_int64(self, info, name, out):
        val, status = self._attribute(info, name, int)
        if status:
            return status
        out[0] = val
        return None

    def _KernelInfoGetAttribute_string(self, info, name, out, size):
        attrs = self.get(info).attributes
        key = name.decode("utf-8")
        val = attrs.get(key)
        if not isinstance(val, (str, bytes)):
            return self._fail(OrtErrorCode.ORT_FAIL, f"no string attribute {key}")
        raw = (val.encode("utf-8") if isinstance(val, str) else val) + b"\0"
        if not out:
            size[0] = len(raw)
            return None
        if size[0] < len(raw):
            size[0] = len(raw)
            return self._fail(OrtErrorCode.ORT_INVALID_ARGUMENT, "buffer too small")
        ctypes.memmove(out, raw, len(raw))
        size[0] = len(raw)
        return None

    def _KernelContext_GetInputCount(self, ctx, out):
        out[0] = len(self.get(ctx).inputs)
        return None

    def _KernelContext_GetOutputCount(self, ctx, out):
        out[0] = len(self.get(ctx).output_dtypes)
        return None

    def _KernelContext_GetInput(self, ctx, index, out):
        c: FakeKernelContext = self.get(ctx)
        if index >= len(c.inputs):
            return self._fail(OrtErrorCode.ORT_INVALID_ARGUMENT, "input index out of range")
        out[0] = c.inputs[index]
        return None

    def _KernelContext_GetOutput(self, ctx, index, dims, n, out):
        c: FakeKernelContext = self.get(ctx)
        if index in c.fail_outputs or index not in c.output_dtypes:
            return self._fail(OrtErrorCode.ORT_INVALID_ARGUMENT, "cannot allocate output")
        if index in c.null_outputs:
            return None
        shape = tuple(dims[i] for i in range(int(n)))
        handle = self.tensor(np.zeros(shape, dtype=c.output_dtypes[index]))
        c.outputs[int(index)] = handle
        out[0] = handle
        return None
