"""
ctypes description of the ONNX Runtime ``OrtApi`` function table.

ONNX Runtime exposes its C API as a struct of function pointers returned by
``OrtGetApiBase()->GetApi(version)``. The slot order is fixed by the ABI;
newer versions only append. This module declares the leading slots up to the
ones ortbridge calls, with typed `CFUNCTYPE` prototypes for the slots in use
and opaque ``void*`` for the rest.

All ``OrtApi`` functions used here return ``OrtStatus*``: null on success,
otherwise a status object that must be inspected with ``GetErrorCode`` /
``GetErrorMessage`` and freed with ``ReleaseStatus`` (see `_status`).

Notes
-----
- ``GetErrorMessage`` is declared as returning ``void*`` rather than
  ``char*`` and is read with `ctypes.string_at`, so that the same prototype
  works for callbacks implemented in Python.
- The handles (``OrtValue*``, ``OrtKernelContext*``, ``OrtKernelInfo*``,
  ``OrtTensorTypeAndShapeInfo*``) are opaque and passed as ``void*``.
"""

from __future__ import annotations

import ctypes
import os
from ctypes import (
    CFUNCTYPE,
    POINTER,
    c_char_p,
    c_float,
    c_int,
    c_int64,
    c_size_t,
    c_uint32,
    c_void_p,
)
from enum import IntEnum
from functools import lru_cache
from typing import Dict, Optional

from ._native_loader import load_onnxruntime

ORT_API_VERSION_ENV = "ORTBRIDGE_ORT_API_VERSION"
DEFAULT_ORT_API_VERSION = 1

OrtStatusPtr = c_void_p


class OrtErrorCode(IntEnum):
    """
    ``OrtErrorCode`` values carried by an ``OrtStatus``.
    """

    ORT_OK = 0
    ORT_FAIL = 1
    ORT_INVALID_ARGUMENT = 2
    ORT_NO_SUCHFILE = 3
    ORT_NO_MODEL = 4
    ORT_ENGINE_ERROR = 5
    ORT_RUNTIME_EXCEPTION = 6
    ORT_INVALID_PROTOBUF = 7
    ORT_MODEL_LOADED = 8
    ORT_NOT_IMPLEMENTED = 9
    ORT_INVALID_GRAPH = 10
    ORT_EP_FAIL = 11


# Slot order of `struct OrtApi` in onnxruntime_c_api.h (API version 1 layout).
ORT_API_SLOTS = (
    "CreateStatus",
    "GetErrorCode",
    "GetErrorMessage",
    "CreateEnv",
    "CreateEnvWithCustomLogger",
    "EnableTelemetryEvents",
    "DisableTelemetryEvents",
    "CreateSession",
    "CreateSessionFromArray",
    "Run",
    "CreateSessionOptions",
    "SetOptimizedModelFilePath",
    "CloneSessionOptions",
    "SetSessionExecutionMode",
    "EnableProfiling",
    "DisableProfiling",
    "EnableMemPattern",
    "DisableMemPattern",
    "EnableCpuMemArena",
    "DisableCpuMemArena",
    "SetSessionLogId",
    "SetSessionLogVerbosityLevel",
    "SetSessionLogSeverityLevel",
    "SetSessionGraphOptimizationLevel",
    "SetIntraOpNumThreads",
    "SetInterOpNumThreads",
    "CreateCustomOpDomain",
    "CustomOpDomain_Add",
    "AddCustomOpDomain",
    "RegisterCustomOpsLibrary",
    "SessionGetInputCount",
    "SessionGetOutputCount",
    "SessionGetOverridableInitializerCount",
    "SessionGetInputTypeInfo",
    "SessionGetOutputTypeInfo",
    "SessionGetOverridableInitializerTypeInfo",
    "SessionGetInputName",
    "SessionGetOutputName",
    "SessionGetOverridableInitializerName",
    "CreateRunOptions",
    "RunOptionsSetRunLogVerbosityLevel",
    "RunOptionsSetRunLogSeverityLevel",
    "RunOptionsSetRunTag",
    "RunOptionsGetRunLogVerbosityLevel",
    "RunOptionsGetRunLogSeverityLevel",
    "RunOptionsGetRunTag",
    "RunOptionsSetTerminate",
    "RunOptionsUnsetTerminate",
    "CreateTensorAsOrtValue",
    "CreateTensorWithDataAsOrtValue",
    "IsTensor",
    "GetTensorMutableData",
    "FillStringTensor",
    "GetStringTensorDataLength",
    "GetStringTensorContent",
    "CastTypeInfoToTensorInfo",
    "GetOnnxTypeFromTypeInfo",
    "CreateTensorTypeAndShapeInfo",
    "SetTensorElementType",
    "SetDimensions",
    "GetTensorElementType",
    "GetDimensionsCount",
    "GetDimensions",
    "GetSymbolicDimensions",
    "GetTensorShapeElementCount",
    "GetTensorTypeAndShape",
    "GetTypeInfo",
    "GetValueType",
    "CreateMemoryInfo",
    "CreateCpuMemoryInfo",
    "CompareMemoryInfo",
    "MemoryInfoGetName",
    "MemoryInfoGetId",
    "MemoryInfoGetMemType",
    "MemoryInfoGetType",
    "AllocatorAlloc",
    "AllocatorFree",
    "AllocatorGetInfo",
    "GetAllocatorWithDefaultOptions",
    "AddFreeDimensionOverride",
    "GetValue",
    "GetValueCount",
    "CreateValue",
    "CreateOpaqueValue",
    "GetOpaqueValue",
    "KernelInfoGetAttribute_float",
    "KernelInfoGetAttribute_int64",
    "KernelInfoGetAttribute_string",
    "KernelContext_GetInputCount",
    "KernelContext_GetOutputCount",
    "KernelContext_GetInput",
    "KernelContext_GetOutput",
    "ReleaseEnv",
    "ReleaseStatus",
    "ReleaseMemoryInfo",
    "ReleaseSession",
    "ReleaseValue",
    "ReleaseRunOptions",
    "ReleaseTypeInfo",
    "ReleaseTensorTypeAndShapeInfo",
)

# Typed prototypes for the slots ortbridge calls.
ORT_API_PROTOTYPES: Dict[str, type] = {
    # OrtStatus* CreateStatus(OrtErrorCode code, const char* msg)
    "CreateStatus": CFUNCTYPE(OrtStatusPtr, c_int, c_char_p),
    # OrtErrorCode GetErrorCode(const OrtStatus* status)
    "GetErrorCode": CFUNCTYPE(c_int, OrtStatusPtr),
    # const char* GetErrorMessage(const OrtStatus* status)
    "GetErrorMessage": CFUNCTYPE(c_void_p, OrtStatusPtr),
    # void ReleaseStatus(OrtStatus* status)
    "ReleaseStatus": CFUNCTYPE(None, OrtStatusPtr),
    # GetTensorMutableData(OrtValue* value, void** out)
    "GetTensorMutableData": CFUNCTYPE(OrtStatusPtr, c_void_p, POINTER(c_void_p)),
    # GetStringTensorDataLength(const OrtValue* value, size_t* len)
    "GetStringTensorDataLength": CFUNCTYPE(
        OrtStatusPtr, c_void_p, POINTER(c_size_t)
    ),
    # GetStringTensorContent(const OrtValue* value, void* s, size_t s_len,
    #                        size_t* offsets, size_t offsets_len)
    "GetStringTensorContent": CFUNCTYPE(
        OrtStatusPtr, c_void_p, c_void_p, c_size_t, POINTER(c_size_t), c_size_t
    ),
    # GetTensorElementType(const OrtTensorTypeAndShapeInfo*, ONNXTensorElementDataType* out)
    "GetTensorElementType": CFUNCTYPE(OrtStatusPtr, c_void_p, POINTER(c_int)),
    # GetDimensionsCount(const OrtTensorTypeAndShapeInfo*, size_t* out)
    "GetDimensionsCount": CFUNCTYPE(OrtStatusPtr, c_void_p, POINTER(c_size_t)),
    # GetDimensions(const OrtTensorTypeAndShapeInfo*, int64_t* dim_values, size_t dim_values_length)
    "GetDimensions": CFUNCTYPE(OrtStatusPtr, c_void_p, POINTER(c_int64), c_size_t),
    # GetTensorShapeElementCount(const OrtTensorTypeAndShapeInfo*, size_t* out)
    "GetTensorShapeElementCount": CFUNCTYPE(
        OrtStatusPtr, c_void_p, POINTER(c_size_t)
    ),
    # GetTensorTypeAndShape(const OrtValue* value, OrtTensorTypeAndShapeInfo** out)
    "GetTensorTypeAndShape": CFUNCTYPE(OrtStatusPtr, c_void_p, POINTER(c_void_p)),
    # KernelInfoGetAttribute_float(const OrtKernelInfo*, const char* name, float* out)
    "KernelInfoGetAttribute_float": CFUNCTYPE(
        OrtStatusPtr, c_void_p, c_char_p, POINTER(c_float)
    ),
    # KernelInfoGetAttribute_int64(const OrtKernelInfo*, const char* name, int64_t* out)
    "KernelInfoGetAttribute_int64": CFUNCTYPE(
        OrtStatusPtr, c_void_p, c_char_p, POINTER(c_int64)
    ),
    # KernelInfoGetAttribute_string(const OrtKernelInfo*, const char* name, char* out, size_t* size)
    "KernelInfoGetAttribute_string": CFUNCTYPE(
        OrtStatusPtr, c_void_p, c_char_p, c_void_p, POINTER(c_size_t)
    ),
    # KernelContext_GetInputCount(const OrtKernelContext*, size_t* out)
    "KernelContext_GetInputCount": CFUNCTYPE(
        OrtStatusPtr, c_void_p, POINTER(c_size_t)
    ),
    # KernelContext_GetOutputCount(const OrtKernelContext*, size_t* out)
    "KernelContext_GetOutputCount": CFUNCTYPE(
        OrtStatusPtr, c_void_p, POINTER(c_size_t)
    ),
    # KernelContext_GetInput(const OrtKernelContext*, size_t index, const OrtValue** out)
    "KernelContext_GetInput": CFUNCTYPE(
        OrtStatusPtr, c_void_p, c_size_t, POINTER(c_void_p)
    ),
    # KernelContext_GetOutput(OrtKernelContext*, size_t index, const int64_t* dim_values,
    #                         size_t dim_count, OrtValue** out)
    "KernelContext_GetOutput": CFUNCTYPE(
        OrtStatusPtr, c_void_p, c_size_t, POINTER(c_int64), c_size_t, POINTER(c_void_p)
    ),
    # void ReleaseTensorTypeAndShapeInfo(OrtTensorTypeAndShapeInfo* input)
    "ReleaseTensorTypeAndShapeInfo": CFUNCTYPE(None, c_void_p),
}


class OrtApi(ctypes.Structure):
    """
    Leading slots of ``struct OrtApi``.

    Slots listed in `ORT_API_PROTOTYPES` are typed function pointers and can
    be called directly (``api.GetTensorMutableData(value, ctypes.byref(out))``);
    all other slots are opaque ``void*`` placeholders that only keep the
    layout aligned with the C header.
    """

    _fields_ = [(name, ORT_API_PROTOTYPES.get(name, c_void_p)) for name in ORT_API_SLOTS]


class OrtApiBase(ctypes.Structure):
    """
    ``struct OrtApiBase``: entry point returned by ``OrtGetApiBase()``.
    """

    _fields_ = [
        ("GetApi", CFUNCTYPE(POINTER(OrtApi), c_uint32)),
        ("GetVersionString", CFUNCTYPE(c_char_p)),
    ]


def _resolve_api_version(version: Optional[int]) -> int:
    if version is not None:
        return int(version)
    raw = os.environ.get(ORT_API_VERSION_ENV, "")
    if not raw:
        return DEFAULT_ORT_API_VERSION
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            f"{ORT_API_VERSION_ENV} must be an integer, got {raw!r}"
        ) from None


def get_ort_api(lib: ctypes.CDLL, version: Optional[int] = None) -> OrtApi:
    """
    Resolve the ``OrtApi`` function table from a loaded library.

    Parameters
    ----------
    lib : ctypes.CDLL
        Loaded ONNX Runtime library (see `load_onnxruntime`).
    version : Optional[int]
        ``ORT_API_VERSION`` to request. Defaults to ``ORTBRIDGE_ORT_API_VERSION``
        or ``1``.

    Returns
    -------
    OrtApi
        The function table. It is owned by the library and never freed.

    Raises
    ------
    RuntimeError
        If the library does not export ``OrtGetApiBase`` or does not support
        the requested API version.
    """
    try:
        get_api_base = lib.OrtGetApiBase
    except AttributeError:
        raise RuntimeError("ONNX Runtime library missing symbol: OrtGetApiBase") from None
    get_api_base.argtypes = []
    get_api_base.restype = POINTER(OrtApiBase)

    base = get_api_base()
    if not base:
        raise RuntimeError("OrtGetApiBase returned a null pointer")

    v = _resolve_api_version(version)
    api_ptr = base.contents.GetApi(c_uint32(v))
    if not api_ptr:
        runtime = base.contents.GetVersionString()
        raise RuntimeError(
            f"ONNX Runtime {runtime.decode('utf-8', 'replace') if runtime else '?'} "
            f"does not support OrtApi version {v}"
        )
    return api_ptr.contents


@lru_cache(maxsize=1)
def load_ort_api(version: Optional[int] = None) -> OrtApi:
    """
    Load ONNX Runtime and return its cached ``OrtApi`` function table.
    """
    return get_ort_api(load_onnxruntime(), version)
