"""
Kernel execution context and attribute wrappers.

`KernelContext` wraps the ``OrtKernelContext*`` the engine passes to a custom
operator's compute callback. `KernelAttributes` wraps the ``OrtKernelInfo*``
associated with an operator instance. Both are non-owning.

Lifecycle
---------
A context moves ``UNINITIALIZED -> READY`` when it wraps a live pointer and
``READY -> EXPIRED`` when `close()` is called at the end of the invocation.
Closing also expires every `Value` the context handed out, so array views
borrowed from inputs or outputs cannot be used after the engine has moved on.
A context may only be used on the thread that created it.

Per-field lookups (`KernelContext.input`, `KernelContext.output`,
`KernelAttributes.get`) collapse every failure cause into ``None``; the
underlying error is logged at DEBUG level.
"""

from __future__ import annotations

import ctypes
import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar

from ...domain._errors import (
    ContractViolation,
    ForeignCallError,
    HandleExpiredError,
    NullOutputViolation,
    ThreadAffinityError,
)
from ..native.python._status import ort_call
from ..native.python.ort_api_ctypes import OrtApi
from ..value._value import Value, ValueView

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KernelState(Enum):
    """
    Lifecycle state of a `KernelContext`.
    """

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    EXPIRED = "expired"


class KernelContext:
    """
    Per-invocation view of a custom operator's inputs and outputs.

    Parameters
    ----------
    api : OrtApi
        Function table.
    ptr : int
        ``OrtKernelContext*`` supplied by the engine for this invocation.

    Raises
    ------
    ContractViolation
        If `ptr` is null.
    """

    def __init__(self, api: OrtApi, ptr: int) -> None:
        self._state = KernelState.UNINITIALIZED
        if not ptr:
            raise ContractViolation("engine passed a null OrtKernelContext")
        self.api = api
        self._ptr = int(ptr)
        self._thread = threading.get_ident()
        self._values: List[Value] = []
        self._state = KernelState.READY

    @property
    def state(self) -> KernelState:
        return self._state

    def _checked_ptr(self) -> int:
        if self._state is not KernelState.READY:
            raise HandleExpiredError(
                f"kernel context used outside its invocation (state={self._state.value})"
            )
        if threading.get_ident() != self._thread:
            raise ThreadAffinityError(
                "kernel context used from a thread other than the invoking one"
            )
        return self._ptr

    def _count(self, call: str) -> int:
        out = ctypes.c_size_t(0)
        ort_call(self.api, call, self._checked_ptr(), ctypes.byref(out))
        return int(out.value)

    def input_count(self) -> int:
        """
        Number of inputs of this invocation.

        Raises
        ------
        ForeignCallError
            If the engine fails the query.
        """
        return self._count("KernelContext_GetInputCount")

    def output_count(self) -> int:
        """
        Number of outputs of this invocation.
        """
        return self._count("KernelContext_GetOutputCount")

    def input(self, index: int) -> Optional[ValueView]:
        """
        Borrow the input at `index`.

        Returns
        -------
        Optional[ValueView]
            Read-only handle, or None if the index is out of range, the engine
            reports an error, or the input is an omitted optional input.
        """
        ptr = self._checked_ptr()
        out = ctypes.c_void_p()
        try:
            ort_call(
                self.api,
                "KernelContext_GetInput",
                ptr,
                ctypes.c_size_t(int(index)),
                ctypes.byref(out),
            )
        except ForeignCallError as e:
            logger.debug("kernel input %s unavailable: %s", index, e)
            return None
        if not out.value:
            return None
        view = ValueView.from_raw_ref_dropless(self.api, out.value)
        self._values.append(view)
        return view

    def output(self, index: int, shape: Iterable[int]) -> Optional[Value]:
        """
        Have the engine allocate the output at `index` with `shape`.

        Parameters
        ----------
        index : int
            Output index.
        shape : Iterable[int]
            Output dimensions.

        Returns
        -------
        Optional[Value]
            Engine-owned handle to the output tensor, or None on failure.

        Raises
        ------
        NullOutputViolation
            If the engine reports success without producing a value.
        """
        ptr = self._checked_ptr()
        dims = [int(d) for d in shape]
        dim_values = (ctypes.c_int64 * len(dims))(*dims)
        out = ctypes.c_void_p()
        try:
            ort_call(
                self.api,
                "KernelContext_GetOutput",
                ptr,
                ctypes.c_size_t(int(index)),
                dim_values,
                ctypes.c_size_t(len(dims)),
                ctypes.byref(out),
            )
        except ForeignCallError as e:
            logger.debug("kernel output %s with shape %s unavailable: %s", index, dims, e)
            return None
        if not out.value:
            raise NullOutputViolation("KernelContext_GetOutput", f"index={index}")
        value = Value.from_raw_ref_dropless(self.api, out.value)
        self._values.append(value)
        return value

    def close(self) -> None:
        """
        End the invocation: expire the context and every value it handed out.
        """
        for value in self._values:
            value.expire()
        self._values.clear()
        self._state = KernelState.EXPIRED

    def __enter__(self) -> "KernelContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _get_float(api: OrtApi, info: int, name: bytes) -> float:
    out = ctypes.c_float(0.0)
    ort_call(api, "KernelInfoGetAttribute_float", info, name, ctypes.byref(out))
    return float(out.value)


def _get_int64(api: OrtApi, info: int, name: bytes) -> int:
    out = ctypes.c_int64(0)
    ort_call(api, "KernelInfoGetAttribute_int64", info, name, ctypes.byref(out))
    return int(out.value)


def _get_string(api: OrtApi, info: int, name: bytes) -> str:
    # First call with a null buffer reports the required size (including the NUL).
    size = ctypes.c_size_t(0)
    ort_call(api, "KernelInfoGetAttribute_string", info, name, None, ctypes.byref(size))
    buf = ctypes.create_string_buffer(max(int(size.value), 1))
    ort_call(
        api, "KernelInfoGetAttribute_string", info, name, buf, ctypes.byref(size)
    )
    return buf.value.decode("utf-8")


_ATTRIBUTE_GETTERS: Dict[type, Callable[[OrtApi, int, bytes], Any]] = {
    float: _get_float,
    int: _get_int64,
    str: _get_string,
}


class KernelAttributes:
    """
    Named static attributes of a custom operator instance.

    Parameters
    ----------
    api : OrtApi
        Function table.
    ptr : int
        ``OrtKernelInfo*`` supplied by the engine when the kernel is created.

    Supported attribute types are ``float``, ``int`` (64-bit) and ``str``.
    """

    def __init__(self, api: OrtApi, ptr: int) -> None:
        if not ptr:
            raise ContractViolation("engine passed a null OrtKernelInfo")
        self.api = api
        self._ptr = int(ptr)

    def get(self, name: str, kind: Type[T]) -> Optional[T]:
        """
        Look up attribute `name` as `kind`.

        Returns
        -------
        Optional[T]
            The attribute value, or None if it is missing, has a different
            type, cannot be decoded, or `name` contains a NUL character.

        Raises
        ------
        TypeError
            If `kind` is not a supported attribute type.
        """
        getter = _ATTRIBUTE_GETTERS.get(kind)
        if getter is None:
            raise TypeError(f"unsupported kernel attribute type: {kind!r}")
        try:
            encoded = name.encode("utf-8")
        except UnicodeEncodeError:
            return None
        if b"\0" in encoded:
            return None
        try:
            return getter(self.api, self._ptr, encoded)
        except (ForeignCallError, UnicodeDecodeError) as e:
            logger.debug("kernel attribute %r as %s unavailable: %s", name, kind.__name__, e)
            return None
