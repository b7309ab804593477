"""
Non-owning ``OrtValue`` handles.

`Value` wraps a raw ``OrtValue*`` without taking ownership: ortbridge never
releases it. Values handed out by a kernel context are engine-owned and valid
only for that invocation; the context expires them when the invocation ends,
after which `Value.ptr` (and every view borrowed from the value) raises
`HandleExpiredError`.

Besides liveness, this module is the caller-side collaborator of the
extraction layer: it queries element type, dimensions and element count from
the engine and refuses to extract a tensor as a host type whose tag differs
from the tensor's.
"""

from __future__ import annotations

import ctypes
import threading
from dataclasses import dataclass
from typing import Any, Tuple

from ...domain._element_type import TensorElementType, from_native
from ...domain._errors import HandleExpiredError, TensorTypeMismatchError
from ..native.python._status import ort_call, require_non_null
from ..native.python.ort_api_ctypes import OrtApi
from ..tensor._extract_traits import capability_for
from ..tensor._tensor_data import TensorData


@dataclass(frozen=True)
class TensorTypeAndShape:
    """
    Element type and dimensions of a tensor value.

    Attributes
    ----------
    element_type : TensorElementType
        Element encoding reported by the engine.
    shape : Tuple[int, ...]
        Dimensions (empty for a scalar).
    element_count : int
        Number of elements (product of `shape`).
    """

    element_type: TensorElementType
    shape: Tuple[int, ...]
    element_count: int


class Value:
    """
    Non-owning handle to an engine ``OrtValue``.

    Parameters
    ----------
    api : OrtApi
        Function table used for every call on this value.
    ptr : int
        Raw ``OrtValue*``; must be non-null.
    readonly : bool, optional
        Whether the engine exposes the value as const. Views extracted from a
        read-only value are read-only NumPy arrays.
    """

    __slots__ = ("api", "_ptr", "readonly", "_alive", "_lock")

    def __init__(self, api: OrtApi, ptr: int, *, readonly: bool = False) -> None:
        if not ptr:
            raise ValueError("Value requires a non-null OrtValue pointer")
        self.api = api
        self._ptr = int(ptr)
        self.readonly = bool(readonly)
        self._alive = True
        self._lock = threading.Lock()

    @classmethod
    def from_raw_ref_dropless(cls, api: OrtApi, ptr: int, **kwargs: Any) -> "Value":
        """
        Wrap an engine-owned ``OrtValue*`` without taking ownership.
        """
        return cls(api, ptr, **kwargs)

    @property
    def is_alive(self) -> bool:
        with self._lock:
            return self._alive

    @property
    def ptr(self) -> int:
        """
        The raw ``OrtValue*``.

        Raises
        ------
        HandleExpiredError
            If the value has expired.
        """
        with self._lock:
            if not self._alive:
                raise HandleExpiredError(
                    f"OrtValue 0x{self._ptr:x} is no longer valid"
                )
            return self._ptr

    def expire(self) -> None:
        """
        Mark the handle invalid. Idempotent.
        """
        with self._lock:
            self._alive = False

    def tensor_type_and_shape(self) -> TensorTypeAndShape:
        """
        Query the engine for the tensor's element type and dimensions.

        Raises
        ------
        ForeignCallError
            If any of the type/shape queries fails.
        UnsupportedNativeCodeError
            If the engine reports an element type outside the supported set.
        """
        api = self.api
        info = ctypes.c_void_p()
        ort_call(api, "GetTensorTypeAndShape", self.ptr, ctypes.byref(info))
        info_ptr = require_non_null(info.value, "GetTensorTypeAndShape")
        try:
            code = ctypes.c_int(0)
            ort_call(api, "GetTensorElementType", info_ptr, ctypes.byref(code))

            ndim = ctypes.c_size_t(0)
            ort_call(api, "GetDimensionsCount", info_ptr, ctypes.byref(ndim))

            dims = (ctypes.c_int64 * ndim.value)()
            ort_call(
                api, "GetDimensions", info_ptr, dims, ctypes.c_size_t(ndim.value)
            )

            count = ctypes.c_size_t(0)
            ort_call(api, "GetTensorShapeElementCount", info_ptr, ctypes.byref(count))
        finally:
            api.ReleaseTensorTypeAndShapeInfo(info_ptr)

        return TensorTypeAndShape(
            element_type=from_native(code.value),
            shape=tuple(int(d) for d in dims),
            element_count=int(count.value),
        )

    def extract_tensor(self, host_type: Any) -> TensorData:
        """
        Extract the tensor's data as `host_type`.

        Parameters
        ----------
        host_type : Any
            ``str`` or a NumPy dtype-like (``np.float32``, ``"int64"``, ...).

        Returns
        -------
        TensorData
            `PrimitiveView` for fixed-width types, `Strings` for ``str``.

        Raises
        ------
        TensorTypeMismatchError
            If the tensor's element type is not the one `host_type` maps to.
        ForeignCallError
            If the engine fails any query or data access.
        TextDecodeError
            If a string element is not valid UTF-8.
        """
        cap = capability_for(host_type)
        info = self.tensor_type_and_shape()
        if info.element_type is not cap.element_type:
            raise TensorTypeMismatchError(cap.element_type, info.element_type)
        return cap.extract(info.shape, info.element_count, self)

    def __repr__(self) -> str:
        state = "alive" if self.is_alive else "expired"
        return f"{type(self).__name__}(ptr=0x{self._ptr:x}, {state})"


class ValueView(Value):
    """
    Read-only handle to a kernel input.
    """

    __slots__ = ()

    def __init__(self, api: OrtApi, ptr: int, *, readonly: bool = True) -> None:
        super().__init__(api, ptr, readonly=readonly)
