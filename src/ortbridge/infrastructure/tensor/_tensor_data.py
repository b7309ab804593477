"""
Extracted tensor data and the borrow guard for engine-owned memory.

Extraction produces one of two variants:

- `PrimitiveView`: a NumPy array laid directly over the engine's tensor
  buffer. Nothing is copied. The array is only valid while the source
  `Value` handle is alive, so access goes through `PrimitiveView.array`,
  which checks both the handle's liveness and whether the view has been
  released.
- `Strings`: an owned NumPy ``object`` array of decoded ``str`` elements,
  with no relation to foreign memory after construction.

Lifetime model
--------------
The NumPy array of a `PrimitiveView` is created from an `_EngineBuffer`
exporting ``__array_interface__``; that exporter becomes the array's ``base``
and holds a reference to the source `Value`. Any array (or NumPy sub-view)
derived from the buffer therefore keeps the handle object reachable, the
same way shared storage stays referenced while tensors use it. What it
cannot do is keep the *engine* buffer alive; that is the engine's contract,
and the guard in `PrimitiveView` is what turns a stale access into a
`HandleExpiredError` instead of a read of freed memory.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple, Union

import numpy as np

from ...domain._errors import HandleExpiredError

if TYPE_CHECKING:
    from ..value._value import Value


class _EngineBuffer:
    """
    ``__array_interface__`` exporter over a raw engine pointer.
    """

    def __init__(
        self,
        address: int,
        shape: Tuple[int, ...],
        dtype: np.dtype,
        value: "Value",
        readonly: bool,
    ) -> None:
        self.value = value
        self.__array_interface__ = {
            "version": 3,
            "shape": tuple(shape),
            "typestr": dtype.str,
            "descr": dtype.descr,
            "data": (int(address), bool(readonly)),
            "strides": None,
        }


class PrimitiveView:
    """
    Borrowed, zero-copy view over an engine-owned tensor buffer.

    Parameters
    ----------
    value : Value
        Handle of the tensor the view was derived from.
    array : np.ndarray
        NumPy array over the tensor's storage.

    Notes
    -----
    - Writes through `array` are writes into the engine's buffer; engine-side
      writes are visible through `array`. Nothing synchronizes the two.
    - Use as a context manager to scope the borrow::

          with value.extract_tensor(np.float32) as arr:
              ...

      The view is released on exit and further access raises.
    """

    __slots__ = ("value", "_array", "_released", "_lock")

    def __init__(self, value: "Value", array: np.ndarray) -> None:
        self.value = value
        self._array = array
        self._released = False
        self._lock = threading.Lock()

    @property
    def is_valid(self) -> bool:
        with self._lock:
            return not self._released and self.value.is_alive

    @property
    def array(self) -> np.ndarray:
        """
        The borrowed array.

        Raises
        ------
        HandleExpiredError
            If the view was released or its source handle has expired.
        """
        with self._lock:
            if self._released:
                raise HandleExpiredError("tensor view has been released")
        if not self.value.is_alive:
            raise HandleExpiredError(
                "tensor view outlived the engine handle it was borrowed from"
            )
        return self._array

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self._array.shape)

    @property
    def dtype(self) -> np.dtype:
        return self._array.dtype

    def to_numpy(self) -> np.ndarray:
        """
        Return an owned copy of the viewed data.
        """
        return np.array(self.array, copy=True)

    def release(self) -> None:
        """
        End the borrow. Idempotent.
        """
        with self._lock:
            self._released = True

    def __enter__(self) -> np.ndarray:
        return self.array

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "valid" if self.is_valid else "expired"
        return f"PrimitiveView(shape={self.shape}, dtype={self.dtype}, {state})"


@dataclass(frozen=True)
class Strings:
    """
    Owned string tensor contents.

    Attributes
    ----------
    strings : np.ndarray
        ``object`` array of ``str`` shaped like the source tensor.
    """

    strings: np.ndarray

    @property
    def array(self) -> np.ndarray:
        return self.strings

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self.strings.shape)

    def to_numpy(self) -> np.ndarray:
        return self.strings


TensorData = Union[PrimitiveView, Strings]
