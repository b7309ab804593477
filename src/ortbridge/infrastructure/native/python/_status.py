"""
``OrtStatus`` translation helpers.

Every ``OrtApi`` call returns an ``OrtStatus*`` that is null on success.
`check_status` turns a non-null status into a typed `ForeignCallError`
(reading its code and message and releasing it exactly once), and
`ort_call` performs one foreign call through a named ``OrtApi`` slot and
checks the result. `create_status` goes the other way and builds an engine
status from a Python error for callbacks that must report failure.
"""

from __future__ import annotations

import ctypes
from typing import Optional, Type

from ....domain._errors import ForeignCallError, NullOutputViolation
from .ort_api_ctypes import OrtApi, OrtErrorCode


def check_status(
    api: OrtApi,
    status: Optional[int],
    call: str,
    error_cls: Type[ForeignCallError] = ForeignCallError,
) -> None:
    """
    Raise if `status` reports a failure.

    Parameters
    ----------
    api : OrtApi
        Function table used to inspect and release the status.
    status : Optional[int]
        Raw ``OrtStatus*`` returned by the foreign call (``None``/``0`` is success).
    call : str
        Name of the foreign call, recorded on the raised error.
    error_cls : Type[ForeignCallError]
        Concrete error class to raise.

    Raises
    ------
    ForeignCallError
        (or `error_cls`) carrying the engine error code and message.
    """
    if not status:
        return
    try:
        code = int(api.GetErrorCode(status))
        msg_ptr = api.GetErrorMessage(status)
        message = (
            ctypes.string_at(msg_ptr).decode("utf-8", "replace") if msg_ptr else ""
        )
    finally:
        api.ReleaseStatus(status)
    raise error_cls(call, code, message)


def ort_call(
    api: OrtApi,
    call: str,
    *args,
    error_cls: Type[ForeignCallError] = ForeignCallError,
) -> None:
    """
    Invoke one ``OrtApi`` function by slot name and check its status.

    Parameters
    ----------
    api : OrtApi
        Function table.
    call : str
        Slot name, e.g. ``"GetTensorMutableData"``.
    *args
        Arguments forwarded to the foreign function.
    error_cls : Type[ForeignCallError]
        Error class raised when the status reports failure.
    """
    fn = getattr(api, call)
    check_status(api, fn(*args), call, error_cls)


def require_non_null(ptr: Optional[int], call: str) -> int:
    """
    Return `ptr` as an int, raising `NullOutputViolation` if it is null.

    Used for output pointers the engine guarantees to be non-null whenever it
    reports success.
    """
    if not ptr:
        raise NullOutputViolation(call)
    return int(ptr)


def create_status(api: OrtApi, code: OrtErrorCode, message: str) -> int:
    """
    Create an engine-owned ``OrtStatus`` for returning from a callback.

    Returns
    -------
    int
        Raw ``OrtStatus*``. Ownership passes to the engine.
    """
    status = api.CreateStatus(int(code), message.encode("utf-8", "replace"))
    return require_non_null(status, "CreateStatus")
