"""
Error taxonomy for the ONNX Runtime marshaling layer.

Two families of exceptions are defined here:

- :class:`OrtBridgeError` and its subclasses are *recoverable* typed errors.
  They are raised to the immediate caller when the engine reports a failure
  for a specific foreign call, when tensor text cannot be decoded, or when a
  handle is used outside of its valid extent.

- :class:`ContractViolation` and its subclasses signal that the engine and
  this binding disagree about their shared C API contract (e.g., a null
  pointer returned together with a success status, or a tensor element code
  outside the supported closed set). There is no well-defined recovery from
  these, so they derive from ``AssertionError`` and are not meant to be
  caught by ordinary error handling.
"""

from __future__ import annotations

from typing import Optional


class OrtBridgeError(RuntimeError):
    """
    Base class for all recoverable errors raised by ortbridge.
    """


class ForeignCallError(OrtBridgeError):
    """
    Raised when the engine reports a failure status for a foreign call.

    Attributes
    ----------
    call : str
        Name of the ``OrtApi`` function that failed (e.g. ``"GetTensorMutableData"``).
    code : int
        Engine error code (``OrtErrorCode``) extracted from the returned status.
    message : str
        Engine-provided error message, possibly empty.
    """

    def __init__(self, call: str, code: int, message: str = "") -> None:
        """
        Initialize the ForeignCallError.

        Parameters
        ----------
        call : str
            Name of the failing foreign function.
        code : int
            Engine error code reported by the status object.
        message : str, optional
            Engine-provided error message.
        """
        detail = f": {message}" if message else ""
        super().__init__(f"{call} failed with status code {code}{detail}")
        self.call = call
        self.code = int(code)
        self.message = message


class DataAccessError(ForeignCallError):
    """
    Raised when raw tensor storage cannot be obtained from the engine.

    This covers both an explicit failure status from ``GetTensorMutableData``
    and a null data pointer returned alongside a success status.
    """


class TextDecodeError(OrtBridgeError):
    """
    Raised when one element of a string tensor is not valid UTF-8.

    Attributes
    ----------
    index : int
        Flat (row-major) index of the offending element.
    start : int
        Inclusive byte offset of the element within the content buffer.
    end : int
        Exclusive byte offset of the element within the content buffer.
    """

    def __init__(self, index: int, start: int, end: int) -> None:
        super().__init__(
            f"string tensor element {index} (bytes {start}..{end}) is not valid UTF-8"
        )
        self.index = int(index)
        self.start = int(start)
        self.end = int(end)


class TensorTypeMismatchError(OrtBridgeError):
    """
    Raised when a tensor is extracted as a host type whose element type tag
    differs from the tensor's actual element type.
    """

    def __init__(self, expected: object, actual: object) -> None:
        super().__init__(
            f"cannot extract tensor of element type {actual} as {expected}"
        )
        self.expected = expected
        self.actual = actual


class HandleUsageError(OrtBridgeError):
    """
    Base class for misuse of a non-owning engine handle.
    """


class HandleExpiredError(HandleUsageError):
    """
    Raised when a handle (or a view derived from it) is used after the engine
    extent that made it valid has ended.
    """


class ThreadAffinityError(HandleUsageError):
    """
    Raised when a per-invocation handle is used from a thread other than the
    one the engine invoked the callback on.
    """


class ContractViolation(AssertionError):
    """
    Raised when the engine breaches the C API contract this binding relies on.
    """


class NullOutputViolation(ContractViolation):
    """
    Raised when the engine reports success but leaves a required output
    pointer null.

    Attributes
    ----------
    call : str
        Name of the foreign function whose output was null.
    """

    def __init__(self, call: str, detail: Optional[str] = None) -> None:
        msg = f"{call} reported success but produced a null pointer"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
        self.call = call


class UnsupportedNativeCodeError(ContractViolation):
    """
    Raised when the engine reports a tensor element type code outside the
    closed set supported by :class:`~ortbridge.domain._element_type.TensorElementType`.
    """

    def __init__(self, code: int) -> None:
        super().__init__(f"unsupported ONNX tensor element type code: {code}")
        self.code = int(code)
