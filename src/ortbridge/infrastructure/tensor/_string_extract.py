"""
Decoding of string tensors into owned NumPy ``object`` arrays.

ONNX Runtime stores a string tensor as one packed UTF-8 content buffer plus
an offset table. ``GetStringTensorContent`` fills a caller-allocated content
buffer and ``element_count`` start offsets. The table allocated here has one
extra slot which the engine leaves at ``0``; it is overwritten with the total
content length so every element is ``content[offsets[i]:offsets[i + 1]]``.
"""

from __future__ import annotations

import ctypes
import logging
import math
from typing import TYPE_CHECKING, Sequence

import numpy as np

from ...domain._errors import ContractViolation, TextDecodeError
from ..native.python._status import ort_call
from ._tensor_data import Strings

if TYPE_CHECKING:
    from ..value._value import Value

logger = logging.getLogger(__name__)


def extract_strings(
    shape: Sequence[int], element_count: int, value: "Value"
) -> Strings:
    """
    Copy a string tensor out of the engine as decoded ``str`` elements.

    Parameters
    ----------
    shape : Sequence[int]
        Tensor dimensions; their product must equal `element_count`.
    element_count : int
        Number of strings in the tensor.
    value : Value
        Live handle of a ``STRING`` tensor.

    Returns
    -------
    Strings
        Owned ``object`` array shaped like `shape`.

    Raises
    ------
    ForeignCallError
        If either foreign call reports failure.
    TextDecodeError
        If any element is not valid UTF-8. No partial result is returned.
    ContractViolation
        If the engine wrote the trailing offset slot, produced offsets outside
        the content buffer, or `shape` disagrees with `element_count`.
    """
    dims = tuple(int(d) for d in shape)
    n = int(element_count)
    if math.prod(dims) != n:
        raise ContractViolation(
            f"shape {dims} does not match string tensor element count {n}"
        )

    api = value.api
    total = ctypes.c_size_t(0)
    ort_call(api, "GetStringTensorDataLength", value.ptr, ctypes.byref(total))
    total_length = int(total.value)

    content = (ctypes.c_ubyte * total_length)()
    offsets = (ctypes.c_size_t * (n + 1))()

    ort_call(
        api,
        "GetStringTensorContent",
        value.ptr,
        content,
        ctypes.c_size_t(total_length),
        offsets,
        ctypes.c_size_t(n),
    )

    if offsets[n] != 0:
        raise ContractViolation(
            f"GetStringTensorContent wrote past the offset table (slot {n} = {offsets[n]})"
        )
    offsets[n] = total_length

    raw = bytes(content)
    strings = np.empty(n, dtype=object)
    for i in range(n):
        start, end = int(offsets[i]), int(offsets[i + 1])
        if start > end or end > total_length:
            raise ContractViolation(
                f"string offsets out of range: element {i} spans {start}..{end} "
                f"of {total_length} bytes"
            )
        try:
            strings[i] = raw[start:end].decode("utf-8")
        except UnicodeDecodeError as e:
            logger.debug("string element %d (bytes %d..%d) failed to decode", i, start, end)
            raise TextDecodeError(i, start, end) from e

    return Strings(strings.reshape(dims))
