"""
Engine-facing entry points of a custom operator kernel.

`create_kernel` runs once per operator instance with the engine's
``OrtKernelInfo*``; `run_kernel_compute` runs once per invocation with the
``OrtKernelContext*``. Exceptions must not unwind through the C boundary, so
`run_kernel_compute` reports failures as an engine ``OrtStatus*`` instead.
Contract violations are the exception: they are re-raised, since the engine
and this binding no longer agree on what the pointers mean.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from ...domain._errors import ContractViolation, OrtBridgeError
from ...domain._kernel import Kernel
from ..native.python._status import create_status
from ..native.python.ort_api_ctypes import OrtApi, OrtErrorCode
from ._kernel_context import KernelAttributes, KernelContext

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Kernel)


def create_kernel(
    api: OrtApi, factory: Callable[[KernelAttributes], K], info_ptr: int
) -> K:
    """
    Build a kernel from its operator instance's attributes.

    Parameters
    ----------
    api : OrtApi
        Function table.
    factory : Callable[[KernelAttributes], Kernel]
        Reads the attributes it needs and returns the kernel.
    info_ptr : int
        ``OrtKernelInfo*`` supplied by the engine.
    """
    return factory(KernelAttributes(api, info_ptr))


def run_kernel_compute(api: OrtApi, kernel: Kernel, context_ptr: int) -> Optional[int]:
    """
    Run one invocation of `kernel` against an engine context.

    Returns
    -------
    Optional[int]
        None on success, otherwise a new ``OrtStatus*`` owned by the engine:
        ``ORT_FAIL`` for ortbridge errors, ``ORT_RUNTIME_EXCEPTION`` for any
        other exception raised by the kernel.
    """
    ctx = KernelContext(api, context_ptr)
    try:
        kernel.compute(ctx)
    except ContractViolation:
        raise
    except OrtBridgeError as e:
        logger.error("kernel %s failed", type(kernel).__name__, exc_info=True)
        return create_status(api, OrtErrorCode.ORT_FAIL, str(e))
    except Exception as e:
        logger.error("kernel %s raised", type(kernel).__name__, exc_info=True)
        return create_status(
            api, OrtErrorCode.ORT_RUNTIME_EXCEPTION, f"{type(e).__name__}: {e}"
        )
    finally:
        ctx.close()
    return None
