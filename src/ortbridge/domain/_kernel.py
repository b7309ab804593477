"""
Custom operator kernel interface.

A `Kernel` is the host-side half of a custom operator: the engine invokes its
compute entry point once per execution of the operator node, passing a
per-invocation context from which inputs are read and outputs allocated.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..infrastructure.operator._kernel_context import KernelContext


class Kernel(ABC):
    """
    Abstract base class for custom operator kernels.

    Subclasses implement `compute`. Static configuration (attributes) should
    be read once when the kernel is constructed, not per invocation.

    Notes
    -----
    - The `ctx` passed to `compute` is valid only for the duration of that
      call and only on the calling thread. Do not store it, nor any array view
      derived from its inputs or outputs.
    - Raising from `compute` fails the node; the error is reported back to the
      engine as a status rather than propagated through the C boundary.
    """

    @abstractmethod
    def compute(self, ctx: "KernelContext") -> None:
        """
        Run one invocation of the operator.

        Parameters
        ----------
        ctx : KernelContext
            Per-invocation context exposing inputs and output allocation.
        """
        ...
