import threading
import unittest

import numpy as np

from ortbridge.domain._errors import (
    ContractViolation,
    DataAccessError,
    HandleExpiredError,
    NullOutputViolation,
    ThreadAffinityError,
)
from ortbridge.infrastructure.operator._kernel_context import KernelContext, KernelState
from ortbridge.infrastructure.value._value import ValueView

from .._fake_ort import FakeOrtEngine


class TestKernelContext(unittest.TestCase):
    def setUp(self):
        self.engine = FakeOrtEngine()
        self.x = self.engine.tensor(np.array([1.0, 2.0, 3.0], dtype=np.float32))
        self.handle = self.engine.kernel_context(
            [self.x, None], output_dtypes={0: np.float32}
        )
        self.ctx = KernelContext(self.engine.api, self.handle)

    def tearDown(self):
        self.ctx.close()

    def test_null_context_is_a_contract_violation(self):
        with self.assertRaises(ContractViolation):
            KernelContext(self.engine.api, 0)

    def test_ready_after_wrapping(self):
        self.assertIs(self.ctx.state, KernelState.READY)

    def test_counts(self):
        self.assertEqual(self.ctx.input_count(), 2)
        self.assertEqual(self.ctx.output_count(), 1)

    def test_input_is_read_only_view(self):
        x = self.ctx.input(0)
        self.assertIsInstance(x, ValueView)
        self.assertEqual(x.ptr, self.x)
        arr = x.extract_tensor(np.float32).array
        np.testing.assert_array_equal(arr, [1.0, 2.0, 3.0])
        self.assertFalse(arr.flags.writeable)

    def test_missing_inputs_are_none(self):
        # omitted optional input
        self.assertIsNone(self.ctx.input(1))
        # out of range
        self.assertIsNone(self.ctx.input(5))

    def test_output_is_allocated_with_shape(self):
        y = self.ctx.output(0, [4])
        self.assertIsNotNone(y)
        view = y.extract_tensor(np.float32)
        self.assertEqual(view.shape, (4,))
        view.array[:] = 7.0
        out = self.engine.get(self.engine.get(self.handle).outputs[0])
        np.testing.assert_array_equal(out.data, [7.0] * 4)

    def test_zero_element_output_cannot_be_viewed(self):
        y = self.ctx.output(0, [0])
        self.assertIsNotNone(y)
        self.assertEqual(y.tensor_type_and_shape().element_count, 0)
        with self.assertRaises(DataAccessError):
            y.extract_tensor(np.float32)

    def test_output_failure_is_none(self):
        self.assertIsNone(self.ctx.output(3, [2]))

    def test_null_output_on_success_is_a_contract_violation(self):
        handle = self.engine.kernel_context(
            [], output_dtypes={0: np.float32}, null_outputs={0}
        )
        with KernelContext(self.engine.api, handle) as ctx:
            with self.assertRaises(NullOutputViolation):
                ctx.output(0, [1])

    def test_close_expires_context_and_values(self):
        x = self.ctx.input(0)
        view = x.extract_tensor(np.float32)
        y = self.ctx.output(0, [2])

        self.ctx.close()
        self.assertIs(self.ctx.state, KernelState.EXPIRED)
        self.assertFalse(x.is_alive)
        self.assertFalse(y.is_alive)
        with self.assertRaises(HandleExpiredError):
            view.array
        with self.assertRaises(HandleExpiredError):
            self.ctx.input(0)
        with self.assertRaises(HandleExpiredError):
            self.ctx.output_count()

    def test_use_from_another_thread_is_rejected(self):
        errors = []

        def worker():
            try:
                self.ctx.input(0)
            except ThreadAffinityError as e:
                errors.append(e)

        t = threading.Thread(target=worker)
        t.start()
        t.join()
        self.assertEqual(len(errors), 1)
        # still usable on the owning thread
        self.assertIsNotNone(self.ctx.input(0))


if __name__ == "__main__":
    unittest.main()
