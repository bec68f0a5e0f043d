import gc
import unittest

import numpy as np

from stridegrad.domain import Device
from stridegrad.infrastructure.tensor import DeviceBuffer, Tensor


class _Owner:
    pass


class TestDeviceBufferCPU(unittest.TestCase):
    def setUp(self):
        self.cpu = Device("cpu")

    def test_allocate_sizes(self):
        buf = DeviceBuffer.allocate(self.cpu, 6, np.float32)
        self.assertEqual(buf.n_elements, 6)
        self.assertEqual(buf.nbytes, 24)
        self.assertEqual(buf.dtype, np.dtype(np.float32))
        self.assertFalse(buf.is_released)

    def test_upload_download_roundtrip(self):
        buf = DeviceBuffer.allocate(self.cpu, 4, np.float64)
        buf.upload(np.array([[1.0, 2.0], [3.0, 4.0]]))
        np.testing.assert_array_equal(buf.download(), [1.0, 2.0, 3.0, 4.0])
        self.assertEqual(buf.read_element(2), 3.0)

    def test_download_is_a_copy(self):
        buf = DeviceBuffer.allocate(self.cpu, 2, np.float32)
        buf.upload([1.0, 2.0])
        host = buf.download()
        host[0] = 99.0
        self.assertEqual(buf.read_element(0), 1.0)

    def test_upload_wrong_size_raises(self):
        buf = DeviceBuffer.allocate(self.cpu, 3, np.float32)
        with self.assertRaises(ValueError):
            buf.upload([1.0, 2.0])

    def test_released_when_last_owner_collected(self):
        buf = DeviceBuffer.allocate(self.cpu, 3, np.float32)
        a, b = _Owner(), _Owner()
        buf.attach(a)
        buf.attach(b)
        self.assertEqual(buf.refcount, 2)

        del a
        gc.collect()
        self.assertEqual(buf.refcount, 1)
        self.assertFalse(buf.is_released)

        del b
        gc.collect()
        self.assertEqual(buf.refcount, 0)
        self.assertTrue(buf.is_released)

    def test_released_buffer_rejects_access(self):
        buf = DeviceBuffer.allocate(self.cpu, 1, np.float32)
        owner = _Owner()
        buf.attach(owner)
        del owner
        gc.collect()
        with self.assertRaises(RuntimeError):
            buf.read_element(0)


class TestTensorBufferSharing(unittest.TestCase):
    def test_fresh_tensor_owns_one_reference(self):
        t = Tensor.from_vector([1, 2, 3, 4, 5, 6], (2, 3))
        self.assertEqual(t.data.refcount, 1)

    def test_transpose_view_shares_buffer(self):
        t = Tensor.from_vector([1, 2, 3, 4, 5, 6], (2, 3))
        v = t.transpose(0, 1)
        self.assertIs(v.data, t.data)
        self.assertEqual(t.data.refcount, 2)

    def test_buffer_outlives_source_while_view_alive(self):
        t = Tensor.from_vector([1, 2, 3, 4, 5, 6], (2, 3))
        v = t.transpose(0, 1)
        buf = t.data
        del t
        gc.collect()
        self.assertFalse(buf.is_released)
        self.assertEqual(v[2, 1], 6.0)

        del v
        gc.collect()
        self.assertTrue(buf.is_released)

    def test_operation_results_do_not_alias_operands(self):
        a = Tensor.from_vector([1, 2, 3], (1, 3))
        b = Tensor.from_vector([1], (1, 1))
        c = a + b
        self.assertIsNot(c.data, a.data)
        self.assertIsNot(c.data, b.data)


if __name__ == "__main__":
    unittest.main()
