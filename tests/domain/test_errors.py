import unittest

from stridegrad.domain import (
    StridegradError,
    ShapeMismatchError,
    DimensionMismatchError,
    IndexOutOfRangeError,
    UngradientedTensorError,
    AllocationError,
    DeviceNotSupportedError,
    DeviceMismatchError,
)


class TestErrorTaxonomy(unittest.TestCase):
    def test_all_errors_share_base(self):
        for cls in (
            ShapeMismatchError,
            DimensionMismatchError,
            IndexOutOfRangeError,
            UngradientedTensorError,
            AllocationError,
            DeviceNotSupportedError,
            DeviceMismatchError,
        ):
            with self.subTest(cls=cls.__name__):
                self.assertTrue(issubclass(cls, StridegradError))
                self.assertTrue(issubclass(cls, RuntimeError))

    def test_index_error_is_also_builtin_index_error(self):
        self.assertTrue(issubclass(IndexOutOfRangeError, IndexError))

    def test_allocation_error_is_also_memory_error(self):
        self.assertTrue(issubclass(AllocationError, MemoryError))

    def test_shape_mismatch_attributes_and_message(self):
        e = ShapeMismatchError("add", [2, 3], (4, 3), "axis 0")
        self.assertEqual(e.op, "add")
        self.assertEqual(e.shape1, (2, 3))
        self.assertEqual(e.shape2, (4, 3))
        self.assertIn("(2, 3)", str(e))
        self.assertIn("axis 0", str(e))

    def test_dimension_mismatch_mentions_shared_dims(self):
        e = DimensionMismatchError("mm", (2, 3), (4, 5))
        self.assertIn("3", str(e))
        self.assertIn("4", str(e))

    def test_index_out_of_range_attributes(self):
        e = IndexOutOfRangeError((5, 0), (2, 2))
        self.assertEqual(e.indices, (5, 0))
        self.assertEqual(e.shape, (2, 2))

    def test_allocation_error_attributes(self):
        e = AllocationError(1024, "cuda:0")
        self.assertEqual(e.nbytes, 1024)
        self.assertEqual(e.device, "cuda:0")
        self.assertIn("1024", str(e))

    def test_device_errors(self):
        e = DeviceNotSupportedError(op="allocate", device="cuda:0")
        self.assertEqual(e.op, "allocate")
        self.assertIn("cuda:0", str(e))
        m = DeviceMismatchError("cpu", "cuda:0")
        self.assertEqual((m.device_a, m.device_b), ("cpu", "cuda:0"))


if __name__ == "__main__":
    unittest.main()
