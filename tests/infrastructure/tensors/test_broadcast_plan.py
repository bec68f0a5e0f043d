import unittest

from stridegrad.domain import DimensionMismatchError, ShapeMismatchError
from stridegrad.infrastructure.tensor._broadcast import (
    expand_strides,
    prepare_broadcast,
    reduction_plan,
)
from stridegrad.infrastructure.tensor._matmul_plan import prepare_matmul


class TestPrepareBroadcast(unittest.TestCase):
    def test_equal_shapes_keep_strides(self):
        plan = prepare_broadcast((2, 3), (3, 1), (2, 3), (1, 2))
        self.assertEqual(plan.shape, (2, 3))
        self.assertEqual(plan.out_strides, (3, 1))
        self.assertEqual(plan.strides1, (3, 1))
        self.assertEqual(plan.strides2, (1, 2))
        self.assertEqual(plan.n_elements, 6)

    def test_size_one_axis_gets_zero_stride(self):
        plan = prepare_broadcast((2, 3), (3, 1), (1, 3), (3, 1))
        self.assertEqual(plan.shape, (2, 3))
        self.assertEqual(plan.strides1, (3, 1))
        self.assertEqual(plan.strides2, (0, 1))

    def test_both_sides_broadcast(self):
        plan = prepare_broadcast((2, 1), (1, 1), (1, 3), (3, 1))
        self.assertEqual(plan.shape, (2, 3))
        self.assertEqual(plan.strides1, (1, 0))
        self.assertEqual(plan.strides2, (0, 1))

    def test_incompatible_extents_raise(self):
        with self.assertRaises(ShapeMismatchError):
            prepare_broadcast((2, 3), (3, 1), (4, 3), (3, 1))

    def test_rank_mismatch_raises(self):
        with self.assertRaises(ShapeMismatchError):
            prepare_broadcast((2, 3), (3, 1), (3,), (1,))

    def test_error_carries_operation_name(self):
        with self.assertRaises(ShapeMismatchError) as ctx:
            prepare_broadcast((2,), (1,), (3,), (1,), op="multiply")
        self.assertEqual(ctx.exception.op, "multiply")


class TestExpandAndReduce(unittest.TestCase):
    def test_expand_strides(self):
        self.assertEqual(expand_strides((1, 3), (3, 1), (4, 3)), (0, 1))
        with self.assertRaises(ShapeMismatchError):
            expand_strides((2, 3), (3, 1), (4, 3))

    def test_reduction_plan_offsets_cover_collapsed_axes(self):
        plan = reduction_plan((2, 3), (3, 1), (1, 3))
        self.assertEqual(plan.shape, (1, 3))
        self.assertEqual(plan.out_strides, (3, 1))
        self.assertEqual(plan.inner_offsets, (0, 3))

    def test_reduction_plan_to_single_element(self):
        plan = reduction_plan((2, 2), (2, 1), (1, 1))
        self.assertEqual(plan.inner_offsets, (0, 1, 2, 3))

    def test_reduction_plan_identity(self):
        plan = reduction_plan((2, 2), (2, 1), (2, 2))
        self.assertEqual(plan.inner_offsets, (0,))

    def test_reduction_plan_follows_source_strides(self):
        # (3, 2) view over a column-major buffer
        plan = reduction_plan((3, 2), (1, 3), (1, 2))
        self.assertEqual(plan.src_strides, (1, 3))
        self.assertEqual(plan.inner_offsets, (0, 1, 2))

    def test_reduction_plan_over_several_axes(self):
        plan = reduction_plan((2, 3, 2), (6, 2, 1), (1, 3, 1))
        self.assertEqual(plan.inner_offsets, (0, 1, 6, 7))

    def test_reduction_plan_rank_zero(self):
        plan = reduction_plan((), (), ())
        self.assertEqual(plan.shape, ())
        self.assertEqual(plan.inner_offsets, (0,))

    def test_reduction_plan_large_source(self):
        plan = reduction_plan((500, 500), (500, 1), (1, 1))
        self.assertEqual(len(plan.inner_offsets), 250000)
        self.assertEqual(plan.inner_offsets[:3], (0, 1, 2))
        self.assertEqual(plan.inner_offsets[-1], 249999)

    def test_reduction_plan_rejects_invalid_target(self):
        with self.assertRaises(ShapeMismatchError):
            reduction_plan((2, 3), (3, 1), (2, 2))


class TestPrepareMatmul(unittest.TestCase):
    def test_plain_matrices(self):
        plan = prepare_matmul((2, 3), (3, 1), (3, 4), (4, 1))
        self.assertEqual(plan.shape, (2, 4))
        self.assertEqual(plan.batch, 1)
        self.assertEqual((plan.height, plan.shared, plan.width), (2, 3, 4))
        self.assertEqual(plan.offsets1, (0,))
        self.assertEqual(plan.offsets2, (0,))

    def test_batch_offsets_follow_batch_strides(self):
        plan = prepare_matmul((2, 2, 3), (6, 3, 1), (2, 3, 1), (3, 1, 1))
        self.assertEqual(plan.shape, (2, 2, 1))
        self.assertEqual(plan.offsets1, (0, 6))
        self.assertEqual(plan.offsets2, (0, 3))

    def test_rank_below_two_raises(self):
        with self.assertRaises(ShapeMismatchError):
            prepare_matmul((3,), (1,), (3,), (1,))

    def test_rank_mismatch_raises(self):
        with self.assertRaises(ShapeMismatchError):
            prepare_matmul((2, 2, 3), (6, 3, 1), (3, 4), (4, 1))

    def test_batch_mismatch_raises(self):
        with self.assertRaises(ShapeMismatchError):
            prepare_matmul((2, 2, 3), (6, 3, 1), (3, 3, 4), (12, 4, 1))

    def test_shared_dimension_mismatch_raises(self):
        with self.assertRaises(DimensionMismatchError):
            prepare_matmul((2, 3), (3, 1), (4, 2), (2, 1))


if __name__ == "__main__":
    unittest.main()
