import unittest

import numpy as np

import stridegrad as sg
from stridegrad.domain import IndexOutOfRangeError
from stridegrad.infrastructure import config_override
from stridegrad.infrastructure.tensor import Tensor


def _t(values, shape, dtype=np.float32):
    return Tensor.from_vector(values, shape, dtype=dtype)


class TestUnary(unittest.TestCase):
    def setUp(self):
        self.x = _t([-2, -0.5, 0, 0.5, 3, -1], (2, 3))

    def test_relu(self):
        np.testing.assert_array_equal(
            self.x.relu().to_numpy(), [[0, 0, 0], [0.5, 3, 0]]
        )

    def test_relu_d_is_zero_at_zero(self):
        np.testing.assert_array_equal(
            self.x.relu_d().to_numpy(), [[0, 0, 0], [1, 1, 0]]
        )

    def test_negate(self):
        np.testing.assert_array_equal(
            (-self.x).to_numpy(), [[2, 0.5, 0], [-0.5, -3, 1]]
        )
        np.testing.assert_array_equal(sg.negate(self.x).to_numpy(), (-self.x).to_numpy())

    def test_negate_twice_restores_values(self):
        np.testing.assert_array_equal((-(-self.x)).to_numpy(), self.x.to_numpy())
        v = self.x.transpose(0, 1)
        np.testing.assert_array_equal((-(-v)).to_numpy(), v.to_numpy())

    def test_unary_on_view_produces_row_major(self):
        v = self.x.transpose(0, 1)
        out = v.relu()
        self.assertEqual(out.shape, (3, 2))
        self.assertEqual(out.strides, (2, 1))
        np.testing.assert_array_equal(out.to_numpy(), [[0, 0.5], [0, 3], [0, 0]])

    def test_functional_forms(self):
        np.testing.assert_array_equal(sg.relu(self.x).to_numpy(), self.x.relu().to_numpy())
        np.testing.assert_array_equal(
            sg.relu_d(self.x).to_numpy(), self.x.relu_d().to_numpy()
        )


class TestSum(unittest.TestCase):
    def test_sum_shape_keeps_rank(self):
        t = _t([1, 2, 3, 4, 5, 6], (2, 3))
        s = t.sum()
        self.assertEqual(s.shape, (1, 1))
        self.assertEqual(s[0, 0], 21.0)
        self.assertEqual(sg.sum(t)[0, 0], 21.0)

    def test_sum_rank_zero_and_one(self):
        self.assertEqual(_t([5], ()).sum()[()], 5.0)
        self.assertEqual(_t([1, 2, 3], (3,)).sum()[0], 6.0)

    def test_sum_of_view(self):
        t = _t([1, 2, 3, 4, 5, 6], (2, 3)).transpose(0, 1)
        self.assertEqual(t.sum().shape, (1, 1))
        self.assertEqual(t.sum()[0, 0], 21.0)

    def test_sum_accumulates_in_row_major_order(self):
        # float32 addition is not associative; the serial order is observable
        values = np.array([1e8, 1.0, -1e8, 1.0], dtype=np.float32)
        total = np.float32(0)
        for v in values:
            total = np.float32(total + v)
        t = Tensor.from_vector(values, (4,))
        self.assertEqual(t.sum()[0], float(total))

    def test_sum_independent_of_block_size(self):
        t = Tensor.random_uniform(-1.0, 1.0, (7, 13), generator=np.random.default_rng(1))
        reference = t.sum()[0, 0]
        for block in (1, 3, 64, 1024):
            with config_override(block_size=block):
                self.assertEqual(t.sum()[0, 0], reference)


class TestTranspose(unittest.TestCase):
    def test_view_shares_buffer(self):
        t = _t(list(range(24)), (2, 3, 4))
        v = t.transpose(0, 2)
        self.assertIs(v.data, t.data)
        self.assertEqual(v.shape, (4, 3, 2))
        self.assertEqual(v.strides, (1, 4, 12))
        self.assertEqual(v[3, 1, 0], t[0, 1, 3])

    def test_negative_dims(self):
        t = _t(list(range(6)), (1, 2, 3))
        v = sg.transpose(t, -1, -2)
        self.assertEqual(v.shape, (1, 3, 2))
        np.testing.assert_array_equal(
            v.to_numpy(), np.arange(6, dtype=np.float32).reshape(1, 2, 3).transpose(0, 2, 1)
        )

    def test_double_transpose_restores_layout(self):
        t = _t(list(range(6)), (2, 3))
        v = t.transpose(0, 1).transpose(1, 0)
        self.assertEqual(v.shape, t.shape)
        self.assertEqual(v.strides, t.strides)

    def test_double_transpose_is_element_equal(self):
        t = _t(list(range(24)), (2, 3, 4))
        for i, j in [(0, 1), (0, 2), (1, 2), (2, 2)]:
            v = t.transpose(i, j).transpose(i, j)
            self.assertEqual(v.shape, t.shape)
            for index in np.ndindex(*t.shape):
                self.assertEqual(v[index], t[index])

    def test_same_axis_is_identity_view(self):
        t = _t(list(range(6)), (2, 3))
        v = t.transpose(1, 1)
        self.assertEqual(v.strides, (3, 1))
        self.assertIs(v.data, t.data)

    def test_out_of_range_dim_raises(self):
        t = _t(list(range(6)), (2, 3))
        with self.assertRaises(IndexOutOfRangeError):
            t.transpose(0, 2)

    def test_untracked_view_has_no_node(self):
        t = _t(list(range(6)), (2, 3))
        self.assertIsNone(t.transpose(0, 1).backward_node)


class TestCopyKernels(unittest.TestCase):
    def test_clone_materializes_view(self):
        v = _t(list(range(6)), (2, 3)).transpose(0, 1)
        c = v._clone()
        self.assertIsNot(c.data, v.data)
        self.assertEqual(c.strides, (2, 1))
        np.testing.assert_array_equal(c.to_numpy(), v.to_numpy())

    def test_broadcast_to(self):
        row = _t([1, 2, 3], (1, 3))
        out = row._broadcast_to((2, 3))
        np.testing.assert_array_equal(out.to_numpy(), [[1, 2, 3], [1, 2, 3]])
        self.assertIs(row._broadcast_to((1, 3)), row)

    def test_sum_to_shape(self):
        t = _t([1, 2, 3, 4, 5, 6], (2, 3))
        np.testing.assert_array_equal(t._sum_to_shape((1, 3)).to_numpy(), [[5, 7, 9]])
        np.testing.assert_array_equal(t._sum_to_shape((2, 1)).to_numpy(), [[6], [15]])
        np.testing.assert_array_equal(t._sum_to_shape((1, 1)).to_numpy(), [[21]])
        self.assertIs(t._sum_to_shape((2, 3)), t)


if __name__ == "__main__":
    unittest.main()
