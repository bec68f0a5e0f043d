import unittest

import numpy as np

from stridegrad.domain import ShapeMismatchError, UngradientedTensorError
from stridegrad.infrastructure import config_override, enable_grad, is_grad_enabled, no_grad
from stridegrad.infrastructure.autograd import (
    AccumulateGradients,
    AddBackward,
    MatrixMultiplyBackward,
    MultiplyBackward,
    NegateBackward,
    ReluBackward,
    SubtractBackward,
    SumBackward,
    TransposeBackward,
    topological_order,
)
from stridegrad.infrastructure.tensor import Tensor


def _t(values, shape, dtype=np.float32):
    return Tensor.from_vector(values, shape, dtype=dtype)


def _grad(t):
    return t.gradients().to_numpy()


class TestNodeWiring(unittest.TestCase):
    def test_requires_gradients_attaches_leaf(self):
        x = _t([1, 2], (2,))
        self.assertIs(x.requires_gradients(), x)
        self.assertIsInstance(x.backward_node, AccumulateGradients)

    def test_each_operation_records_its_node(self):
        a = _t([1, 2, 3, 4], (2, 2)).requires_gradients()
        b = _t([1, 1, 1, 1], (2, 2))
        self.assertIsInstance((a + b).backward_node, AddBackward)
        self.assertIsInstance((a - b).backward_node, SubtractBackward)
        self.assertIsInstance((a * b).backward_node, MultiplyBackward)
        self.assertIsInstance((-a).backward_node, NegateBackward)
        self.assertIsInstance(a.mm(b).backward_node, MatrixMultiplyBackward)
        self.assertIsInstance(a.relu().backward_node, ReluBackward)
        self.assertIsInstance(a.sum().backward_node, SumBackward)
        self.assertIsInstance(a.transpose(0, 1).backward_node, TransposeBackward)

    def test_predecessors_follow_operand_order(self):
        a = _t([1, 2], (2,)).requires_gradients()
        b = _t([3, 4], (2,))
        node = (b * a).backward_node
        self.assertEqual(len(node.predecessors), 2)
        self.assertIsNone(node.predecessors[0])
        self.assertIs(node.predecessors[1], a.backward_node)

    def test_untracked_operands_record_nothing(self):
        a = _t([1, 2], (2,))
        self.assertIsNone((a * a).backward_node)
        self.assertIsNone(a.relu_d().backward_node)

    def test_relu_d_is_never_tracked(self):
        a = _t([1, -2], (2,)).requires_gradients()
        self.assertIsNone(a.relu_d().backward_node)


class TestGradientRules(unittest.TestCase):
    def setUp(self):
        self.a = _t([1, 2, 3, 4, 5, 6], (2, 3)).requires_gradients()
        self.b = _t([6, 5, 4, 3, 2, 1], (2, 3)).requires_gradients()

    def test_add(self):
        (self.a + self.b).sum().backward()
        np.testing.assert_array_equal(_grad(self.a), np.ones((2, 3)))
        np.testing.assert_array_equal(_grad(self.b), np.ones((2, 3)))

    def test_subtract(self):
        (self.a - self.b).sum().backward()
        np.testing.assert_array_equal(_grad(self.a), np.ones((2, 3)))
        np.testing.assert_array_equal(_grad(self.b), -np.ones((2, 3)))

    def test_multiply(self):
        (self.a * self.b).sum().backward()
        np.testing.assert_array_equal(_grad(self.a), self.b.to_numpy())
        np.testing.assert_array_equal(_grad(self.b), self.a.to_numpy())

    def test_multiply_single_values(self):
        a = _t([2], (1,)).requires_gradients()
        b = _t([3], (1,)).requires_gradients()
        (a * b).sum().backward()
        self.assertEqual(a.gradients()[0], 3.0)
        self.assertEqual(b.gradients()[0], 2.0)

    def test_negate(self):
        (-self.a).sum().backward()
        np.testing.assert_array_equal(_grad(self.a), -np.ones((2, 3)))

    def test_relu(self):
        x = _t([-1, 2, 0, 3], (2, 2)).requires_gradients()
        x.relu().sum().backward()
        np.testing.assert_array_equal(_grad(x), [[0, 1], [0, 1]])

    def test_sum_gradient_has_input_shape(self):
        self.a.sum().backward()
        g = self.a.gradients()
        self.assertEqual(g.shape, (2, 3))
        np.testing.assert_array_equal(g.to_numpy(), np.ones((2, 3)))

    def test_matmul(self):
        w = _t([1, -1, 2, 0, 0.5, 1], (3, 2)).requires_gradients()
        self.a.mm(w).sum().backward()
        a_host = self.a.to_numpy()
        w_host = w.to_numpy()
        ones = np.ones((2, 2), dtype=np.float32)
        np.testing.assert_array_equal(_grad(self.a), ones @ w_host.T)
        np.testing.assert_array_equal(_grad(w), a_host.T @ ones)

    def test_batched_matmul(self):
        rng = np.random.default_rng(5)
        a_host = rng.integers(-3, 4, size=(2, 2, 3)).astype(np.float64)
        b_host = rng.integers(-3, 4, size=(2, 3, 4)).astype(np.float64)
        a = _t(a_host.reshape(-1), a_host.shape, dtype=np.float64).requires_gradients()
        b = _t(b_host.reshape(-1), b_host.shape, dtype=np.float64).requires_gradients()
        a.mm(b).sum().backward()
        ones = np.ones((2, 2, 4))
        np.testing.assert_array_equal(_grad(a), ones @ b_host.transpose(0, 2, 1))
        np.testing.assert_array_equal(_grad(b), a_host.transpose(0, 2, 1) @ ones)

    def test_transpose(self):
        w = _t([1, 2, 3, 4, 5, 6], (3, 2))
        (self.a.transpose(0, 1) * w).sum().backward()
        g = self.a.gradients()
        self.assertEqual(g.shape, (2, 3))
        np.testing.assert_array_equal(g.to_numpy(), w.to_numpy().T)

    def test_explicit_output_gradient(self):
        y = self.a * 2
        seed = _t([1, 0, -1, 2, 0.5, 0], (2, 3))
        y.backward(seed)
        np.testing.assert_array_equal(_grad(self.a), seed.to_numpy() * 2)

    def test_untracked_operand_receives_nothing(self):
        c = _t([1, 1, 1, 1, 1, 1], (2, 3))
        (self.a * c).sum().backward()
        np.testing.assert_array_equal(_grad(self.a), np.ones((2, 3)))
        self.assertIsNone(c.backward_node)


class TestBroadcastGradients(unittest.TestCase):
    def test_add_reduces_to_operand_shape(self):
        a = _t([1, 2, 3, 4, 5, 6], (2, 3)).requires_gradients()
        row = _t([10, 20, 30], (1, 3)).requires_gradients()
        (a + row).sum().backward()
        self.assertEqual(row.gradients().shape, (1, 3))
        np.testing.assert_array_equal(_grad(row), [[2, 2, 2]])
        np.testing.assert_array_equal(_grad(a), np.ones((2, 3)))

    def test_multiply_reduces_to_operand_shape(self):
        a = _t([1, 2, 3, 4, 5, 6], (2, 3)).requires_gradients()
        col = _t([2, -1], (2, 1)).requires_gradients()
        (a * col).sum().backward()
        np.testing.assert_array_equal(_grad(col), [[6], [15]])
        np.testing.assert_array_equal(_grad(a), [[2, 2, 2], [-1, -1, -1]])

    def test_scalar_operand(self):
        a = _t([1, 2, 3], (1, 3)).requires_gradients()
        (3 * a - 1).sum().backward()
        np.testing.assert_array_equal(_grad(a), [[3, 3, 3]])


class TestAccumulation(unittest.TestCase):
    def test_shared_subexpression_sums_paths(self):
        x = _t([1, -2, 3], (3,)).requires_gradients()
        (x * x).sum().backward()
        np.testing.assert_array_equal(_grad(x), [2, -4, 6])

    def test_diamond_graph(self):
        x = _t([1, 2], (2,)).requires_gradients()
        y = x + x
        z = y * x
        # z = 2x^2, dz/dx = 4x
        z.sum().backward()
        np.testing.assert_array_equal(_grad(x), [4, 8])

    def test_repeated_backward_accumulates(self):
        x = _t([1, 2], (2,)).requires_gradients()
        w = _t([3, 4], (2,))
        (x * w).sum().backward()
        (x * w).sum().backward()
        np.testing.assert_array_equal(_grad(x), [6, 8])

    def test_zero_gradients(self):
        x = _t([1, 2], (2,)).requires_gradients()
        x.sum().backward()
        x.zero_gradients()
        with self.assertRaises(UngradientedTensorError):
            x.gradients()
        x.sum().backward()
        np.testing.assert_array_equal(_grad(x), [1, 1])

    def test_append_policy_keeps_each_contribution(self):
        x = _t([1, -2, 3], (3,)).requires_gradients()
        with config_override(gradient_accumulation="append"):
            (x * x).sum().backward()
        stored = x.backward_node.gradients
        self.assertEqual(len(stored), 2)
        np.testing.assert_array_equal(stored[0].to_numpy(), [1, -2, 3])
        np.testing.assert_array_equal(stored[1].to_numpy(), [1, -2, 3])
        np.testing.assert_array_equal(_grad(x), [1, -2, 3])

    def test_gradients_carry_no_graph(self):
        a = _t([1, 2], (2,)).requires_gradients()
        b = _t([3, 4], (2,)).requires_gradients()
        (a * b).sum().backward()
        self.assertIsNone(a.gradients().backward_node)


class TestGraphTraversal(unittest.TestCase):
    def test_long_chain_does_not_exhaust_the_stack(self):
        x = _t([1, 2], (2,)).requires_gradients()
        y = x
        for _ in range(2000):
            y = y + x
        y.sum().backward()
        np.testing.assert_array_equal(_grad(x), [2001, 2001])

    def test_repeated_doubling_visits_each_node_once(self):
        x = _t([1, 3], (2,)).requires_gradients()
        y = x
        for _ in range(20):
            y = y + y
        root = y.sum().backward_node
        # sum, twenty additions, one leaf
        self.assertEqual(len(topological_order(root)), 22)
        y.sum().backward()
        np.testing.assert_array_equal(_grad(x), [2**20, 2**20])

    def test_nodes_precede_their_predecessors(self):
        x = _t([1, 2], (2,)).requires_gradients()
        w = _t([3, 4], (2,)).requires_gradients()
        h = x * w
        z = (h + h.relu()).sum()
        order = topological_order(z.backward_node)
        position = {node: i for i, node in enumerate(order)}
        self.assertIs(order[0], z.backward_node)
        for node in order:
            for pred in node.predecessors:
                if pred is not None:
                    self.assertLess(position[node], position[pred])

    def test_shared_node_receives_summed_gradient(self):
        x = _t([1, -2], (2,)).requires_gradients()
        h = x * 3
        # h feeds three paths; its route sees 1 + 2 - 1 = 2 per element
        (h + h * 2 - h).sum().backward()
        np.testing.assert_array_equal(_grad(x), [6, 6])


class TestBackwardErrors(unittest.TestCase):
    def test_untracked_tensor(self):
        t = _t([1, 2], (2,))
        with self.assertRaises(UngradientedTensorError):
            t.backward(_t([1, 1], (2,)))
        with self.assertRaises(UngradientedTensorError):
            t.gradients()
        with self.assertRaises(UngradientedTensorError):
            t.zero_gradients()

    def test_gradients_before_backward(self):
        x = _t([1, 2], (2,)).requires_gradients()
        with self.assertRaises(UngradientedTensorError):
            x.gradients()

    def test_implicit_seed_needs_single_element(self):
        x = _t([1, 2], (2,)).requires_gradients()
        with self.assertRaises(ShapeMismatchError):
            (x * 2).backward()

    def test_gradient_shape_must_match(self):
        x = _t([1, 2], (2,)).requires_gradients()
        with self.assertRaises(ShapeMismatchError):
            (x * 2).backward(_t([1, 1, 1], (3,)))

    def test_gradient_dtype_must_match(self):
        x = _t([1, 2], (2,)).requires_gradients()
        with self.assertRaises(TypeError):
            (x * 2).backward(_t([1, 1], (2,), dtype=np.float64))


class TestGradMode(unittest.TestCase):
    def test_no_grad_skips_recording(self):
        x = _t([1, 2], (2,)).requires_gradients()
        with no_grad():
            self.assertFalse(is_grad_enabled())
            y = (x * x).sum()
            v = x.transpose(0, 0)
        self.assertTrue(is_grad_enabled())
        self.assertIsNone(y.backward_node)
        self.assertIsNone(v.backward_node)

    def test_enable_grad_inside_no_grad(self):
        x = _t([1, 2], (2,)).requires_gradients()
        with no_grad():
            with enable_grad():
                y = x * x
            z = x * x
        self.assertIsNotNone(y.backward_node)
        self.assertIsNone(z.backward_node)

    def test_state_restored_after_error(self):
        with self.assertRaises(RuntimeError):
            with no_grad():
                raise RuntimeError("boom")
        self.assertTrue(is_grad_enabled())


if __name__ == "__main__":
    unittest.main()
