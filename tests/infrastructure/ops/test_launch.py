import unittest

from stridegrad.infrastructure import config_override
from stridegrad.infrastructure.ops._launch import (
    LaunchConfig,
    ceil_div,
    linear_launch,
    matmul_launch,
    serial_launch,
)


class TestLaunchGeometry(unittest.TestCase):
    def test_ceil_div(self):
        self.assertEqual(ceil_div(10, 4), 3)
        self.assertEqual(ceil_div(8, 4), 2)
        self.assertEqual(ceil_div(0, 4), 0)

    def test_linear_launch_covers_every_element(self):
        launch = linear_launch(1000, 256)
        self.assertEqual(launch.grid, (4, 1, 1))
        self.assertEqual(launch.block, (256, 1, 1))
        self.assertEqual(launch.workers_per_block, 256)
        self.assertGreaterEqual(launch.total_workers, 1000)

    def test_linear_launch_uses_configured_block(self):
        with config_override(block_size=32):
            launch = linear_launch(100)
        self.assertEqual(launch.block, (32, 1, 1))
        self.assertEqual(launch.grid, (4, 1, 1))

    def test_empty_problem_gets_one_block(self):
        self.assertEqual(linear_launch(0, 64).grid, (1, 1, 1))

    def test_invalid_block_raises(self):
        with self.assertRaises(ValueError):
            linear_launch(10, 0)

    def test_serial_launch(self):
        self.assertEqual(serial_launch(), LaunchConfig((1, 1, 1), (1, 1, 1)))
        self.assertEqual(serial_launch().total_workers, 1)

    def test_matmul_launch_tiles_columns_rows_batch(self):
        launch = matmul_launch(height=33, width=17, batch=5, tile=16)
        self.assertEqual(launch.grid, (2, 3, 5))
        self.assertEqual(launch.block, (16, 16, 1))

    def test_matmul_launch_uses_configured_tile(self):
        with config_override(matmul_tile=8):
            launch = matmul_launch(8, 8, 1)
        self.assertEqual(launch.grid, (1, 1, 1))
        self.assertEqual(launch.block, (8, 8, 1))

    def test_matmul_launch_invalid_tile_raises(self):
        with self.assertRaises(ValueError):
            matmul_launch(2, 2, 1, tile=0)


if __name__ == "__main__":
    unittest.main()
