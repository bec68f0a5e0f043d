"""
Launch geometry for the kernel catalog.

Every kernel in `stridegrad.infrastructure.ops` is written against an
explicit grid of blocks of workers, on both backends:

- elementwise and reduce-to-shape kernels use a one-dimensional launch with
  one worker per output element (`linear_launch`),
- the full-sum kernel uses exactly one worker (`serial_launch`),
- the matrix multiply uses a two-dimensional (row, column) tile replicated
  over a batch grid dimension (`matmul_launch`).

Block sizes come from the active `EngineConfig` unless given explicitly. A
launch may contain more workers than outputs; surplus workers do nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .._config import get_config

# CUDA limit for gridDim.y / gridDim.z
MAX_GRID_YZ = 65535


@dataclass(frozen=True)
class LaunchConfig:
    """
    Grid and block dimensions of one kernel launch.

    Attributes
    ----------
    grid : tuple[int, int, int]
        Number of blocks along (x, y, z).
    block : tuple[int, int, int]
        Number of workers per block along (x, y, z).
    """

    grid: tuple[int, int, int]
    block: tuple[int, int, int]

    @property
    def workers_per_block(self) -> int:
        bx, by, bz = self.block
        return bx * by * bz

    @property
    def total_workers(self) -> int:
        gx, gy, gz = self.grid
        return gx * gy * gz * self.workers_per_block


def ceil_div(a: int, b: int) -> int:
    return -(-int(a) // int(b))


def linear_launch(n: int, block_size: Optional[int] = None) -> LaunchConfig:
    """
    One worker per element, `block_size` workers per block.

    An empty problem still gets one block so that launch bookkeeping stays
    uniform; every worker in it is masked out.
    """
    block = int(block_size if block_size is not None else get_config().block_size)
    if block <= 0:
        raise ValueError(f"block_size must be positive, got {block}")
    grid = max(1, ceil_div(n, block))
    return LaunchConfig(grid=(grid, 1, 1), block=(block, 1, 1))


def serial_launch() -> LaunchConfig:
    """A single block with a single worker."""
    return LaunchConfig(grid=(1, 1, 1), block=(1, 1, 1))


def matmul_launch(
    height: int, width: int, batch: int, tile: Optional[int] = None
) -> LaunchConfig:
    """
    Tile launch for a batched matrix multiply.

    The x axis covers output columns, the y axis output rows and the z axis
    the flattened batch index.
    """
    t = int(tile if tile is not None else get_config().matmul_tile)
    if t <= 0:
        raise ValueError(f"matmul tile must be positive, got {t}")
    return LaunchConfig(
        grid=(max(1, ceil_div(width, t)), max(1, ceil_div(height, t)), max(1, int(batch))),
        block=(t, t, 1),
    )
