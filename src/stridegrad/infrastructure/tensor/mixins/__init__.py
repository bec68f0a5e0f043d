"""
Operator mixins composed into `Tensor`.

Each subpackage declares one mixin (`_base.py`) and registers its CPU and
CUDA control paths on import.
"""
