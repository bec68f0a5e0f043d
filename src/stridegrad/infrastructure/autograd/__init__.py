from ._backward import (
    BackwardNode,
    AccumulateGradients,
    NegateBackward,
    AddBackward,
    SubtractBackward,
    MultiplyBackward,
    MatrixMultiplyBackward,
    ReluBackward,
    SumBackward,
    TransposeBackward,
    run_backward,
    topological_order,
)
from ._grad_mode import no_grad, enable_grad, is_grad_enabled

__all__ = [
    BackwardNode.__name__,
    AccumulateGradients.__name__,
    NegateBackward.__name__,
    AddBackward.__name__,
    SubtractBackward.__name__,
    MultiplyBackward.__name__,
    MatrixMultiplyBackward.__name__,
    ReluBackward.__name__,
    SumBackward.__name__,
    TransposeBackward.__name__,
    run_backward.__name__,
    topological_order.__name__,
    no_grad.__name__,
    enable_grad.__name__,
    is_grad_enabled.__name__,
]
