# aad_engine/functions/accumulate_grad.py
import weakref

from ..core.errors import TypeMismatch
from ..core.node import Node
from ..core.variable import Variable


class AccumulateGrad(Node):
    """
    Leaf node of a leaf Variable: gradients arriving here end up in ``variable.grad``.

    It has one input slot and no output edges, so the engine never runs it;
    the gathered gradient is checked as soon as it is complete and handed to
    ``accumulate`` once the whole pass has succeeded. The variable is held
    weakly: a dropped variable simply stops receiving.
    """

    def __init__(self, variable: Variable):
        super().__init__((), num_inputs=1)
        self._variable = weakref.ref(variable)

    @property
    def variable(self):
        return self._variable()

    def check_grads(self, grads):
        grad, var = grads[0], self.variable
        if grad is None or var is None or var.data is None or grad.data is None:
            return
        if var.data.shape != grad.data.shape:
            raise TypeMismatch(
                f"Gradient of shape {grad.data.shape} for variable "
                f"{var.name!r} of shape {var.data.shape}"
            )

    def accumulate(self, grads):
        grad, var = grads[0], self.variable
        if grad is None or var is None:
            return
        # Accumulate: v.grad += g
        if var.grad is None:
            var.grad = Variable(grad.data.copy())
        else:
            var.grad = Variable(var.grad.data + grad.data)
