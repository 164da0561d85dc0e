# aad_engine/functions/special.py
from scipy.stats import norm

from .transcendental import _UnaryBackward


class NormCdfBackward(_UnaryBackward):
    """y = N(x), the standard normal CDF. Local partial dN/dx = phi(x)."""

    def local_partial(self, xv):
        return norm.pdf(xv)
