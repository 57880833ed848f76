"""
Compute utilities shared across PyMLShop modules.
"""

from pymlshop.core.compute.timing import Timer

__all__ = ["Timer"]
