"""
Model selection and tuning.

Public API:
    SelectedModel(*models, control, metrics, stat, cutoff)
    TunedModel(model, grid, fixed, control, metrics, stat, cutoff)
    Grid(size, random), expand_params(**values)
    TrainBits
"""

from pymlshop.selection.grid import Grid, as_grid, expand_params
from pymlshop.selection.models import SelectedModel, TunedModel
from pymlshop.selection.trainbits import TrainBits, select_index

__all__ = [
    "Grid",
    "as_grid",
    "expand_params",
    "SelectedModel",
    "TunedModel",
    "TrainBits",
    "select_index",
]
