"""
Commonly used type aliases.
"""

__all__ = ["Shape3", "Grid", "JSON"]

from typing import TypeAlias

import numpy as np

Shape3: TypeAlias = tuple[int, int, int]
""" The `(frames, height, width)` shape of a 3D data grid. """

Grid: TypeAlias = np.ndarray[Shape3, np.dtype[np.float32]]
""" A 3D [`float32`][numpy.float32] data grid of shape `(frames, height, width)`. """

JSON: TypeAlias = None | int | float | str | bool | list["JSON"] | dict[str, "JSON"]
""" Types that are valid JSON and can be encoded with [`json.dumps`][json.dumps]. """
