"""
Number helpers shared by the CSV importer and product validation.
"""

import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves toward +infinity.

    2.5 -> 3, -2.5 -> -2, 0.49 -> 0.
    """
    return int(math.floor(value + 0.5))
