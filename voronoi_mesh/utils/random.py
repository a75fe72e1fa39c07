"""
Random number generation utilities.

Every stage that needs randomness (pool shuffling, height jitter) takes a
numpy Generator so a whole run can be reproduced from one seed. Nothing in
the package uses the global ``random`` or ``np.random`` state.
"""

from typing import Optional, Union

import numpy as np

RandomSource = Union[None, int, np.random.Generator]


def make_rng(source: RandomSource = None) -> np.random.Generator:
    """
    Build a Generator from a seed, or pass an existing one through.

    Args:
        source: None for OS entropy, an int seed, or a ready Generator

    Returns:
        numpy Generator
    """
    if isinstance(source, np.random.Generator):
        return source
    return np.random.default_rng(source)
