"""Tools for testing."""
# Copyright (C) TeNPy Developers, Apache license
from . import asserting, random_generation
from .asserting import assert_tensors_almost_equal
from .random_generation import (
    random_block,
    random_product_space,
    random_space,
    random_tensor,
)

__all__ = ['asserting', 'random_generation', 'assert_tensors_almost_equal', 'random_block',
           'random_product_space', 'random_space', 'random_tensor']
