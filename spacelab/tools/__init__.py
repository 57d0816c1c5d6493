"""Small helper functions used throughout the library."""
# Copyright (C) TeNPy Developers, Apache license

from . import misc, string
from .misc import (
    complement_indices,
    duplicate_entries,
    is_iterable,
    is_permutation,
    to_iterable,
    to_valid_idx,
)
from .string import format_like_list

__all__ = ['misc', 'string', 'complement_indices', 'duplicate_entries',
           'is_iterable', 'is_permutation', 'to_iterable', 'to_valid_idx',
           'format_like_list']
