"""Miscellaneous tools, somewhat random mix yet often helpful."""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

from collections.abc import Hashable, Sequence
from typing import TypeVar

__all__ = ['duplicate_entries', 'is_iterable', 'to_iterable', 'to_valid_idx',
           'is_permutation', 'complement_indices']

_T = TypeVar('_T')  # used in typing some functions


def duplicate_entries(seq: Sequence[_T], ignore: Sequence[_T] = []) -> set[_T]:
    """The duplicate entries in a sequence, with exceptions from `ignore`."""
    return set(ele for idx, ele in enumerate(seq) if ele in seq[idx + 1:] and ele not in ignore)


def is_iterable(a):
    """If the given object is iterable."""
    try:
        iter(a)
    except TypeError:
        return False
    return True


def to_iterable(a):
    """If `a` is a not iterable or a string, return ``[a]``, else return ``a``."""
    if type(a) is str:
        return [a]
    if is_iterable(a):
        return a
    return [a]


def to_valid_idx(idx: int, length: int) -> int:
    """Convert to a valid non-negative index into the given `length`, if possible."""
    if not -length <= idx < length:
        raise IndexError(f'Index {idx} out of bounds for length {length}')
    if idx < 0:
        idx += length
    return idx


def is_permutation(perm: Sequence[Hashable], length: int) -> bool:
    """If `perm` contains every integer in ``range(length)`` exactly once."""
    return len(perm) == length and set(perm) == set(range(length))


def complement_indices(idcs: Sequence[int], length: int) -> list[int]:
    """The indices in ``range(length)`` that do not appear in `idcs`, in ascending order."""
    return [i for i in range(length) if i not in idcs]
