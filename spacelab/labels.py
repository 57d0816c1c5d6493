"""Resolving axis labels into index plans.

The labeled operations in :mod:`spacelab.operations` name the axes of their operands by
arbitrary hashable labels, valid for a single call. The functions in this module translate
those labels into plain integer index lists, or raise a :class:`LabelError`.
They are pure: no tensor is touched and no numeric work happens here.

Labels that occur in only one operand are *open*, labels that occur in both inputs of a
contraction are *contracted*, and labels that occur twice within the same operand of a trace
are *traced*.
"""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

from collections.abc import Hashable, Sequence
from typing import NamedTuple

from .tools.misc import duplicate_entries
from .tools.string import format_like_list

__all__ = ['LabelError', 'TracePlan', 'ContractionPlan', 'resolve_permutation', 'resolve_trace',
           'resolve_contraction']


class LabelError(ValueError):
    """Raised if the axis labels of an operation do not describe a valid operation."""
    pass


class TracePlan(NamedTuple):
    """Index lists for a partial trace ``C = tr(A)``.

    Attributes
    ----------
    open_idcs : list of int
        ``open_idcs[i]`` is the axis of ``A`` that becomes axis ``i`` of ``C``.
    idcs1, idcs2 : list of int
        The pairs ``(idcs1[k], idcs2[k])`` of axes of ``A`` that are traced over.
    """
    open_idcs: list[int]
    idcs1: list[int]
    idcs2: list[int]


class ContractionPlan(NamedTuple):
    """Index lists for a contraction ``C = A * B``.

    Attributes
    ----------
    contracted : list
        The contracted labels, in the order in which they appear in ``A``.
    idcs_a, idcs_b : list of int
        The axes of ``A`` and ``B`` that carry the `contracted` labels, pairwise.
    open_a, open_b : list of int
        The uncontracted axes of ``A`` and ``B``, each in their original order.
    perm_c : list of int
        Permutation from the natural result order ``[*open_a, *open_b]`` to the axis order of
        ``C``, i.e. axis ``i`` of ``C`` is axis ``perm_c[i]`` of the natural result.
    """
    contracted: list[Hashable]
    idcs_a: list[int]
    idcs_b: list[int]
    open_a: list[int]
    open_b: list[int]
    perm_c: list[int]


def _check_length(labels: Sequence[Hashable], num_axes: int, name: str):
    if len(labels) != num_axes:
        msg = f'Expected {num_axes} labels for {name}. Got {len(labels)}: {format_like_list(labels)}'
        raise LabelError(msg)


def _check_unique(labels: Sequence[Hashable], name: str, hint: str = ''):
    dupes = duplicate_entries(labels)
    if dupes:
        msg = f'Duplicate labels for {name}: {format_like_list(dupes)}.{hint}'
        raise LabelError(msg)


def resolve_permutation(labels_src: Sequence[Hashable], labels_dst: Sequence[Hashable],
                        num_axes: int) -> list[int]:
    """The permutation that rearranges axes labelled `labels_src` to the order `labels_dst`.

    Returns
    -------
    perm : list of int
        Such that ``labels_dst[i] == labels_src[perm[i]]``.
    """
    labels_src = list(labels_src)
    labels_dst = list(labels_dst)
    _check_length(labels_src, num_axes, 'source')
    _check_length(labels_dst, num_axes, 'destination')
    _check_unique(labels_src, 'source')
    _check_unique(labels_dst, 'destination')
    if set(labels_src) != set(labels_dst):
        msg = (f'Destination labels {format_like_list(labels_dst)} are not a permutation of '
               f'source labels {format_like_list(labels_src)}')
        raise LabelError(msg)
    return [labels_src.index(l) for l in labels_dst]


def resolve_trace(labels_a: Sequence[Hashable], labels_c: Sequence[Hashable], num_a: int,
                  num_c: int) -> TracePlan:
    """Resolve the labels of a partial trace ``C = tr(A)``.

    Every label of `labels_c` must occur exactly once in `labels_a`. All other labels of
    `labels_a` must occur exactly twice; those pairs are traced, in order of first occurrence.
    """
    labels_a = list(labels_a)
    labels_c = list(labels_c)
    _check_length(labels_a, num_a, 'the traced tensor')
    _check_length(labels_c, num_c, 'the result')
    _check_unique(labels_c, 'the result')

    open_idcs = []
    for l in labels_c:
        positions = [n for n, la in enumerate(labels_a) if la == l]
        if len(positions) != 1:
            msg = f'Open label {l!r} must appear exactly once in the traced tensor. Got {len(positions)}.'
            raise LabelError(msg)
        open_idcs.extend(positions)

    idcs1 = []
    idcs2 = []
    for n, l in enumerate(labels_a):
        if l in labels_c or n in idcs2:
            continue
        positions = [m for m, la in enumerate(labels_a) if la == l]
        if len(positions) != 2:
            msg = f'Traced label {l!r} must appear exactly twice. Got {len(positions)}.'
            raise LabelError(msg)
        idcs1.append(positions[0])
        idcs2.append(positions[1])

    if sorted(open_idcs + idcs1 + idcs2) != list(range(num_a)):
        raise LabelError('invalid trace pattern')
    return TracePlan(open_idcs, idcs1, idcs2)


def resolve_contraction(labels_a: Sequence[Hashable], labels_b: Sequence[Hashable],
                        labels_c: Sequence[Hashable], num_a: int, num_b: int, num_c: int
                        ) -> ContractionPlan:
    """Resolve the labels of a contraction ``C = A * B``.

    Labels that appear in both `labels_a` and `labels_b` are contracted; all other labels must
    appear in `labels_c`. No label may appear twice within one operand.
    """
    labels_a = list(labels_a)
    labels_b = list(labels_b)
    labels_c = list(labels_c)
    _check_length(labels_a, num_a, 'the first operand')
    _check_length(labels_b, num_b, 'the second operand')
    _check_length(labels_c, num_c, 'the result')
    hint = ' Handle inner contraction first with tensortrace.'
    _check_unique(labels_a, 'the first operand', hint)
    _check_unique(labels_b, 'the second operand', hint)
    _check_unique(labels_c, 'the result', hint)

    contracted = [l for l in labels_a if l in labels_b]
    idcs_a = [labels_a.index(l) for l in contracted]
    idcs_b = [labels_b.index(l) for l in contracted]
    open_a = [n for n, l in enumerate(labels_a) if l in labels_c]
    open_b = [n for n, l in enumerate(labels_b) if l in labels_c]

    if not (len(contracted) + len(open_a) == num_a
            and len(contracted) + len(open_b) == num_b
            and len(open_a) + len(open_b) == num_c):
        raise LabelError('invalid contraction pattern')

    natural = [labels_a[n] for n in open_a] + [labels_b[n] for n in open_b]
    perm_c = [natural.index(l) for l in labels_c]
    return ContractionPlan(contracted, idcs_a, idcs_b, open_a, open_b, perm_c)
