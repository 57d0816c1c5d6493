"""Labeled tensor operations with index space checks.

The four in-place entry points :func:`tensorcopy`, :func:`tensoradd`, :func:`tensortrace` and
:func:`tensorcontract` write their result into a given destination tensor, which may be a view.
Each of them first resolves the labels (see :mod:`spacelab.labels`) and checks that all paired
axes have compatible spaces, and only then calls a single in-place kernel of the block backend.
If any check fails, an exception is raised and none of the arguments are modified.

Two axes are *paired* if they carry the same label. An axis of the source and the axis of the
destination that carries the same label must have the same space. Two axes that are traced or
contracted with each other must have mutually dual spaces.

The allocating functions :func:`permute`, :func:`trace` and :func:`contract` derive the spaces
of the result, create it and then call the respective in-place function.
"""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

from collections.abc import Hashable, Sequence
from numbers import Number

from .dtypes import Dtype
from .labels import LabelError, resolve_contraction, resolve_permutation, resolve_trace
from .spaces import ProductSpace, SpaceError
from .tensors import Tensor, check_can_hold, get_same_backend, similar, zeros

__all__ = ['tensorcopy', 'tensoradd', 'tensortrace', 'tensorcontract', 'permute', 'trace',
           'contract', 'scalar']


def _check_num_labels(t: Tensor, labels: Sequence[Hashable], name: str):
    if len(labels) != t.num_axes:
        msg = f'{name} has {t.num_axes} axes, but got {len(labels)} labels.'
        raise LabelError(msg)


def _check_scalars(*scalars):
    for s in scalars:
        if not isinstance(s, Number):
            raise TypeError(f'Expected a number. Got {type(s).__name__}.')


def _result_dtype(dtypes: list[Dtype], scalars: list[Number]) -> Dtype:
    return Dtype.common(*dtypes, *(Dtype.of_scalar(s) for s in scalars))


def _parse_conj(conj) -> bool:
    if isinstance(conj, str):
        if conj == 'C':
            return True
        if conj == 'N':
            return False
    elif conj in [True, False]:
        return bool(conj)
    raise ValueError(f"Invalid conjugation flag {conj!r}. Expected a bool, 'C' or 'N'.")


# IN PLACE


def tensorcopy(src: Tensor, labels_src: Sequence[Hashable], dst: Tensor,
               labels_dst: Sequence[Hashable]) -> Tensor:
    """Copy `src` into `dst`, permuting axes such that labels match.

    Returns
    -------
    dst : Tensor
        The destination, modified in place.
    """
    labels_src = list(labels_src)
    labels_dst = list(labels_dst)
    _check_num_labels(dst, labels_dst, 'Destination')
    perm = resolve_permutation(labels_src, labels_dst, src.num_axes)
    for i, p in enumerate(perm):
        if src.space[p] != dst.space[i]:
            msg = f'Space mismatch for label {labels_dst[i]!r}: {src.space[p]} != {dst.space[i]}'
            raise SpaceError(msg)
    check_can_hold(dst, src.dtype)
    backend = get_same_backend(src, dst)
    backend.copy_into(src.data, perm, dst.data)
    return dst


def tensoradd(alpha: Number, src: Tensor, labels_src: Sequence[Hashable], beta: Number,
              dst: Tensor, labels_dst: Sequence[Hashable]) -> Tensor:
    """Update ``dst = beta * dst + alpha * src``, permuting axes of `src` such that labels match.

    For ``beta == 0``, the previous entries of `dst` are discarded, even if they are NaN.

    Returns
    -------
    dst : Tensor
        The destination, modified in place.
    """
    labels_src = list(labels_src)
    labels_dst = list(labels_dst)
    _check_scalars(alpha, beta)
    _check_num_labels(dst, labels_dst, 'Destination')
    perm = resolve_permutation(labels_src, labels_dst, src.num_axes)
    for i, p in enumerate(perm):
        if src.space[p] != dst.space[i]:
            msg = f'Space mismatch for label {labels_dst[i]!r}: {src.space[p]} != {dst.space[i]}'
            raise SpaceError(msg)
    check_can_hold(dst, _result_dtype([src.dtype], [alpha, beta]))
    backend = get_same_backend(src, dst)
    backend.add_into(alpha, src.data, perm, beta, dst.data)
    return dst


def tensortrace(alpha: Number, a: Tensor, labels_a: Sequence[Hashable], beta: Number, c: Tensor,
                labels_c: Sequence[Hashable]) -> Tensor:
    """Update ``c = beta * c + alpha * tr(a)``, a partial trace over repeated labels.

    Labels that appear twice in `labels_a` are traced over; the two traced axes must have
    mutually dual spaces. All other labels must appear in `labels_c`.
    If `a` and `c` have the same number of axes, nothing is traced and this is
    equivalent to :func:`tensoradd`.

    Returns
    -------
    c : Tensor
        The destination, modified in place.
    """
    labels_a = list(labels_a)
    labels_c = list(labels_c)
    if a.num_axes == c.num_axes:
        return tensoradd(alpha, a, labels_a, beta, c, labels_c)
    _check_scalars(alpha, beta)
    plan = resolve_trace(labels_a, labels_c, a.num_axes, c.num_axes)
    for i, n in enumerate(plan.open_idcs):
        if a.space[n] != c.space[i]:
            msg = f'Space mismatch for label {labels_c[i]!r}: {a.space[n]} != {c.space[i]}'
            raise SpaceError(msg)
    for i1, i2 in zip(plan.idcs1, plan.idcs2):
        if a.space[i1] != a.space[i2].dual:
            msg = (f'Can not trace over label {labels_a[i1]!r}: '
                   f'{a.space[i1]} and {a.space[i2]} are not dual.')
            raise SpaceError(msg)
    check_can_hold(c, _result_dtype([a.dtype], [alpha, beta]))
    backend = get_same_backend(a, c)
    backend.trace_add_into(alpha, a.data, plan.idcs1, plan.idcs2, plan.open_idcs, beta, c.data)
    return c


def tensorcontract(alpha: Number, a: Tensor, labels_a: Sequence[Hashable], conj_a: bool | str,
                   b: Tensor, labels_b: Sequence[Hashable], conj_b: bool | str, beta: Number,
                   c: Tensor, labels_c: Sequence[Hashable]) -> Tensor:
    """Update ``c = beta * c + alpha * a * b``, contracting over common labels.

    Parameters
    ----------
    alpha, beta : Number
        The scale factors.
    a, b : Tensor
        The two operands.
    labels_a, labels_b : list of hashable
        Labels for the axes of `a` and `b`. Labels that appear in both are contracted,
        all others must appear in `labels_c`. A label may appear at most once per operand,
        use :func:`tensortrace` to handle inner contractions first.
    conj_a, conj_b : bool | {'C', 'N'}
        If the respective operand is complex conjugated before contraction.
        A conjugated operand acts with the duals of its axis spaces.
    c : Tensor
        The destination.
    labels_c : list of hashable
        Labels for the axes of `c`.

    Returns
    -------
    c : Tensor
        The destination, modified in place.
    """
    conj_a = _parse_conj(conj_a)
    conj_b = _parse_conj(conj_b)
    _check_scalars(alpha, beta)
    labels_a = list(labels_a)
    labels_b = list(labels_b)
    labels_c = list(labels_c)
    plan = resolve_contraction(labels_a, labels_b, labels_c, a.num_axes, b.num_axes, c.num_axes)
    for l, i, j in zip(plan.contracted, plan.idcs_a, plan.idcs_b):
        expect = b.space[j].dual if conj_a == conj_b else b.space[j]
        if a.space[i] != expect:
            msg = f'Space mismatch for contracted label {l!r}: {a.space[i]} != {expect}'
            raise SpaceError(msg)
    open_spaces = _open_spaces(a, b, plan.open_a, plan.open_b, conj_a, conj_b)
    for k, p in enumerate(plan.perm_c):
        if c.space[k] != open_spaces[p]:
            msg = f'Space mismatch for label {labels_c[k]!r}: {open_spaces[p]} != {c.space[k]}'
            raise SpaceError(msg)
    check_can_hold(c, _result_dtype([a.dtype, b.dtype], [alpha, beta]))
    backend = get_same_backend(a, b, c)
    backend.contract_add_into(alpha, a.data, conj_a, b.data, conj_b, plan.idcs_a, plan.idcs_b,
                              plan.perm_c, beta, c.data)
    return c


def _open_spaces(a: Tensor, b: Tensor, open_a: list[int], open_b: list[int], conj_a: bool,
                 conj_b: bool) -> list:
    """The spaces of the open axes of a contraction, in the order ``[*open_a, *open_b]``."""
    res = [a.space[i].dual if conj_a else a.space[i] for i in open_a]
    res.extend(b.space[j].dual if conj_b else b.space[j] for j in open_b)
    return res


# ALLOCATING


def permute(src: Tensor, labels_src: Sequence[Hashable], labels_dst: Sequence[Hashable]
            ) -> Tensor:
    """A new tensor with the axes of `src` rearranged from order `labels_src` to `labels_dst`."""
    perm = resolve_permutation(labels_src, labels_dst, src.num_axes)
    dst = similar(src, space=src.space.permuted(perm))
    return tensorcopy(src, labels_src, dst, labels_dst)


def trace(a: Tensor, labels_a: Sequence[Hashable], labels_c: Sequence[Hashable] = None
          ) -> Tensor:
    """A new tensor, the partial trace of `a` over all repeated labels.

    By default, the result has the labels that appear only once, in order of appearance.
    """
    labels_a = list(labels_a)
    if labels_c is None:
        labels_c = [l for l in labels_a if labels_a.count(l) == 1]
    labels_c = list(labels_c)
    plan = resolve_trace(labels_a, labels_c, a.num_axes, len(labels_c))
    c = similar(a, space=a.space[plan.open_idcs])
    return tensortrace(1, a, labels_a, 0, c, labels_c)


def contract(a: Tensor, labels_a: Sequence[Hashable], b: Tensor, labels_b: Sequence[Hashable],
             labels_c: Sequence[Hashable] = None, conj_a: bool | str = False,
             conj_b: bool | str = False) -> Tensor:
    """A new tensor, the contraction of `a` and `b` over their common labels.

    By default, the result has the open labels of `a` followed by the open labels of `b`.
    See :func:`tensorcontract`.
    """
    labels_a = list(labels_a)
    labels_b = list(labels_b)
    if labels_c is None:
        labels_c = [l for l in labels_a if l not in labels_b]
        labels_c.extend(l for l in labels_b if l not in labels_a)
    labels_c = list(labels_c)
    conj_a = _parse_conj(conj_a)
    conj_b = _parse_conj(conj_b)
    plan = resolve_contraction(labels_a, labels_b, labels_c, a.num_axes, b.num_axes,
                               len(labels_c))
    open_spaces = _open_spaces(a, b, plan.open_a, plan.open_b, conj_a, conj_b)
    space = ProductSpace([open_spaces[p] for p in plan.perm_c])
    c = zeros(space, Dtype.common(a.dtype, b.dtype), get_same_backend(a, b))
    return tensorcontract(1, a, labels_a, conj_a, b, labels_b, conj_b, 0, c, labels_c)


def scalar(t: Tensor) -> float | complex:
    """The single entry of a tensor without axes, e.g. the result of a full contraction."""
    if t.num_axes != 0:
        raise ValueError(f'Expected a tensor without axes. Got {t.num_axes} axes.')
    return t.item()
