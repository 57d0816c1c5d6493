"""Matrix factorizations of tensors.

All factorizations view a tensor as a linear map (a matrix) between a *left* and a *right* group
of axes, given by a bipartition ``(leftind, rightind)`` of its axes. The data is permuted to the
order ``[*leftind, *rightind]`` and copied to a ``(leftdim, rightdim)`` matrix, which is
factorized by the block backend. The factors are tensors again, connected by a new *bond* space
of the same kind as the spaces of the input.

Factorizations only make sense for axes without internal structure, i.e. every space of the
tensor must be a :class:`~spacelab.spaces.ScalarSpace`.
"""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from .block_backends import Block
from .dummy_config import config
from .spaces import CartesianSpace, IndexSpace, ProductSpace, SpaceError
from .tensors import Tensor, _check_scalar_spaces
from .tools.misc import complement_indices, is_permutation, to_iterable, to_valid_idx

__all__ = ['svd', 'svdtrunc', 'leftorth', 'rightorth', 'pinv', 'eig', 'inv']

logger = logging.getLogger(__name__)


def _bipartition(t: Tensor, leftind, rightind, transposed: bool = False
                 ) -> tuple[Block, ProductSpace, ProductSpace]:
    """Reshape `t` to a matrix ``(leftdim, rightdim)``, or ``(rightdim, leftdim)`` if `transposed`.

    Returns the matrix (a copy) and the left and right spaces.
    """
    _check_scalar_spaces(t)
    N = t.num_axes
    leftind = [to_valid_idx(i, N) for i in to_iterable(leftind)]
    if rightind is None:
        rightind = complement_indices(leftind, N)
    else:
        rightind = [to_valid_idx(i, N) for i in to_iterable(rightind)]
    if not is_permutation(leftind + rightind, N):
        msg = f'Not a valid bipartition of the tensor axes: {leftind}, {rightind}'
        raise IndexError(msg)
    leftspace = t.space[leftind]
    rightspace = t.space[rightind]
    if transposed:
        perm = rightind + leftind
        shape = (rightspace.dim, leftspace.dim)
    else:
        perm = leftind + rightind
        shape = (leftspace.dim, rightspace.dim)
    backend = t.backend
    mat = backend.reshape(backend.make_contiguous(backend.permute_axes(t.data, perm)), shape)
    # always copy, also for trivial permutation
    return backend.copy_block(mat), leftspace, rightspace


def _new_space(t: Tensor, dim: int) -> IndexSpace:
    kind = t.space.kind
    if kind is None:
        kind = CartesianSpace
    return kind.from_dim(dim)


def _check_matrix(t: Tensor, name: str):
    if t.num_axes != 2:
        raise ValueError(f'{name} requires a tensor with 2 axes. Got {t.num_axes}.')
    _check_scalar_spaces(t)


def svd(t: Tensor, leftind: int | Sequence[int], rightind: int | Sequence[int] = None,
        algorithm: str = None) -> tuple[Tensor, Tensor, Tensor]:
    """Singular value decomposition ``t = U @ S @ V`` for the bipartition of axes.

    Parameters
    ----------
    t : Tensor
        The tensor to decompose.
    leftind, rightind : (list of) int
        The bipartition of axes. By default, `rightind` are all axes not in `leftind`, ascending.
    algorithm : str, optional
        The SVD algorithm, see :attr:`BlockBackend.svd_algorithms`.
        Defaults to ``config.default_svd_algorithm``.

    Returns
    -------
    U : Tensor
        Isometry over ``leftspace * W.dual``, where ``W`` is the new bond space of dimension
        ``min(leftdim, rightdim)``.
    S : Tensor
        Real, non-negative singular values on the diagonal, in descending order. Over
        ``W * W.dual``.
    V : Tensor
        Isometry over ``W * rightspace``.
    """
    mat, leftspace, rightspace = _bipartition(t, leftind, rightind)
    backend = t.backend
    if algorithm is None:
        algorithm = config.default_svd_algorithm
    U, S, Vh = backend.matrix_svd(mat, algorithm)
    newspace = _new_space(t, min(leftspace.dim, rightspace.dim))
    return (Tensor(U, leftspace * newspace.dual, backend),
            Tensor(backend.block_from_diagonal(S), newspace * newspace.dual, backend),
            Tensor(Vh, newspace * rightspace, backend))


def svdtrunc(t: Tensor, leftind: int | Sequence[int], rightind: int | Sequence[int] = None, *,
             truncdim: int = None, trunctol: float = None, algorithm: str = None
             ) -> tuple[Tensor, Tensor, Tensor, float]:
    r"""Truncated singular value decomposition ``t ~= U @ S @ V``.

    The rank is the smaller of `truncdim` and the smallest :math:`k` such that the discarded
    singular values have a relative weight of at most `trunctol`, i.e.

    .. math ::
        \Vert (s_k, s_{k+1}, \dots) \Vert \leq \mathtt{trunctol} \Vert s \Vert

    Parameters
    ----------
    t, leftind, rightind, algorithm
        As for :func:`svd`.
    truncdim : int, optional
        The maximum rank. Defaults to ``leftdim``.
    trunctol : float, optional
        The relative tolerance. Defaults to the machine precision of ``t.dtype``.

    Returns
    -------
    U, S, V : Tensor
        As for :func:`svd`, with a bond space of the truncated dimension.
    truncerr : float
        The norm of the discarded singular values.
    """
    if truncdim is not None and truncdim < 0:
        raise ValueError(f'truncdim must be non-negative. Got {truncdim}.')
    mat, leftspace, rightspace = _bipartition(t, leftind, rightind)
    backend = t.backend
    if truncdim is None:
        truncdim = leftspace.dim
    if trunctol is None:
        trunctol = t.dtype.eps
    if algorithm is None:
        algorithm = config.default_svd_algorithm
    U, S, Vh = backend.matrix_svd(mat, algorithm)

    s = backend.to_numpy(S)
    norm_s = np.linalg.norm(s)
    tol_dim = 0
    while tol_dim < len(s) and np.linalg.norm(s[tol_dim:]) > trunctol * norm_s:
        tol_dim += 1
    rank = min(truncdim, tol_dim)
    truncerr = float(np.linalg.norm(s[rank:]))
    logger.debug('svdtrunc: keeping %d of %d singular values, truncation error %.3e',
                 rank, len(s), truncerr)

    if rank < len(s):
        U = U[:, :rank]
        S = S[:rank]
        Vh = Vh[:rank, :]
    newspace = _new_space(t, rank)
    return (Tensor(U, leftspace * newspace.dual, backend),
            Tensor(backend.block_from_diagonal(S), newspace * newspace.dual, backend),
            Tensor(Vh, newspace * rightspace, backend),
            truncerr)


def _unique_qr(t: Tensor, mat: Block) -> tuple[Block, Block]:
    """QR decomposition, made unique by making the diagonal of R real and non-negative."""
    backend = t.backend
    Q, R = backend.matrix_qr(mat, full=False)
    phase = backend.phase_inverse(backend.get_diagonal(R))
    R = backend.scale_axis(R, phase, 0)
    Q = backend.scale_axis(Q, 1 / phase, 1)
    return Q, R


def leftorth(t: Tensor, leftind: int | Sequence[int], rightind: int | Sequence[int] = None
             ) -> tuple[Tensor, Tensor]:
    """Orthogonal decomposition ``t = U @ R`` with an isometry `U` on the left axes.

    If ``leftdim > rightdim``, this is a QR decomposition, made unique by requiring a real
    non-negative diagonal of the upper triangular `R`. Otherwise, `U` is the identity and `R` is a
    copy of the data.

    Returns
    -------
    U : Tensor
        Over ``leftspace * W.dual``, with orthonormal columns.
    R : Tensor
        Over ``W * rightspace``.
    """
    mat, leftspace, rightspace = _bipartition(t, leftind, rightind)
    backend = t.backend
    leftdim = leftspace.dim
    rightdim = rightspace.dim
    if leftdim > rightdim:
        U, R = _unique_qr(t, mat)
        newdim = rightdim
    else:
        newdim = leftdim
        R = mat
        U = backend.eye_matrix(newdim, t.dtype, device=backend.get_device(mat))
    newspace = _new_space(t, newdim)
    return (Tensor(U, leftspace * newspace.dual, backend),
            Tensor(R, newspace * rightspace, backend))


def rightorth(t: Tensor, leftind: int | Sequence[int], rightind: int | Sequence[int] = None
              ) -> tuple[Tensor, Tensor]:
    """Orthogonal decomposition ``t = L @ Q`` with an isometry `Q` on the right axes.

    The mirror image of :func:`leftorth`. If ``leftdim < rightdim``, `L` is lower triangular with a
    real non-negative diagonal and `Q` has orthonormal rows. Otherwise `Q` is the identity.

    Returns
    -------
    L : Tensor
        Over ``leftspace * W.dual``.
    Q : Tensor
        Over ``W * rightspace``.
    """
    mat_T, leftspace, rightspace = _bipartition(t, leftind, rightind, transposed=True)
    backend = t.backend
    leftdim = leftspace.dim
    rightdim = rightspace.dim
    if leftdim < rightdim:
        Q_T, L_T = _unique_qr(t, mat_T)
        newdim = leftdim
    else:
        newdim = rightdim
        L_T = mat_T
        Q_T = backend.eye_matrix(newdim, t.dtype, device=backend.get_device(mat_T))
    newspace = _new_space(t, newdim)
    L = backend.permute_axes(L_T, [1, 0])
    Q = backend.permute_axes(Q_T, [1, 0])
    return (Tensor(L, leftspace * newspace.dual, backend),
            Tensor(Q, newspace * rightspace, backend))


def pinv(t: Tensor) -> Tensor:
    """Moore-Penrose pseudo-inverse of a tensor with two axes.

    Singular values larger than ``eps * max(leftdim, rightdim) * s_max`` are inverted,
    the others are discarded. The result is over ``t.space.adjoint``.
    """
    _check_matrix(t, 'pinv')
    mat, leftspace, rightspace = _bipartition(t, [0], [1])
    backend = t.backend
    U, S, Vh = backend.matrix_svd(mat, config.default_svd_algorithm)
    s_max = backend.max_abs(S)
    cutoff = t.dtype.eps * max(leftspace.dim, rightspace.dim) * s_max
    S_inv = backend.cutoff_inverse(S, cutoff)
    # V^dagger @ diag(S_inv) @ U^dagger
    res = backend.matrix_dot(backend.scale_axis(backend.dagger(Vh), S_inv, 1), backend.dagger(U))
    return Tensor(res, t.space.adjoint, backend)


def eig(t: Tensor) -> tuple[Tensor, Tensor]:
    """Eigenvalue decomposition ``t = V @ Lambda @ inv(V)`` of a tensor with two axes.

    The two axes must have mutually dual spaces.

    Returns
    -------
    Lambda : Tensor
        The eigenvalues on the diagonal. Real if `t` is real and all eigenvalues are real,
        complex otherwise.
    V : Tensor
        The right eigenvectors, as columns.
    """
    _check_matrix(t, 'eig')
    if t.space[0] != t.space[1].dual:
        raise SpaceError('Eigenvalue decomposition only exists if left and right spaces are dual.')
    backend = t.backend
    w, v = backend.matrix_eig(backend.copy_block(t.data))
    return (Tensor(backend.block_from_diagonal(w), t.space, backend),
            Tensor(v, t.space, backend))


def inv(t: Tensor) -> Tensor:
    """Inverse of a tensor with two axes, which must have mutually dual spaces."""
    _check_matrix(t, 'inv')
    if t.space[0] != t.space[1].dual:
        raise SpaceError('Inverse only exists if left and right spaces are dual.')
    backend = t.backend
    return Tensor(backend.matrix_inv(t.data), t.space, backend)
