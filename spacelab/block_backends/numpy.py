"""A block backend using numpy."""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

import logging

import numpy as np
import scipy.linalg

from ..dtypes import Dtype, _dtype_to_numpy, _numpy_dtype_to_dtype
from ._block_backend import Block, BlockBackend

__all__ = ['NumpyBlockBackend']

logger = logging.getLogger(__name__)


class NumpyBlockBackend(BlockBackend):
    """A block backend using numpy."""

    BlockCls = np.ndarray
    svd_algorithms = ['gesdd', 'gesvd', 'robust', 'robust_silent']

    dtype_map = _numpy_dtype_to_dtype
    backend_dtype_map = _dtype_to_numpy

    def __init__(self):
        super().__init__(default_device='cpu')

    def as_block(self, a, dtype: Dtype = None, return_dtype: bool = False, device: str = None
                 ) -> Block:
        _ = self.as_device(device)  # for input check only
        block = np.asarray(a, dtype=self.backend_dtype_map[dtype])
        if np.issubdtype(block.dtype, np.integer):
            block = block.astype(np.float64, copy=False)
        if return_dtype:
            return block, self.dtype_map[block.dtype]
        return block

    def as_device(self, device: str | None) -> str:
        if device is None:
            return self.default_device
        if device != self.default_device:
            msg = f'{self.__class__.__name__} does not support device {device}.'
            raise ValueError(msg)
        return device

    def allclose(self, a: Block, b: Block, rtol: float = 1e-5, atol: float = 1e-8) -> bool:
        return np.allclose(a, b, rtol=rtol, atol=atol)

    def block_from_diagonal(self, diag: Block) -> Block:
        return np.diag(diag)

    def block_from_numpy(self, a: np.ndarray, dtype: Dtype = None, device: str = None) -> Block:
        _ = self.as_device(device)  # for input check only
        if dtype is None:
            return a
        return np.asarray(a, self.backend_dtype_map[dtype])

    def conj(self, a: Block) -> Block:
        return np.conj(a)

    def copy_block(self, a: Block, device: str = None) -> Block:
        _ = self.as_device(device)  # for input check only
        return np.copy(a)

    def eye_matrix(self, dim: int, dtype: Dtype, device: str = None) -> Block:
        _ = self.as_device(device)  # for input check only
        return np.eye(dim, dtype=self.backend_dtype_map[dtype])

    def get_device(self, a: Block) -> str:
        return self.default_device

    def get_diagonal(self, a: Block) -> Block:
        return np.diagonal(a)

    def get_dtype(self, a: Block) -> Dtype:
        return self.dtype_map[a.dtype]

    def get_shape(self, a: Block) -> tuple[int]:
        return np.shape(a)

    def imag(self, a: Block) -> Block:
        return np.imag(a)

    def item(self, a: Block) -> float | complex:
        return a.item()

    def make_contiguous(self, a: Block) -> Block:
        return np.ascontiguousarray(a)

    def matrix_dot(self, a: Block, b: Block) -> Block:
        return np.dot(a, b)

    def matrix_eig(self, a: Block) -> tuple[Block, Block]:
        w, v = scipy.linalg.eig(a)
        if not np.iscomplexobj(a) and np.all(w.imag == 0):
            w = np.real(w)
            v = np.real(v)
        return w, v

    def matrix_inv(self, a: Block) -> Block:
        return scipy.linalg.inv(a)

    def matrix_qr(self, a: Block, full: bool) -> tuple[Block, Block]:
        if a.size == 0 and not full:
            m, n = a.shape
            k = min(m, n)
            return np.zeros((m, k), dtype=a.dtype), np.zeros((k, n), dtype=a.dtype)
        return scipy.linalg.qr(a, mode='full' if full else 'economic')

    def matrix_svd(self, a: Block, algorithm: str | None) -> tuple[Block, Block, Block]:
        if algorithm is None:
            algorithm = 'gesdd'
        if a.size == 0:
            m, n = a.shape
            k = min(m, n)
            s = np.zeros((k,), dtype=np.real(a).dtype)
            return np.zeros((m, k), dtype=a.dtype), s, np.zeros((k, n), dtype=a.dtype)

        if algorithm == 'gesdd':
            return scipy.linalg.svd(a, full_matrices=False)

        elif algorithm in ['robust', 'robust_silent']:
            silent = algorithm == 'robust_silent'
            try:
                return scipy.linalg.svd(a, full_matrices=False)
            except np.linalg.LinAlgError:
                if not silent:
                    logger.warning('SVD with gesdd did not converge. Falling back to gesvd.')
            return _svd_gesvd(a)

        elif algorithm == 'gesvd':
            return _svd_gesvd(a)

        else:
            raise ValueError(f'SVD algorithm not supported: {algorithm}')

    def max_abs(self, a: Block) -> float:
        if a.size == 0:
            return 0.
        return np.max(np.abs(a)).item()

    def norm(self, a: Block, order: int | float = 2, axis: int | None = None) -> float:
        if axis is None:
            return np.linalg.norm(np.ravel(a), ord=order).item()
        return np.linalg.norm(a, ord=order, axis=axis)

    def permute_axes(self, a: Block, permutation: list[int]) -> Block:
        return np.transpose(a, permutation)

    def phase_inverse(self, a: Block) -> Block:
        res = np.ones_like(a)
        nonzero = a != 0
        res[nonzero] = np.abs(a[nonzero]) / a[nonzero]
        return res

    def real(self, a: Block) -> Block:
        return np.real(a)

    def reshape(self, a: Block, shape: tuple[int]) -> Block:
        return np.reshape(a, shape)

    def tdot(self, a: Block, b: Block, idcs_a: list[int], idcs_b: list[int]) -> Block:
        return np.tensordot(a, b, (idcs_a, idcs_b))

    def to_dtype(self, a: Block, dtype: Dtype) -> Block:
        return np.asarray(a, dtype=self.backend_dtype_map[dtype])

    def trace_partial(self, a: Block, idcs1: list[int], idcs2: list[int], remaining: list[int]) -> Block:
        a = np.transpose(a, remaining + idcs1 + idcs2)
        trace_dim = np.prod(a.shape[len(remaining):len(remaining)+len(idcs1)], dtype=int)
        a = np.reshape(a, a.shape[:len(remaining)] + (trace_dim, trace_dim))
        return np.trace(a, axis1=-2, axis2=-1)

    def zeros(self, shape: list[int], dtype: Dtype, device: str = None) -> Block:
        _ = self.as_device(device)  # for input check only
        return np.zeros(shape, dtype=self.backend_dtype_map[dtype])

    def _block_repr_lines(self, a: Block, indent: str, max_width: int, max_lines: int) -> list[str]:
        with np.printoptions(linewidth=max_width - len(indent)):
            lines = [f'{indent}{line}' for line in str(a).split('\n')]
        if len(lines) > max_lines:
            first = (max_lines - 1) // 2
            last = max_lines - 1 - first
            lines = lines[:first] + [f'{indent}...'] + lines[-last:]
        return lines


def _svd_gesvd(a):
    return scipy.linalg.svd(a, full_matrices=False, lapack_driver='gesvd')
