"""Block-backends implement matrix and array algebra on dense blocks, similar to e.g. numpy"""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

from abc import ABCMeta, abstractmethod
from collections.abc import Sequence
from typing import TypeVar

import numpy as np

from ..dtypes import Dtype

__all__ = ['Block', 'BlockBackend']

# placeholder for a backend-specific type that represents the dense data of a tensor
Block = TypeVar('Block')


class BlockBackend(metaclass=ABCMeta):
    """Abstract base class that defines the operation on dense blocks.

    The block backend is the only place where numerical work happens. The tensor layer decides
    *whether* an operation is allowed (by checking index spaces) and then calls the
    corresponding kernel here.

    Kernels whose name ends in ``_into`` write their result into a given destination block
    *in place*, such that other tensors sharing the same buffer observe the change.
    """

    svd_algorithms: list[str]  # first is default
    BlockCls = None  # to be set by subclass
    dtype_map: dict  # backend dtype -> Dtype
    backend_dtype_map: dict  # Dtype -> backend dtype

    def __init__(self, default_device: str):
        self.default_device = default_device

    def __repr__(self):
        return f'{type(self).__name__}()'

    def __str__(self):
        return f'{type(self).__name__}()'

    # IN PLACE KERNELS

    def copy_into(self, src: Block, perm: Sequence[int], dst: Block) -> Block:
        """``dst[...] = permute_axes(src, perm)``, in place."""
        dst[...] = self.permute_axes(src, list(perm))
        return dst

    def add_into(self, alpha, src: Block, perm: Sequence[int], beta, dst: Block) -> Block:
        """``dst[...] = beta * dst + alpha * permute_axes(src, perm)``, in place."""
        res = self.permute_axes(src, list(perm))
        return self._accumulate(alpha, res, beta, dst)

    def trace_add_into(self, alpha, a: Block, idcs1: list[int], idcs2: list[int],
                       remaining: list[int], beta, dst: Block) -> Block:
        """Partial trace of the pairs ``(idcs1[k], idcs2[k])``, accumulated into `dst`.

        The axes of the traced block are ``remaining``, in that order.
        """
        res = self.trace_partial(a, idcs1, idcs2, remaining)
        return self._accumulate(alpha, res, beta, dst)

    def contract_add_into(self, alpha, a: Block, conj_a: bool, b: Block, conj_b: bool,
                          idcs_a: list[int], idcs_b: list[int], perm: list[int], beta, dst: Block
                          ) -> Block:
        """Generalized contraction ``dst = beta * dst + alpha * permute(tdot(a, b))``, in place.

        `a` and `b` are complex conjugated first if `conj_a` and `conj_b` are set.
        The uncontracted axes of ``tdot(a, b)`` are the free axes of `a` followed by those of `b`
        and are permuted by `perm` to the axis order of `dst`.
        """
        if conj_a:
            a = self.conj(a)
        if conj_b:
            b = self.conj(b)
        res = self.permute_axes(self.tdot(a, b, idcs_a, idcs_b), perm)
        return self._accumulate(alpha, res, beta, dst)

    def scale_into(self, alpha, dst: Block) -> Block:
        """``dst[...] = alpha * dst``, in place."""
        dst[...] = alpha * dst
        return dst

    def embed_block_into(self, block: Block, offsets: Sequence[int], dst: Block) -> Block:
        """Write `block` into the sub-block of `dst` starting at the given `offsets`."""
        idcs = tuple(slice(o, o + d) for o, d in zip(offsets, self.get_shape(block)))
        dst[idcs] = block
        return dst

    def _accumulate(self, alpha, res: Block, beta, dst: Block) -> Block:
        # beta == 0 overwrites, such that e.g. NaN entries of uninitialized dst are discarded
        if alpha != 1:
            res = alpha * res
        if beta == 0:
            dst[...] = res
        elif beta == 1:
            dst[...] = dst + res
        else:
            dst[...] = beta * dst + res
        return dst

    # GENERIC DERIVED METHODS

    def cutoff_inverse(self, a: Block, cutoff: float) -> Block:
        """The elementwise cutoff-inverse: ``1 / a`` where ``abs(a) > cutoff``, otherwise ``0``."""
        res = 1.0 * self.copy_block(a)
        res[abs(a) <= cutoff] = float('inf')
        return 1 / res

    def dagger(self, a: Block) -> Block:
        """Permute axes to reverse order and elementwise conj."""
        num_legs = len(self.get_shape(a))
        res = self.permute_axes(a, list(reversed(range(num_legs))))
        return self.conj(res)

    def linear_combination(self, a, v: Block, b, w: Block) -> Block:
        return a * v + b * w

    def random_uniform(self, dims: list[int], dtype: Dtype, device: str = None,
                       np_random: np.random.Generator = None) -> Block:
        """Entries uniformly drawn from ``[-1, 1)``, for complex dtypes independently for the
        real and imaginary part."""
        # generate in numpy and convert, such that all backends share the same RNG
        if np_random is None:
            np_random = np.random.default_rng()
        res = np_random.uniform(-1, 1, size=dims)
        if not dtype.is_real:
            res = res + 1.j * np_random.uniform(-1, 1, size=dims)
        return self.block_from_numpy(res, dtype=dtype, device=device)

    def scale_axis(self, block: Block, factors: Block, axis: int) -> Block:
        """Multiply block with the factors (a 1D block), along a given axis.

        E.g. if block is 4D and ``axis==2`` with numpy-like broadcasting, this is would be
        ``block * factors[None, None, :, None]``.
        """
        idx = [None] * len(self.get_shape(block))
        idx[axis] = slice(None, None, None)
        return block * factors[tuple(idx)]

    def size(self, a: Block) -> int:
        """The total number of entries."""
        return int(np.prod(self.get_shape(a), dtype=int))

    def test_block_sanity(self, block, expect_shape: tuple[int, ...] | None = None,
                          expect_dtype: Dtype | None = None):
        assert isinstance(block, self.BlockCls), 'wrong block type'
        if expect_shape is not None:
            if self.get_shape(block) != expect_shape:
                msg = f'wrong block shape {self.get_shape(block)} != {expect_shape}'
                raise AssertionError(msg)
        if expect_dtype is not None:
            assert self.get_dtype(block) == expect_dtype, 'wrong block dtype'

    def to_numpy(self, a: Block, numpy_dtype=None) -> np.ndarray:
        # BlockBackends may override, if this implementation is not valid
        return np.asarray(a, dtype=numpy_dtype)

    # ABSTRACT METHODS

    @abstractmethod
    def as_block(self, a, dtype: Dtype = None, return_dtype: bool = False, device: str = None
                 ) -> Block | tuple[Block, Dtype]:
        """Convert objects to blocks.

        Should support blocks, numpy arrays, nested python containers. May support more.
        If `a` is already a block of correct dtype on the correct device, it may be returned
        un-modified.

        Returns
        -------
        block: Block
            The new block
        dtype: Dtype, optional
            The new dtype of the block. Only returned if `return_dtype`.

        See Also
        --------
        copy_block
            Guarantees an independent copy.

        """
        ...

    @abstractmethod
    def as_device(self, device: str | None) -> str:
        """Convert input string to unambiguous device name.

        In particular, this should map any possible aliases to one unique name, e.g.
        for PyTorch, map ``'cuda'`` to ``'cuda:0'``.
        Also checks if that device is valid and available.
        """
        ...

    @abstractmethod
    def allclose(self, a: Block, b: Block, rtol: float = 1e-5, atol: float = 1e-8) -> bool: ...

    @abstractmethod
    def block_from_diagonal(self, diag: Block) -> Block:
        """Return a 2D square block that has the 1D ``diag`` on the diagonal"""
        ...

    @abstractmethod
    def block_from_numpy(self, a: np.ndarray, dtype: Dtype = None, device: str = None) -> Block: ...

    @abstractmethod
    def conj(self, a: Block) -> Block:
        """Complex conjugate of a block"""
        ...

    @abstractmethod
    def copy_block(self, a: Block, device: str = None) -> Block:
        """Create a new, independent block with the same data

        See Also
        --------
        as_block
            Function to guarantee dtype and device, without forcing copies.

        """
        ...

    @abstractmethod
    def eye_matrix(self, dim: int, dtype: Dtype, device: str = None) -> Block:
        """The ``dim x dim`` identity matrix"""
        ...

    @abstractmethod
    def get_device(self, a: Block) -> str: ...

    @abstractmethod
    def get_diagonal(self, a: Block) -> Block:
        """Get the diagonal of a 2D block as a 1D block"""
        ...

    @abstractmethod
    def get_dtype(self, a: Block) -> Dtype: ...

    @abstractmethod
    def get_shape(self, a: Block) -> tuple[int]: ...

    @abstractmethod
    def imag(self, a: Block) -> Block:
        """The imaginary part of a complex number, elementwise."""
        ...

    @abstractmethod
    def item(self, a: Block) -> float | complex:
        """Assumes that data is a scalar (i.e. has only one entry). Returns that scalar as python float or complex"""
        ...

    @abstractmethod
    def make_contiguous(self, a: Block) -> Block:
        """A block with the same entries and C-contiguous memory layout.

        Returns `a` itself if it already is contiguous. Reshaping a contiguous block always gives
        a view that shares its memory.
        """
        ...

    @abstractmethod
    def matrix_dot(self, a: Block, b: Block) -> Block:
        """As in numpy.dot, both a and b might be matrix or vector."""
        ...

    @abstractmethod
    def matrix_eig(self, a: Block) -> tuple[Block, Block]:
        """Eigenvalues and right eigenvectors (columns) of a general square 2D block.

        For real `a` whose eigenvalues are all real, both results are real. Otherwise complex.
        """
        ...

    @abstractmethod
    def matrix_inv(self, a: Block) -> Block:
        """The inverse of a square 2D block"""
        ...

    @abstractmethod
    def matrix_qr(self, a: Block, full: bool) -> tuple[Block, Block]:
        """QR decomposition of a 2D block"""
        ...

    @abstractmethod
    def matrix_svd(self, a: Block, algorithm: str | None) -> tuple[Block, Block, Block]:
        """SVD ``a = U @ diag(S) @ Vh`` of a 2D block, with singular values in descending order.

        Returns ``U, S, Vh`` without the full matrices, i.e. ``len(S) == min(a.shape)``.
        """
        ...

    @abstractmethod
    def max_abs(self, a: Block) -> float: ...

    @abstractmethod
    def norm(self, a: Block, order: int | float = 2, axis: int | None = None) -> float:
        r"""The p-norm vector-norm of a block.

        Parameters
        ----------
        order : float
            The order :math:`p` of the norm.
            Unlike numpy, we always compute vector norms, never matrix norms.
        axis : int | None
            ``axis=None`` means "all axes", i.e. norm of the flattened block.
            An integer means to broadcast the norm over all other axes.

        """
        ...

    @abstractmethod
    def permute_axes(self, a: Block, permutation: list[int]) -> Block: ...

    @abstractmethod
    def phase_inverse(self, a: Block) -> Block:
        """The unit-modulus factors ``abs(a) / a``, elementwise, with ``1`` where ``a == 0``.

        Multiplying `a` with the result makes every entry real and non-negative.
        """
        ...

    @abstractmethod
    def real(self, a: Block) -> Block:
        """The real part of a complex number, elementwise."""
        ...

    @abstractmethod
    def reshape(self, a: Block, shape: tuple[int]) -> Block: ...

    @abstractmethod
    def tdot(self, a: Block, b: Block, idcs_a: list[int], idcs_b: list[int]) -> Block: ...

    @abstractmethod
    def to_dtype(self, a: Block, dtype: Dtype) -> Block: ...

    @abstractmethod
    def trace_partial(self, a: Block, idcs1: list[int], idcs2: list[int], remaining: list[int]) -> Block: ...

    @abstractmethod
    def zeros(self, shape: list[int], dtype: Dtype, device: str = None) -> Block: ...

    @abstractmethod
    def _block_repr_lines(self, a: Block, indent: str, max_width: int, max_lines: int) -> list[str]: ...
