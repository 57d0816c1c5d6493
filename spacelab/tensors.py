r"""The dense :class:`Tensor` class and functions acting on individual tensors.

A tensor is a dense block of numbers, together with a :class:`~spacelab.spaces.ProductSpace`
that assigns an :class:`~spacelab.spaces.IndexSpace` to each of its axes.
The numerical data is stored in the format of a :class:`~spacelab.block_backends.BlockBackend`,
e.g. a numpy array.

.. _tensor_views:

Owning Tensors and Views
------------------------
A tensor either *owns* its data, or it is a *view* of the data of another tensor, its
:attr:`Tensor.base`. Views are created only by the axis reshaping functions
:func:`insertind`, :func:`deleteind`, :func:`fuseind` and :func:`splitind`, which change
the shape of a tensor without touching its entries. Writing to a view writes to its base and
vice versa. A view of a view has the same base as the original view, i.e. :attr:`Tensor.base`
is always an owning tensor.

All other functions in this module return owning tensors that do not share data with their
inputs. In particular, the data of owning tensors is stored in C-contiguous layout, such that
reshaping it always gives views.

"""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

import warnings
from collections.abc import Sequence
from numbers import Number

import numpy as np

from .block_backends import Block, BlockBackend, get_block_backend
from .dtypes import Dtype
from .dummy_config import printoptions
from .spaces import CartesianSpace, IndexSpace, ProductSpace, ScalarSpace, SpaceError, fuse
from .tools.misc import to_iterable, to_valid_idx

__all__ = ['DimensionMismatch', 'Tensor', 'tensor', 'zeros', 'zero_like', 'similar',
           'random_uniform', 'eye', 'scale', 'scale_', 'norm', 'almost_equal', 'dagger',
           'dagger_into', 'to_dtype', 'real', 'imag', 'insertind', 'deleteind', 'fuseind',
           'splitind', 'tensorcat', 'get_same_backend', 'check_can_hold']


class DimensionMismatch(ValueError):
    """Raised if the size of the data does not match the dimension of the space."""
    pass


class Tensor:
    """A dense tensor whose axes are described by index spaces.

    Parameters
    ----------
    data : Block
        The numerical data. Must have exactly ``space.dim`` entries and is reshaped to
        ``space.dims``. The block is used as is, without a copy, if possible.
    space : :class:`ProductSpace` | list of :class:`IndexSpace` | :class:`IndexSpace`
        The spaces of the axes.
    backend : :class:`BlockBackend`, optional
        The block backend that handles `data`. Defaults to
        ``get_block_backend()``.

    Attributes
    ----------
    data : Block
        The numerical data, of shape ``space.dims``.
    backend : :class:`BlockBackend`
        The block backend that handles :attr:`data`.
    """

    def __init__(self, data, space: ProductSpace | Sequence[IndexSpace] | IndexSpace,
                 backend: BlockBackend = None):
        self._init(data, space, backend, base=None)

    def _init(self, data, space, backend, base):
        if backend is None:
            backend = get_block_backend()
        if isinstance(space, IndexSpace):
            space = ProductSpace([space])
        elif not isinstance(space, ProductSpace):
            space = ProductSpace(space)
        data = backend.as_block(data)
        size = backend.size(data)
        if size != space.dim:
            msg = f'Data with {size} entries does not fit a space of dimension {space.dim}.'
            raise DimensionMismatch(msg)
        if base is None:
            data = backend.make_contiguous(data)
        self.data = backend.reshape(data, space.dims)
        self.backend = backend
        self._space = space
        self._base = base

    @classmethod
    def _view(cls, data: Block, space: ProductSpace, base: Tensor) -> Tensor:
        """A tensor that shares the buffer of `base`. `data` must be a reshape of ``base.data``."""
        if base._base is not None:
            base = base._base
        res = cls.__new__(cls)
        res._init(data, space, base.backend, base=base)
        return res

    def test_sanity(self):
        self._space.test_sanity()
        self.backend.test_block_sanity(self.data, expect_shape=self._space.dims)
        if self._base is not None:
            assert self._base._base is None, 'base of a view must be owning'
            assert self._base.backend is self.backend
            assert self.backend.size(self.data) == self._base.size

    # PROPERTIES

    @property
    def space(self) -> ProductSpace:
        """The :class:`ProductSpace` of all axes. Read-only."""
        return self._space

    @property
    def num_axes(self) -> int:
        return self._space.num_factors

    @property
    def shape(self) -> tuple[int, ...]:
        return self._space.dims

    @property
    def size(self) -> int:
        """The total number of entries."""
        return self._space.dim

    @property
    def dtype(self) -> Dtype:
        return self.backend.get_dtype(self.data)

    @property
    def is_view(self) -> bool:
        """If this tensor shares the data of an owning :attr:`base` tensor."""
        return self._base is not None

    @property
    def base(self) -> Tensor | None:
        """The owning tensor whose data this view shares, or ``None`` for owning tensors."""
        return self._base

    # METHODS

    def space_of(self, i: int) -> IndexSpace:
        """The space of axis `i`."""
        return self._space[to_valid_idx(i, self.num_axes)]

    def copy(self) -> Tensor:
        """An independent, owning copy."""
        return Tensor(self.backend.copy_block(self.data), self._space, self.backend)

    def copy_from(self, other: Tensor) -> Tensor:
        """Overwrite the entries of this tensor with those of `other`, in place."""
        if other.space != self._space:
            raise SpaceError(f'Can not copy from a tensor with space {other.space} to {self._space}.')
        check_can_hold(self, other.dtype)
        backend = get_same_backend(self, other)
        backend.copy_into(other.data, range(self.num_axes), self.data)
        return self

    def fill(self, value: Number) -> Tensor:
        """Set all entries to `value`, in place."""
        self.data[...] = self.dtype.convert_python_scalar(value)
        return self

    def item(self) -> float | complex | bool:
        """The single entry of a tensor with :attr:`size` ``1``."""
        if self.size != 1:
            raise ValueError(f'Tensor with {self.size} entries can not be converted to a scalar.')
        return self.backend.item(self.data)

    def to_numpy(self, numpy_dtype=None) -> np.ndarray:
        """The data as a numpy array. For the numpy backend, this is not a copy."""
        return self.backend.to_numpy(self.data, numpy_dtype=numpy_dtype)

    def vec(self) -> Block:
        """The data as a 1D block, sharing memory with this tensor."""
        return self.backend.reshape(self.data, (self.size,))

    # DUNDERS

    def __add__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        _check_same_space(self, other)
        backend = get_same_backend(self, other)
        return Tensor(backend.linear_combination(1, self.data, 1, other.data), self._space, backend)

    def __sub__(self, other):
        if not isinstance(other, Tensor):
            return NotImplemented
        _check_same_space(self, other)
        backend = get_same_backend(self, other)
        return Tensor(backend.linear_combination(1, self.data, -1, other.data), self._space, backend)

    def __neg__(self):
        return scale(self, -1)

    def __pos__(self):
        return self

    def __mul__(self, other):
        if isinstance(other, Number):
            return scale(self, other)
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, Number):
            return scale(self, other)
        return NotImplemented

    def __truediv__(self, other):
        if isinstance(other, Number):
            return scale(self, 1 / other)
        return NotImplemented

    def __float__(self):
        return float(self.item())

    def __complex__(self):
        return complex(self.item())

    def __eq__(self, other):
        msg = f'{type(self)} does not support == comparison. Use spacelab.almost_equal instead.'
        raise TypeError(msg)

    __hash__ = None

    def __repr__(self):
        indent = printoptions.indent * ' '
        lines = [f'<{type(self).__name__}>']
        lines.append(f'{indent}* Space: {self._space}')
        lines.append(f'{indent}* Shape: {self.shape}')
        lines.append(f'{indent}* Dtype: {self.dtype}')
        lines.append(f'{indent}* Backend: {self.backend}')
        if self._base is not None:
            lines.append(f'{indent}* View of a tensor with space {self._base.space}')
        if not printoptions.skip_data:
            lines.append(f'{indent}* Data:')
            lines.extend(self.backend._block_repr_lines(
                self.data, indent=2 * indent, max_width=printoptions.linewidth,
                max_lines=printoptions.maxlines_tensors - len(lines)
            ))
        return '\n'.join(lines)


# CONSTRUCTORS


def tensor(data, space: ProductSpace | Sequence[IndexSpace] = None,
           backend: BlockBackend | str = None, dtype: Dtype = None, copy: bool = False
           ) -> Tensor:
    """Create a tensor from dense data, e.g. a numpy array or nested lists.

    Parameters
    ----------
    data
        The entries, anything :meth:`BlockBackend.as_block` accepts.
    space : :class:`ProductSpace` | list of :class:`IndexSpace`, optional
        The spaces of the axes. By default, use a :class:`CartesianSpace` for each axis of `data`.
    backend : :class:`BlockBackend` | str, optional
        The block backend or its name, see :func:`get_block_backend`.
    dtype : :class:`Dtype`, optional
        If given, convert to this dtype.
    copy : bool
        If the data should be copied. By default, the tensor shares memory with `data` if possible.
    """
    if backend is None or isinstance(backend, str):
        backend = get_block_backend(backend)
    block, block_dtype = backend.as_block(data, dtype=dtype, return_dtype=True)
    if copy:
        block = backend.copy_block(block)
    if space is None:
        if block_dtype.is_complex:
            msg = ('Using CartesianSpace for complex data. Consider specifying the space, '
                   'e.g. as EuclideanSpace.')
            warnings.warn(msg, UserWarning, stacklevel=2)
        space = ProductSpace([CartesianSpace(d) for d in backend.get_shape(block)])
    return Tensor(block, space, backend)


def zeros(space: ProductSpace | Sequence[IndexSpace], dtype: Dtype = Dtype.float64,
          backend: BlockBackend | str = None) -> Tensor:
    """A tensor with all entries zero."""
    if backend is None or isinstance(backend, str):
        backend = get_block_backend(backend)
    if not isinstance(space, ProductSpace):
        space = ProductSpace(to_iterable(space))
    return Tensor(backend.zeros(space.dims, dtype), space, backend)


def zero_like(t: Tensor) -> Tensor:
    """A tensor with the same space, dtype and backend as `t` and all entries zero."""
    return zeros(t.space, t.dtype, t.backend)


def similar(t: Tensor, space: ProductSpace = None, dtype: Dtype = None) -> Tensor:
    """A zero tensor with the backend of `t`, and its space and dtype unless specified."""
    if space is None:
        space = t.space
    if dtype is None:
        dtype = t.dtype
    return zeros(space, dtype, t.backend)


def random_uniform(space: ProductSpace | Sequence[IndexSpace], dtype: Dtype = Dtype.float64,
                   backend: BlockBackend | str = None, np_random: np.random.Generator = None
                   ) -> Tensor:
    """A tensor with entries drawn uniformly from ``[-1, 1)``.

    For complex dtypes, real and imaginary part are drawn independently.
    """
    if backend is None or isinstance(backend, str):
        backend = get_block_backend(backend)
    if not isinstance(space, ProductSpace):
        space = ProductSpace(to_iterable(space))
    block = backend.random_uniform(space.dims, dtype, np_random=np_random)
    return Tensor(block, space, backend)


def eye(V: IndexSpace, dtype: Dtype = Dtype.float64, backend: BlockBackend | str = None
        ) -> Tensor:
    """The identity map on `V`, i.e. a tensor over ``V.dual * V``."""
    if backend is None or isinstance(backend, str):
        backend = get_block_backend(backend)
    return Tensor(backend.eye_matrix(V.dim, dtype), V.dual * V, backend)


# HELPERS


def get_same_backend(*tensors: Tensor) -> BlockBackend:
    """The common block backend of the given tensors, or raise."""
    backend = tensors[0].backend
    for t in tensors[1:]:
        if t.backend is not backend:
            raise ValueError(f'Incompatible block backends: {backend} and {t.backend}.')
    return backend


def check_can_hold(dst: Tensor, dtype: Dtype, what: str = 'the result'):
    """Raise ``TypeError`` if `dst` can not store values of `dtype` without loss."""
    if not dst.dtype.can_hold(dtype):
        raise TypeError(f'Destination of dtype {dst.dtype} can not hold {what} of dtype {dtype}.')


def _check_same_space(t1: Tensor, t2: Tensor):
    if t1.space != t2.space:
        raise SpaceError(f'Mismatching spaces: {t1.space} and {t2.space}.')


def _check_scalar_spaces(t: Tensor):
    if not t.space.is_scalar_space:
        raise SpaceError(f'Requires a tensor with ScalarSpace axes. Got {t.space.kind.__name__}.')


# FUNCTIONS ON TENSORS


def scale(t: Tensor, a: Number) -> Tensor:
    """A new tensor ``a * t``."""
    return Tensor(a * t.data, t.space, t.backend)


def scale_(t: Tensor, a: Number) -> Tensor:
    """Multiply `t` by `a`, in place."""
    check_can_hold(t, Dtype.of_scalar(a), 'a scale factor')
    t.backend.scale_into(a, t.data)
    return t


def norm(t: Tensor) -> float:
    """The Frobenius norm, i.e. the 2-norm of all entries."""
    return t.backend.norm(t.data)


def almost_equal(t1: Tensor, t2: Tensor, rtol: float = 1e-5, atol: float = 1e-8) -> bool:
    """If the two tensors have equal spaces and entries, up to numerical tolerance.

    Entries are compared as ``abs(t1 - t2) <= atol + rtol * abs(t2)``.
    """
    if t1.space != t2.space:
        return False
    backend = get_same_backend(t1, t2)
    return backend.allclose(t1.data, t2.data, rtol=rtol, atol=atol)


def dagger(t: Tensor) -> Tensor:
    """The conjugate transpose.

    Reverses the order of the axes, dualizes their spaces and complex conjugates the entries.
    The result lives in ``t.space.adjoint``.
    """
    return Tensor(t.backend.dagger(t.data), t.space.adjoint, t.backend)


def dagger_into(dst: Tensor, src: Tensor) -> Tensor:
    """Write the conjugate transpose of `src` to `dst`, in place. See :func:`dagger`."""
    if dst.space != src.space.adjoint:
        msg = f'Destination space {dst.space} is not the adjoint of {src.space}.'
        raise SpaceError(msg)
    check_can_hold(dst, src.dtype)
    backend = get_same_backend(dst, src)
    perm = list(reversed(range(src.num_axes)))
    backend.copy_into(backend.conj(src.data), perm, dst.data)
    return dst


def to_dtype(t: Tensor, dtype: Dtype) -> Tensor:
    """A copy of `t`, converted to the given `dtype`."""
    return Tensor(t.backend.copy_block(t.backend.to_dtype(t.data, dtype)), t.space, t.backend)


def real(t: Tensor) -> Tensor:
    """The real part, as a new tensor."""
    return Tensor(t.backend.copy_block(t.backend.real(t.data)), t.space, t.backend)


def imag(t: Tensor) -> Tensor:
    """The imaginary part, as a new tensor. All zero for real tensors."""
    return Tensor(t.backend.copy_block(t.backend.imag(t.data)), t.space, t.backend)


# AXIS RESHAPING (VIEWS)


def insertind(t: Tensor, ind: int, V: IndexSpace) -> Tensor:
    """Insert a new trivial axis with space `V`, such that it becomes axis `ind`.

    Returns a view of `t`. `V` must be a one-dimensional :class:`ScalarSpace` of the same kind as
    the spaces of `t`; valid positions are ``0 <= ind <= t.num_axes``.
    """
    _check_scalar_spaces(t)
    ind = to_valid_idx(ind, t.num_axes + 1)
    if not isinstance(V, ScalarSpace) or not V.is_trivial:
        raise SpaceError(f'Can only insert a trivial ScalarSpace. Got {V!r}.')
    if t.num_axes > 0 and type(V) is not t.space.kind:
        raise SpaceError(f'Can not insert a {type(V).__name__} into a tensor of {t.space.kind.__name__}s.')
    space = t.space.insert_multiply(V, ind)
    return Tensor._view(t.backend.reshape(t.data, space.dims), space, t)


def deleteind(t: Tensor, ind: int) -> Tensor:
    """Remove the trivial axis `ind`. Returns a view of `t`."""
    _check_scalar_spaces(t)
    ind = to_valid_idx(ind, t.num_axes)
    if not t.space[ind].is_trivial:
        raise SpaceError(f'Can only delete trivial axes. Axis {ind} has {t.space[ind]}.')
    space = ProductSpace([f for n, f in enumerate(t.space) if n != ind])
    return Tensor._view(t.backend.reshape(t.data, space.dims), space, t)


def fuseind(t: Tensor, ind1: int, ind2: int, V: IndexSpace) -> Tensor:
    """Fuse the neighboring axes ``ind1`` and ``ind2 == ind1 + 1`` into a single axis with space `V`.

    Returns a view of `t`. See :func:`~spacelab.spaces.fuse` for the requirements on `V`.
    """
    _check_scalar_spaces(t)
    ind1 = to_valid_idx(ind1, t.num_axes)
    ind2 = to_valid_idx(ind2, t.num_axes)
    if ind2 != ind1 + 1:
        raise IndexError(f'Can only fuse neighboring axes. Got {ind1} and {ind2}.')
    if not fuse(t.space[ind1], t.space[ind2], V):
        raise SpaceError(f'{t.space[ind1]} and {t.space[ind2]} can not be fused to {V}.')
    space = ProductSpace([*t.space.factors[:ind1], V, *t.space.factors[ind2 + 1:]])
    return Tensor._view(t.backend.reshape(t.data, space.dims), space, t)


def splitind(t: Tensor, ind: int, V1: IndexSpace, V2: IndexSpace) -> Tensor:
    """Split axis `ind` into two neighboring axes with spaces `V1` and `V2`.

    Returns a view of `t`. This is the inverse of :func:`fuseind`.
    """
    _check_scalar_spaces(t)
    ind = to_valid_idx(ind, t.num_axes)
    if not fuse(V1, V2, t.space[ind]):
        raise SpaceError(f'{t.space[ind]} can not be split into {V1} and {V2}.')
    space = ProductSpace([*t.space.factors[:ind], V1, V2, *t.space.factors[ind + 1:]])
    return Tensor._view(t.backend.reshape(t.data, space.dims), space, t)


# CONCATENATION


def tensorcat(catind: int | Sequence[int], *tensors: Tensor) -> Tensor:
    """Concatenate tensors along the axes `catind`.

    The concatenated axes of the result have the direct sums of the respective spaces.
    All other axes must have equal spaces. If there are multiple concatenated axes, the
    inputs are placed block-diagonally, i.e. each input occupies its own range on every
    concatenated axis.
    """
    catind = list(to_iterable(catind))
    if len(catind) == 0:
        raise ValueError('catind should not be empty')
    if len(tensors) == 0:
        raise ValueError('Need at least one tensor to concatenate.')
    num_axes = tensors[0].num_axes
    if any(t.num_axes != num_axes for t in tensors):
        raise SpaceError('All tensors should have the same number of axes for concatenation.')
    catind = [to_valid_idx(i, num_axes) for i in catind]
    backend = get_same_backend(*tensors)

    factors = list(tensors[0].space.factors)
    for t in tensors[1:]:
        for n in range(num_axes):
            if n in catind:
                factors[n] = factors[n].direct_sum(t.space[n])
            elif factors[n] != t.space[n]:
                raise SpaceError(f'Space mismatch for axis {n}: {factors[n]} != {t.space[n]}.')
    space = ProductSpace(factors)
    dtype = Dtype.common(*(t.dtype for t in tensors))

    data = backend.zeros(space.dims, dtype)
    offsets = [0] * num_axes
    for t in tensors:
        backend.embed_block_into(t.data, offsets, data)
        for n in catind:
            offsets[n] += t.shape[n]
    return Tensor(data, space, backend)
