"""The index spaces, i.e. the legs of a tensor.

Every axis of a :class:`~spacelab.tensors.Tensor` is described by an :class:`IndexSpace`, which
consists of a dimension and an orientation flag :attr:`IndexSpace.is_dual`.
The full shape of a tensor is a :class:`ProductSpace`, an ordered tuple of index spaces.

There are different concrete kinds of index spaces, see :class:`CartesianSpace`,
:class:`EuclideanSpace` and :class:`ComplexSpace`. The former two have no structure beyond their
dimension and implement the :class:`ScalarSpace` interface, which is required by the
decompositions in :mod:`spacelab.decompositions` and by the axis reshaping functions
in :mod:`spacelab.tensors`.

"""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

from abc import ABCMeta
from collections.abc import Sequence
from math import prod

from .dummy_config import printoptions

__all__ = ['SpaceError', 'IndexSpace', 'ScalarSpace', 'CartesianSpace', 'EuclideanSpace',
           'ComplexSpace', 'ProductSpace', 'fuse']


class SpaceError(ValueError):
    """Raised if the index spaces involved in an operation are incompatible."""
    pass


class IndexSpace(metaclass=ABCMeta):
    """Base class for the space of a single tensor axis.

    Two index spaces are equal only if they have the same concrete type, the same :attr:`dim`
    and the same :attr:`is_dual`.

    Attributes
    ----------
    dim : int
        The dimension of the space.
    is_dual : bool
        If this is the dual space. Flipped by :attr:`dual`.
    """

    symbol = 'V'  # used in :meth:`__str__`, overridden by subclasses

    def __init__(self, dim: int, is_dual: bool = False):
        if int(dim) != dim or dim < 0:
            raise ValueError(f'dim must be a non-negative integer. Got {dim!r}.')
        self.dim = int(dim)
        self.is_dual = bool(is_dual)

    def test_sanity(self):
        assert isinstance(self.dim, int)
        assert self.dim >= 0
        assert isinstance(self.is_dual, bool)

    @property
    def dual(self) -> IndexSpace:
        """The dual space. Taking the dual twice gives back an equal space."""
        return self.with_is_dual(not self.is_dual)

    @property
    def is_trivial(self) -> bool:
        """If the space is one-dimensional, i.e. carries a single c-number."""
        return self.dim == 1

    @property
    def is_scalar_space(self) -> bool:
        """If this space supports the :class:`ScalarSpace` interface."""
        return isinstance(self, ScalarSpace)

    def with_is_dual(self, is_dual: bool) -> IndexSpace:
        """A space of the same kind and dimension, with the given orientation."""
        return type(self)(self.dim, is_dual=is_dual)

    def direct_sum(self, *others: IndexSpace) -> IndexSpace:
        """The direct sum, i.e. a space of the same kind whose dimension is the total dimension."""
        for other in others:
            if type(other) is not type(self):
                raise SpaceError(f'Can not form direct sum of {self} and {other}.')
            if other.is_dual != self.is_dual:
                raise SpaceError('Direct sum requires spaces with the same duality.')
        return type(self)(self.dim + sum(o.dim for o in others), is_dual=self.is_dual)

    def __eq__(self, other):
        if not isinstance(other, IndexSpace):
            return NotImplemented
        return type(self) is type(other) and self.dim == other.dim and self.is_dual == other.is_dual

    def __hash__(self):
        return hash((type(self).__name__, self.dim, self.is_dual))

    def __mul__(self, other):
        return ProductSpace([self]) * other

    def __repr__(self):
        if self.is_dual:
            return f'{type(self).__name__}({self.dim}, is_dual=True)'
        return f'{type(self).__name__}({self.dim})'

    def __str__(self):
        if self.is_dual:
            return f'({self.symbol}^{self.dim})*'
        return f'{self.symbol}^{self.dim}'


class ScalarSpace(IndexSpace):
    """Interface for index spaces without structure beyond their dimension ("c-number spaces").

    Only tensors whose legs are all scalar spaces can be decomposed or have their
    axes inserted, deleted, fused or split.
    """

    @classmethod
    def from_dim(cls, dim: int, is_dual: bool = False) -> ScalarSpace:
        """A fresh space of this kind, e.g. for the new leg created by a decomposition."""
        return cls(dim, is_dual=is_dual)


class CartesianSpace(ScalarSpace):
    """Real vector space with the Euclidean inner product."""
    symbol = 'R'


class EuclideanSpace(ScalarSpace):
    """Complex vector space with the Euclidean inner product."""
    symbol = 'C'


class ComplexSpace(IndexSpace):
    """General complex vector space without a preferred inner product.

    The distinction between the space and its dual is meaningful, but since there is no
    canonical way to identify the two, the space is *not* a :class:`ScalarSpace`.
    """
    symbol = 'C'

    def __str__(self):
        if self.is_dual:
            return f'(gen:{self.symbol}^{self.dim})*'
        return f'gen:{self.symbol}^{self.dim}'


def fuse(space1: IndexSpace, space2: IndexSpace, fused: IndexSpace) -> bool:
    """If two neighboring axes with spaces `space1` and `space2` can be fused into `fused`.

    Requires scalar spaces of the same kind and orientation, with matching total dimension.
    """
    spaces = [space1, space2, fused]
    if not all(isinstance(s, ScalarSpace) for s in spaces):
        return False
    if not (type(space1) is type(space2) is type(fused)):
        return False
    if not (space1.is_dual == space2.is_dual == fused.is_dual):
        return False
    return space1.dim * space2.dim == fused.dim


class ProductSpace:
    """An ordered tuple of index spaces, one per axis of a tensor.

    All factors must be of the same concrete kind.

    Attributes
    ----------
    factors : tuple of :class:`IndexSpace`
        The spaces of the individual axes.
    num_factors : int
        The number of :attr:`factors`.
    kind : type | None
        The common type of the factors. ``None`` for the empty product.
    """

    def __init__(self, factors: Sequence[IndexSpace] = ()):
        factors = tuple(factors)
        for f in factors:
            if not isinstance(f, IndexSpace):
                raise TypeError(f'Expected IndexSpace factors. Got {type(f).__name__}.')
        kinds = set(type(f) for f in factors)
        if len(kinds) > 1:
            names = sorted(k.__name__ for k in kinds)
            raise SpaceError(f'All factors of a ProductSpace must be of the same kind. Got {names}.')
        self.factors = factors
        self.num_factors = len(factors)
        self.kind = type(factors[0]) if factors else None

    def test_sanity(self):
        assert len(self.factors) == self.num_factors
        for f in self.factors:
            assert type(f) is self.kind
            f.test_sanity()

    # PROPERTIES

    @property
    def dims(self) -> tuple[int, ...]:
        return tuple(f.dim for f in self.factors)

    @property
    def dim(self) -> int:
        """The total dimension, i.e. the product of all :attr:`dims`."""
        return prod(self.dims)

    @property
    def dual(self) -> ProductSpace:
        """Dualize every factor, keeping their order."""
        return ProductSpace([f.dual for f in self.factors])

    @property
    def adjoint(self) -> ProductSpace:
        """Reverse the order *and* dualize every factor.

        This is the space of the conjugate transpose of a tensor, which both conjugates and
        swaps the roles of input and output legs.
        """
        return ProductSpace([f.dual for f in reversed(self.factors)])

    @property
    def is_scalar_space(self) -> bool:
        """If all factors are :class:`ScalarSpace` s. True for the empty product."""
        return all(isinstance(f, ScalarSpace) for f in self.factors)

    # METHODS

    def permuted(self, perm: Sequence[int]) -> ProductSpace:
        """A product of the same :attr:`factors` in a different order."""
        assert len(perm) == self.num_factors
        assert set(perm) == set(range(self.num_factors))
        return ProductSpace([self.factors[i] for i in perm])

    def insert_multiply(self, other: IndexSpace, pos: int) -> ProductSpace:
        """Insert a new factor such that it ends up at position `pos`."""
        return ProductSpace([*self.factors[:pos], other, *self.factors[pos:]])

    # DUNDERS

    def __eq__(self, other):
        if not isinstance(other, ProductSpace):
            return NotImplemented
        if self.num_factors != other.num_factors:
            return False
        return all(s1 == s2 for s1, s2 in zip(self.factors, other.factors))

    def __hash__(self):
        return hash(self.factors)

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return ProductSpace(self.factors[idx])
        if isinstance(idx, (list, tuple)):
            return ProductSpace([self.factors[i] for i in idx])
        return self.factors[idx]

    def __iter__(self):
        return iter(self.factors)

    def __len__(self):
        return self.num_factors

    def __mul__(self, other):
        if isinstance(other, IndexSpace):
            return ProductSpace([*self.factors, other])
        if isinstance(other, ProductSpace):
            return ProductSpace([*self.factors, *other.factors])
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, IndexSpace):
            return ProductSpace([other, *self.factors])
        return NotImplemented

    def __repr__(self):
        ClsName = type(self).__name__
        reprs = [repr(f) for f in self.factors]
        res = f'{ClsName}([{", ".join(reprs)}])'
        if len(res) <= printoptions.linewidth:
            return res
        indent = printoptions.indent * ' '
        lines = [f'{ClsName}([', *(f'{indent}{r},' for r in reprs), '])']
        if len(lines) <= printoptions.maxlines_spaces:
            return '\n'.join(lines)
        # fallback
        return f'{ClsName}(num_factors={self.num_factors}, dims={list(self.dims)})'

    def __str__(self):
        if self.num_factors == 0:
            return 'ProductSpace()'
        return ' ⊗ '.join(str(f) for f in self.factors)
