"""A collection of tests for spacelab.spaces."""
# Copyright (C) TeNPy Developers, Apache license
import pytest

from spacelab import spaces
from spacelab.dummy_config import printoptions
from spacelab.spaces import CartesianSpace, ComplexSpace, EuclideanSpace, ProductSpace, SpaceError


def test_IndexSpace(any_space_kind, make_space):
    V = make_space(any_space_kind, is_dual=False)
    V.test_sanity()

    print('checking str and repr')
    _ = str(V)
    _ = repr(V)
    _ = str(V.dual)
    assert repr(any_space_kind(3, is_dual=True)) == f'{any_space_kind.__name__}(3, is_dual=True)'

    print('checking duality and equality')
    assert V == V
    assert V.dual != V
    assert V.dual.dual == V
    assert V.dual.is_dual is True
    assert V.dual.dim == V.dim
    assert V != any_space_kind(V.dim + 1)
    for other_kind in [CartesianSpace, EuclideanSpace, ComplexSpace]:
        if other_kind is not any_space_kind:
            assert V != other_kind(V.dim)
    assert hash(V) == hash(any_space_kind(V.dim))
    assert len({V, V.dual, any_space_kind(V.dim)}) == 2

    print('checking is_trivial')
    assert any_space_kind(1).is_trivial
    assert any_space_kind(1, is_dual=True).is_trivial
    assert not any_space_kind(2).is_trivial
    assert not any_space_kind(0).is_trivial

    print('checking invalid dims')
    with pytest.raises(ValueError):
        _ = any_space_kind(-1)
    with pytest.raises(ValueError):
        _ = any_space_kind(1.5)

    print('checking direct_sum')
    W = any_space_kind(3, is_dual=V.is_dual)
    assert V.direct_sum(W) == any_space_kind(V.dim + 3, is_dual=V.is_dual)
    assert V.direct_sum() == V
    with pytest.raises(SpaceError):
        _ = V.direct_sum(W.dual)


def test_scalar_space_capability():
    assert CartesianSpace(2).is_scalar_space
    assert EuclideanSpace(2).is_scalar_space
    assert not ComplexSpace(2).is_scalar_space
    assert isinstance(CartesianSpace(2), spaces.ScalarSpace)
    assert not isinstance(ComplexSpace(2), spaces.ScalarSpace)
    assert CartesianSpace.from_dim(4) == CartesianSpace(4)
    assert EuclideanSpace.from_dim(4, is_dual=True) == EuclideanSpace(4).dual


def test_fuse():
    V2, V3, V6 = CartesianSpace(2), CartesianSpace(3), CartesianSpace(6)
    assert spaces.fuse(V2, V3, V6)
    assert spaces.fuse(V2.dual, V3.dual, V6.dual)
    assert not spaces.fuse(V2, V3, CartesianSpace(5))
    assert not spaces.fuse(V2, V3.dual, V6)
    assert not spaces.fuse(V2, V3, V6.dual)
    assert not spaces.fuse(V2, V3, EuclideanSpace(6))
    assert not spaces.fuse(ComplexSpace(2), ComplexSpace(3), ComplexSpace(6))
    assert spaces.fuse(EuclideanSpace(1), EuclideanSpace(4), EuclideanSpace(4))


def test_ProductSpace(any_space_kind):
    V1, V2, V3 = [any_space_kind(d, is_dual=d % 2 == 0) for d in [2, 3, 4]]
    P = ProductSpace([V1, V2, V3])
    P.test_sanity()

    print('checking basic properties')
    assert P.num_factors == len(P) == 3
    assert P.dims == (2, 3, 4)
    assert P.dim == 24
    assert P.kind is any_space_kind
    assert list(P) == [V1, V2, V3]

    print('checking empty product')
    E = ProductSpace()
    assert E.dim == 1
    assert E.dims == ()
    assert E.kind is None
    assert E.is_scalar_space
    assert str(E) == 'ProductSpace()'

    print('checking multiplication')
    assert V1 * V2 == ProductSpace([V1, V2])
    assert V1 * V2 * V3 == P
    assert P * ProductSpace([V1]) == ProductSpace([V1, V2, V3, V1])
    assert V3 * ProductSpace([V1, V2]) == ProductSpace([V3, V1, V2])
    assert E * V1 == ProductSpace([V1])

    print('checking indexing')
    assert P[0] == V1
    assert P[-1] == V3
    assert P[1:] == ProductSpace([V2, V3])
    assert P[[2, 0]] == ProductSpace([V3, V1])
    assert P[[]] == E

    print('checking dual and adjoint')
    assert P.dual == ProductSpace([V1.dual, V2.dual, V3.dual])
    assert P.adjoint == ProductSpace([V3.dual, V2.dual, V1.dual])
    assert P.adjoint.adjoint == P
    assert P.dual.dual == P

    print('checking equality and hash')
    assert P == ProductSpace([V1, V2, V3])
    assert P != ProductSpace([V1, V2])
    assert P != P.dual
    assert hash(P) == hash(ProductSpace([V1, V2, V3]))

    print('checking permuted and insert_multiply')
    assert P.permuted([2, 0, 1]) == ProductSpace([V3, V1, V2])
    V = any_space_kind(1)
    assert P.insert_multiply(V, 0) == ProductSpace([V, V1, V2, V3])
    assert P.insert_multiply(V, 3) == ProductSpace([V1, V2, V3, V])

    print('checking str and repr')
    assert str(P) == ' ⊗ '.join(str(V) for V in [V1, V2, V3])
    _ = repr(P)


def test_ProductSpace_mixed_kinds():
    with pytest.raises(SpaceError, match='same kind'):
        _ = ProductSpace([CartesianSpace(2), EuclideanSpace(2)])
    with pytest.raises(SpaceError):
        _ = CartesianSpace(2) * ComplexSpace(3)
    with pytest.raises(TypeError):
        _ = ProductSpace([CartesianSpace(2), 3])


def test_ProductSpace_scalar_space():
    assert ProductSpace([CartesianSpace(2), CartesianSpace(3)]).is_scalar_space
    assert not ProductSpace([ComplexSpace(2)]).is_scalar_space


def test_ProductSpace_repr_fallback(monkeypatch):
    P = ProductSpace([CartesianSpace(d) for d in range(1, 30)])
    monkeypatch.setattr(printoptions, 'linewidth', 40)
    monkeypatch.setattr(printoptions, 'maxlines_spaces', 10)
    assert repr(P) == f'ProductSpace(num_factors=29, dims={list(range(1, 30))})'
    monkeypatch.setattr(printoptions, 'maxlines_spaces', 100)
    assert len(repr(P).split('\n')) == 31
