"""A collection of tests for spacelab.decompositions."""
# Copyright (C) TeNPy Developers, Apache license
import logging

import numpy as np
import numpy.testing as npt
import pytest

from spacelab import decompositions, operations, tensors
from spacelab.spaces import CartesianSpace, ComplexSpace, EuclideanSpace, SpaceError
from spacelab.testing import assert_tensors_almost_equal


def _matrix_with_singular_values(s, np_random, num_rows=None, num_cols=None):
    num_rows = len(s) if num_rows is None else num_rows
    num_cols = len(s) if num_cols is None else num_cols
    Q1, _ = np.linalg.qr(np_random.normal(size=(num_rows, len(s))))
    Q2, _ = np.linalg.qr(np_random.normal(size=(num_cols, len(s))))
    return Q1 @ np.diag(s) @ Q2.T


def _check_isometry(W, labels, bond, conj_left: bool):
    """Check that contracting `W` with its conjugate over all axes but `bond` gives the identity."""
    other = [l + '*' if l == bond else l for l in labels]
    if conj_left:
        res = operations.contract(W, labels, W, other, conj_a=True)
    else:
        res = operations.contract(W, labels, W, other, conj_b=True)
    npt.assert_array_almost_equal(res.to_numpy(), np.eye(res.shape[0]))


def test_svd(backend, make_tensor, scalar_space_kind):
    V1, V2, V3 = scalar_space_kind(2), scalar_space_kind(3, is_dual=True), scalar_space_kind(4)
    t = make_tensor(V1 * V2 * V3)
    t_np = t.to_numpy().copy()
    U, S, V = decompositions.svd(t, [0, 2])
    W = scalar_space_kind(3)
    assert U.space == V1 * V3 * W.dual
    assert S.space == W * W.dual
    assert V.space == W * V2
    assert not (U.is_view or S.is_view or V.is_view)
    npt.assert_array_equal(t.to_numpy(), t_np)

    print('checking singular values')
    s = np.diag(S.to_numpy())
    assert np.all(np.real(s) >= 0)
    assert np.all(np.diff(np.real(s)) <= 0)
    npt.assert_array_almost_equal(np.imag(s), 0)

    print('checking reconstruction')
    US = operations.contract(U, ['a', 'c', 's'], S, ['s', 's2'])
    res = operations.contract(US, ['a', 'c', 's2'], V, ['s2', 'b'], ['a', 'b', 'c'])
    assert_tensors_almost_equal(res, t, 1e-10, 1e-10)

    print('checking isometries')
    _check_isometry(U, ['a', 'c', 's'], 's', conj_left=True)
    _check_isometry(V, ['s', 'b'], 's', conj_left=False)

    print('checking default rightind and negative indices')
    U2, _, Vh2 = decompositions.svd(t, -1)
    assert U2.space == V3 * scalar_space_kind(4).dual
    assert Vh2.space == scalar_space_kind(4) * V1 * V2


def test_svd_matrix(backend, np_random):
    m = np_random.uniform(size=(5, 3))
    t = tensors.Tensor(m, CartesianSpace(5) * CartesianSpace(3).dual, backend)
    U, S, V = decompositions.svd(t, 0)
    U_np, S_np, V_np = U.to_numpy(), S.to_numpy(), V.to_numpy()
    assert U_np.shape == (5, 3)
    assert S_np.shape == (3, 3)
    npt.assert_array_almost_equal(U_np @ S_np @ V_np, m)
    npt.assert_array_almost_equal(np.diag(S_np), np.linalg.svd(m, compute_uv=False))


def test_svdtrunc(backend, np_random, caplog):
    s = np.array([3., 2., 1., 1e-3, 1e-9])
    m = _matrix_with_singular_values(s, np_random, num_cols=6)
    space = CartesianSpace(5) * CartesianSpace(6).dual
    t = tensors.Tensor(m, space, backend)

    print('checking truncdim')
    with caplog.at_level(logging.DEBUG, logger='spacelab.decompositions'):
        U, S, V, err = decompositions.svdtrunc(t, [0], truncdim=2)
    assert 'keeping 2 of 5' in caplog.text
    assert isinstance(err, float)
    assert U.space == CartesianSpace(5) * CartesianSpace(2).dual
    assert S.space == CartesianSpace(2) * CartesianSpace(2).dual
    assert V.space == CartesianSpace(2) * CartesianSpace(6).dual
    npt.assert_array_almost_equal(np.diag(S.to_numpy()), s[:2])
    npt.assert_almost_equal(err, np.linalg.norm(s[2:]))
    approx = U.to_numpy() @ S.to_numpy() @ V.to_numpy()
    npt.assert_almost_equal(np.linalg.norm(approx - m), err)

    print('checking trunctol')
    U, S, V, err = decompositions.svdtrunc(t, [0], trunctol=1e-6)
    assert S.shape == (4, 4)
    npt.assert_almost_equal(err, 1e-9)
    U, S, V, err = decompositions.svdtrunc(t, [0], truncdim=3, trunctol=1e-6)
    assert S.shape == (3, 3)

    print('checking that trunctol=0 reproduces the full svd')
    U, S, V, err = decompositions.svdtrunc(t, [0], trunctol=0)
    U_full, S_full, V_full = decompositions.svd(t, [0])
    assert err == 0
    assert U.space == U_full.space
    assert_tensors_almost_equal(S, S_full, 1e-10, 1e-10)
    npt.assert_array_almost_equal(U.to_numpy() @ S.to_numpy() @ V.to_numpy(), m)

    print('checking truncdim=0')
    U, S, V, err = decompositions.svdtrunc(t, [0], truncdim=0)
    assert U.shape == (5, 0)
    assert S.shape == (0, 0)
    assert V.shape == (0, 6)
    npt.assert_almost_equal(err, np.linalg.norm(s))

    print('checking invalid truncdim')
    with pytest.raises(ValueError, match='truncdim'):
        _ = decompositions.svdtrunc(t, [0], truncdim=-1)


def test_leftorth(backend, make_tensor, scalar_space_kind):
    V1, V2, V3 = scalar_space_kind(3), scalar_space_kind(4, is_dual=True), scalar_space_kind(2)
    t = make_tensor(V1 * V2 * V3)
    U, R = decompositions.leftorth(t, [0, 1], [2])
    W = scalar_space_kind(2)
    assert U.space == V1 * V2 * W.dual
    assert R.space == W * V3

    print('checking that R is upper triangular with a non-negative real diagonal')
    R_np = R.to_numpy()
    npt.assert_array_almost_equal(np.triu(R_np), R_np)
    npt.assert_array_almost_equal(np.imag(np.diag(R_np)), 0)
    assert np.all(np.real(np.diag(R_np)) >= 0)

    print('checking reconstruction and isometry')
    res = operations.contract(U, ['a', 'b', 's'], R, ['s', 'c'])
    assert_tensors_almost_equal(res, t, 1e-10, 1e-10)
    _check_isometry(U, ['a', 'b', 's'], 's', conj_left=True)

    print('checking that leftorth is deterministic')
    U2, R2 = decompositions.leftorth(t, [0, 1], [2])
    assert_tensors_almost_equal(U2, U, 1e-14, 1e-14)
    assert_tensors_almost_equal(R2, R, 1e-14, 1e-14)

    print('checking leftdim <= rightdim')
    U, R = decompositions.leftorth(t, [2])
    assert U.space == V3 * W.dual
    assert R.space == W * V1 * V2
    npt.assert_array_equal(U.to_numpy(), np.eye(2))
    res = operations.contract(U, ['c', 's'], R, ['s', 'a', 'b'], ['a', 'b', 'c'])
    assert_tensors_almost_equal(res, t, 1e-12, 1e-12)


def test_rightorth(backend, make_tensor, scalar_space_kind):
    V1, V2, V3 = scalar_space_kind(2), scalar_space_kind(3), scalar_space_kind(4, is_dual=True)
    t = make_tensor(V1 * V2 * V3)
    L, Q = decompositions.rightorth(t, [0])
    W = scalar_space_kind(2)
    assert L.space == V1 * W.dual
    assert Q.space == W * V2 * V3

    print('checking that L is lower triangular with a non-negative real diagonal')
    L_np = L.to_numpy()
    npt.assert_array_almost_equal(np.tril(L_np), L_np)
    npt.assert_array_almost_equal(np.imag(np.diag(L_np)), 0)
    assert np.all(np.real(np.diag(L_np)) >= 0)

    print('checking reconstruction and isometry')
    res = operations.contract(L, ['a', 's'], Q, ['s', 'b', 'c'])
    assert_tensors_almost_equal(res, t, 1e-10, 1e-10)
    _check_isometry(Q, ['s', 'b', 'c'], 's', conj_left=False)

    print('checking leftdim >= rightdim')
    L, Q = decompositions.rightorth(t, [1, 2], [0])
    assert L.space == V2 * V3 * W.dual
    assert Q.space == W * V1
    npt.assert_array_equal(Q.to_numpy(), np.eye(2))
    res = operations.contract(L, ['b', 'c', 's'], Q, ['s', 'a'], ['a', 'b', 'c'])
    assert_tensors_almost_equal(res, t, 1e-12, 1e-12)


def test_pinv(backend, np_random):
    print('checking the cutoff')
    m = np.zeros((5, 4))
    m[0, 0], m[1, 1], m[2, 2] = 2., .5, 1e-20
    t = tensors.Tensor(m, CartesianSpace(5) * CartesianSpace(4).dual, backend)
    p = decompositions.pinv(t)
    assert p.space == t.space.adjoint
    expect = np.zeros((4, 5))
    expect[0, 0], expect[1, 1] = .5, 2.
    npt.assert_array_almost_equal(p.to_numpy(), expect)

    print('checking Moore-Penrose conditions for a rank deficient matrix')
    m = np.zeros((5, 4), dtype=complex)
    m[:3, :2] = np_random.normal(size=(3, 2)) + 1.j * np_random.normal(size=(3, 2))
    t = tensors.Tensor(m, EuclideanSpace(5) * EuclideanSpace(4).dual, backend)
    p = decompositions.pinv(t)
    assert p.space == EuclideanSpace(4) * EuclideanSpace(5).dual
    p_np = p.to_numpy()
    npt.assert_array_almost_equal(m @ p_np @ m, m)
    npt.assert_array_almost_equal(p_np @ m @ p_np, p_np)
    npt.assert_array_almost_equal((m @ p_np).conj().T, m @ p_np)
    npt.assert_array_almost_equal((p_np @ m).conj().T, p_np @ m)
    npt.assert_array_almost_equal(p_np, np.linalg.pinv(m))

    print('checking that the spaces allow contraction with the original')
    res = operations.contract(t, ['i', 'j'], p, ['j', 'k'])
    assert res.space == EuclideanSpace(5) * EuclideanSpace(5).dual

    with pytest.raises(ValueError):
        _ = decompositions.pinv(tensors.zeros([CartesianSpace(2)] * 3, backend=backend))


def test_eig_inv_identity(backend):
    V = CartesianSpace(4)
    t = tensors.Tensor(np.eye(4), V.dual * V, backend)
    assert t.shape == (4, 4)
    inverse = decompositions.inv(t)
    assert inverse.space == t.space
    npt.assert_array_almost_equal(inverse.to_numpy(), np.eye(4))
    Lambda, U = decompositions.eig(t)
    assert Lambda.space == t.space
    assert U.space == t.space
    npt.assert_array_almost_equal(np.diag(Lambda.to_numpy()), np.ones(4))
    assert_tensors_almost_equal(decompositions.inv(tensors.eye(V, backend=backend)), t)


def test_eig(backend, np_random):
    V = EuclideanSpace(4)
    m = np.triu(np_random.uniform(size=(4, 4))) + np.diag([1., 2., 3., 4.])
    t = tensors.Tensor(m, V * V.dual, backend)
    Lambda, U = decompositions.eig(t)
    assert Lambda.dtype.is_real
    w = np.diag(Lambda.to_numpy())
    U_np = U.to_numpy()
    npt.assert_array_almost_equal(np.sort(w), np.sort(np.diag(m)))
    npt.assert_array_almost_equal(m @ U_np, U_np @ np.diag(w))
    npt.assert_array_equal(t.to_numpy(), m)

    print('checking complex eigenvalues of a real matrix')
    rot = np.array([[0., -1.], [1., 0.]])
    Lambda, U = decompositions.eig(tensors.Tensor(rot, CartesianSpace(2) * CartesianSpace(2).dual, backend))
    assert Lambda.dtype.is_complex
    w = np.diag(Lambda.to_numpy())
    npt.assert_array_almost_equal(w[np.argsort(w.imag)], [-1.j, 1.j])


def test_inv(backend, np_random):
    V = CartesianSpace(3, is_dual=True)
    m = np_random.uniform(size=(3, 3)) + 3 * np.eye(3)
    t = tensors.Tensor(m, V * V.dual, backend)
    res = decompositions.inv(t)
    assert res.space == t.space
    npt.assert_array_almost_equal(res.to_numpy() @ m, np.eye(3))
    prod = operations.contract(res, ['i', 'j'], t, ['j', 'k'])
    assert_tensors_almost_equal(prod, tensors.eye(V.dual, backend=backend), 1e-10, 1e-10)


def test_invalid_inputs(backend, make_tensor):
    V = CartesianSpace(3)

    print('checking that eig and inv require dual spaces')
    t = make_tensor(V * V)
    with pytest.raises(SpaceError):
        _ = decompositions.eig(t)
    with pytest.raises(SpaceError):
        _ = decompositions.inv(t)
    t = make_tensor(V * CartesianSpace(2).dual)
    with pytest.raises(SpaceError):
        _ = decompositions.eig(t)

    print('checking that spaces must be scalar spaces')
    C = ComplexSpace(3)
    t = make_tensor(C * C.dual)
    for func in [decompositions.eig, decompositions.inv, decompositions.pinv]:
        with pytest.raises(SpaceError):
            _ = func(t)
    with pytest.raises(SpaceError):
        _ = decompositions.svd(t, [0])
    with pytest.raises(SpaceError):
        _ = decompositions.leftorth(t, [0])

    print('checking the number of axes')
    t = make_tensor(V * V.dual * V)
    for func in [decompositions.eig, decompositions.inv, decompositions.pinv]:
        with pytest.raises(ValueError):
            _ = func(t)

    print('checking invalid bipartitions')
    with pytest.raises(IndexError):
        _ = decompositions.svd(t, [0], [0])
    with pytest.raises(IndexError):
        _ = decompositions.svd(t, [0, 3])
    with pytest.raises(IndexError):
        _ = decompositions.rightorth(t, [0], [1])
