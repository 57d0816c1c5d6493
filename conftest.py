r"""Provide test configuration for block backends etc.

Fixtures
--------

The following table summarizes the available fixtures.

=============================  ======================  ===========================================
Fixture                        Depends on / # cases    Description
=============================  ======================  ===========================================
np_random                      -                       A numpy random Generator. Use this for
                                                       reproducibility.
-----------------------------  ----------------------  -------------------------------------------
block_backend                  Generates ~2 cases      Goes over all block backends, as str
                                                       descriptions, valid for
                                                       ``get_block_backend``.
-----------------------------  ----------------------  -------------------------------------------
backend                        block_backend           The :class:`BlockBackend` instance.
-----------------------------  ----------------------  -------------------------------------------
any_space_kind                 Generates 3 cases       Goes over all concrete IndexSpace types.
-----------------------------  ----------------------  -------------------------------------------
scalar_space_kind              Generates 2 cases       Goes over the ScalarSpace types.
-----------------------------  ----------------------  -------------------------------------------
make_space                     np_random               RNG for index spaces.
                                                       ``make(kind=CartesianSpace, max_dim=5,
                                                       min_dim=1, is_dual=None)``
-----------------------------  ----------------------  -------------------------------------------
make_block                     backend                 RNG for blocks of ``backend``.
                                                       ``make(size, real=False)``
-----------------------------  ----------------------  -------------------------------------------
make_tensor                    backend                 RNG for tensors with ``backend``.
                                                       Signature see below.
=============================  ======================  ===========================================

The function returned by the fixture ``make_tensor`` has the following inputs::

    space:
        Either a ProductSpace, a list of IndexSpaces or an integer, the number of axes for a
        random ProductSpace of the given `kind`.
    dtype: Dtype, optional
        The dtype for the tensor. Per default, real for CartesianSpace and complex otherwise.
    kind: type
        The IndexSpace type, if `space` is an integer.


Marks
-----
Note: a list of marks should also be maintained in ``pyproject.toml``.

- ``slow``: marks tests as slow (deselect with ``-m "not slow"``)
- ``numpy``: marks tests that use the numpy block backend.
- ``torch``: marks tests that use the torch block backend.

"""

# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

import numpy as np
import pytest

from spacelab import Dtype, block_backends, spaces, tensors
from spacelab.testing import random_block, random_product_space, random_space, random_tensor

# OVERRIDE pytest routines


def pytest_addoption(parser):
    parser.addoption('--block-backends', action='store', default='numpy', help=f'Comma separated block-backend names')
    parser.addoption('--rng-seed', action='store', default=12345, type=int, help=f'The rng seed')


def pytest_generate_tests(metafunc):
    if 'block_backend' in metafunc.fixturenames:
        block_backends = metafunc.config.getoption('--block-backends').split(',')
        assert all(b in _block_backend_params for b in block_backends), str(block_backends)
        metafunc.parametrize('block_backend', [_block_backend_params[b] for b in block_backends],
                             indirect=True)


# QUICK CONFIGURATION

_block_backend_params = dict(
    numpy=pytest.param('numpy', marks=pytest.mark.numpy),
    torch=pytest.param('torch', marks=pytest.mark.torch),
)
_space_kinds = {
    'Cartesian': spaces.CartesianSpace,
    'Euclidean': spaces.EuclideanSpace,
    'Complex': spaces.ComplexSpace,
}


# FIXTURES


@pytest.fixture
def np_random(request) -> np.random.Generator:
    return np.random.default_rng(seed=request.config.getoption('--rng-seed'))


@pytest.fixture  # values defined during `pytest_generate_tests`
def block_backend(request) -> str:
    if request.param == 'torch':
        _ = pytest.importorskip('torch', reason='torch not installed')
    return request.param


@pytest.fixture
def backend(block_backend) -> block_backends.BlockBackend:
    return block_backends.get_block_backend(block_backend)


@pytest.fixture(params=list(_space_kinds.values()), ids=list(_space_kinds.keys()))
def any_space_kind(request) -> type:
    return request.param


@pytest.fixture(params=[spaces.CartesianSpace, spaces.EuclideanSpace], ids=['Cartesian', 'Euclidean'])
def scalar_space_kind(request) -> type:
    return request.param


@pytest.fixture
def make_space(np_random):
    def make(kind: type = spaces.CartesianSpace, max_dim: int = 5, min_dim: int = 1,
             is_dual: bool = None) -> spaces.IndexSpace:
        # returns IndexSpace
        return random_space(kind, max_dim=max_dim, min_dim=min_dim, is_dual=is_dual,
                            np_random=np_random)

    return make


@pytest.fixture
def make_block(backend, np_random):
    def make(size: tuple[int, ...], real: bool = False) -> block_backends.Block:
        # returns Block
        return random_block(backend, size, real=real, np_random=np_random)

    return make


@pytest.fixture
def make_tensor(backend, np_random):
    """Tensor RNG."""

    def make(space: spaces.ProductSpace | list[spaces.IndexSpace] | int = 2, dtype: Dtype = None,
             kind: type = spaces.CartesianSpace) -> tensors.Tensor:
        if isinstance(space, int):
            space = random_product_space(space, kind=kind, np_random=np_random)
        return random_tensor(space, backend=backend, dtype=dtype, np_random=np_random)

    return make
