r"""spacelab library - dense tensors whose axes carry index spaces.

Provides a dense tensor class with labeled, space-checked operations (copy, add, trace,
contract) and matrix factorizations, with an exchangeable numpy or torch backend.

"""
# Copyright (C) TeNPy Developers, Apache license

# note: order matters!
from . import (
    block_backends,
    decompositions,
    dtypes,
    dummy_config,
    labels,
    operations,
    spaces,
    tensors,
    testing,
    tools,
)
from .block_backends import get_block_backend
from .decompositions import eig, inv, leftorth, pinv, rightorth, svd, svdtrunc
from .dtypes import Dtype
from .labels import LabelError
from .operations import (
    contract,
    permute,
    scalar,
    tensoradd,
    tensorcontract,
    tensorcopy,
    tensortrace,
    trace,
)
from .spaces import (
    CartesianSpace,
    ComplexSpace,
    EuclideanSpace,
    IndexSpace,
    ProductSpace,
    ScalarSpace,
    SpaceError,
    fuse,
)
from .tensors import (
    DimensionMismatch,
    Tensor,
    almost_equal,
    dagger,
    dagger_into,
    deleteind,
    eye,
    fuseind,
    imag,
    insertind,
    norm,
    random_uniform,
    real,
    scale,
    scale_,
    similar,
    splitind,
    tensor,
    tensorcat,
    to_dtype,
    zero_like,
    zeros,
)

__all__ = [
    # modules
    'block_backends', 'decompositions', 'dtypes', 'dummy_config', 'labels', 'operations',
    'spaces', 'tensors', 'testing', 'tools',
    # block backends
    'get_block_backend',
    # decompositions
    'eig', 'inv', 'leftorth', 'pinv', 'rightorth', 'svd', 'svdtrunc',
    # dtypes & labels
    'Dtype', 'LabelError',
    # operations
    'contract', 'permute', 'scalar', 'tensoradd', 'tensorcontract', 'tensorcopy', 'tensortrace',
    'trace',
    # spaces
    'CartesianSpace', 'ComplexSpace', 'EuclideanSpace', 'IndexSpace', 'ProductSpace', 'ScalarSpace',
    'SpaceError', 'fuse',
    # tensors
    'DimensionMismatch', 'Tensor', 'almost_equal', 'dagger', 'dagger_into', 'deleteind', 'eye',
    'fuseind', 'imag', 'insertind', 'norm', 'random_uniform', 'real', 'scale', 'scale_', 'similar',
    'splitind', 'tensor', 'tensorcat', 'to_dtype', 'zero_like', 'zeros',
]
