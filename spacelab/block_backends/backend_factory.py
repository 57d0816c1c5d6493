"""Utility functions to access block backend instances."""

# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

import logging

from ..dummy_config import config
from ._block_backend import BlockBackend
from .numpy import NumpyBlockBackend
from .torch import TorchBlockBackend

__all__ = ['get_block_backend']

logger = logging.getLogger(__name__)

_block_backends = dict(  # values: (cls, kwargs)
    numpy=(NumpyBlockBackend, {}),
    torch=(TorchBlockBackend, {}),
    cpu=(NumpyBlockBackend, {}),
    gpu=(TorchBlockBackend, dict(default_device='cuda')),
)
_instantiated_backends = {}  # keys: block_backend name


def get_block_backend(block_backend: str = None) -> BlockBackend:
    """Get an instance of a block backend.

    Backends are instantiated only once and then cached. If a suitable backend instance is in
    the cache, that same instance is returned.

    Parameters
    ----------
    block_backend : {None, 'numpy', 'torch', 'cpu', 'gpu'}
        Specify which block backend to use. ``None`` means ``config.default_block_backend``.

    """
    if block_backend is None:
        block_backend = config.default_block_backend
    if not isinstance(block_backend, str):
        msg = f'Invalid type for `block_backend`. Expected str. Got {type(block_backend).__name__}'
        raise TypeError(msg)

    backend = _instantiated_backends.get(block_backend, None)
    if backend is not None:
        return backend

    if block_backend not in _block_backends:
        msg = f'Unknown block backend {block_backend!r}. Options: {list(_block_backends)}'
        raise ValueError(msg)
    BlockBackendCls, block_kwargs = _block_backends[block_backend]
    backend = BlockBackendCls(**block_kwargs)
    logger.debug('Instantiated %s for block_backend=%r', backend, block_backend)

    _instantiated_backends[block_backend] = backend
    return backend
