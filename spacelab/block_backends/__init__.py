"""Block-backends implement matrix and array algebra on dense blocks, similar to e.g. numpy"""
# Copyright (C) TeNPy Developers, Apache license

from ._block_backend import Block, BlockBackend
from .backend_factory import get_block_backend
from .numpy import NumpyBlockBackend
from .torch import TorchBlockBackend

__all__ = ['backend_factory', 'numpy', 'torch', 'Block', 'BlockBackend', 'get_block_backend',
           'NumpyBlockBackend', 'TorchBlockBackend']
