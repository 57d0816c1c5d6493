"""Temporary solution for global config options."""
# Copyright (C) TeNPy Developers, Apache license

__all__ = ['printoptions', 'config']


class printoptions:
    """A collection of global print options. The class is used as a namespace"""

    linewidth: int = 100
    indent: int = 2
    maxlines_spaces: int = 15
    maxlines_tensors: int = 30
    skip_data: bool = False  # skip Data section in Tensor prints


class config:
    """A collection of global config options. The class is used as a namespace"""
    printoptions = printoptions
    default_block_backend = 'numpy'
    default_svd_algorithm = None  # None -> the block backend picks its default
