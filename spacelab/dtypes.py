"""Utility function concerning dtypes and in particular the Dtype class."""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

from enum import Enum
from numbers import Number

import numpy as np

__all__ = ['Dtype']


class Dtype(Enum):
    """The dtype of (entries in) a tensor."""

    # value = num_bytes * 2 + int(not is_real)
    bool = 2
    float32 = 8
    complex64 = 9
    float64 = 16
    complex128 = 17

    @property
    def is_real(dtype):
        return dtype.value % 2 == 0

    @property
    def is_complex(dtype):
        return dtype.value % 2 == 1

    @property
    def to_complex(dtype):
        if dtype.value == 2:
            raise ValueError('Dtype.bool can not be converted to complex')
        if dtype.value % 2 == 1:
            return dtype
        return Dtype(dtype.value + 1)

    @property
    def eps(dtype):
        # difference between 1.0 and the next representable floating point number at the given precision
        if dtype.value == Dtype.bool.value:
            raise ValueError(f'{dtype} is not inexact')
        n_bits = 8 * (dtype.value // 2)
        if n_bits == 32:
            return 2**-23
        if n_bits == 64:
            return 2**-52
        raise NotImplementedError(f'Dtype.eps not implemented for n_bits={n_bits}')

    def __repr__(self) -> str:
        return f'Dtype.{self.name}'

    def common(*dtypes):
        res = Dtype(max(t.value for t in dtypes))
        if res.is_real:
            if not all(t.is_real for t in dtypes):
                return res.to_complex
        return res

    def can_hold(dtype, other: Dtype) -> bool:
        """If values of dtype `other` can be stored in `dtype` without dropping imaginary parts."""
        if dtype.is_real and other.is_complex:
            return False
        return True

    def convert_python_scalar(dtype, value) -> complex | float | bool:
        if dtype.value == Dtype.bool.value:
            if value in [True, False, 0, 1]:
                return bool(value)
        elif dtype.is_real:
            if isinstance(value, (int, float, np.integer, np.floating)):
                return float(value)
        else:
            if isinstance(value, Number):
                return complex(value)
        raise TypeError(f'Type {type(value)} is incompatible with dtype {dtype}')

    @classmethod
    def of_scalar(cls, value) -> Dtype:
        """The smallest double precision dtype that can represent a python scalar."""
        if isinstance(value, (complex, np.complexfloating)):
            return cls.complex128
        return cls.float64


_numpy_dtype_to_dtype = {
    None: None,
    np.float32: Dtype.float32,
    np.float64: Dtype.float64,
    np.complex64: Dtype.complex64,
    np.complex128: Dtype.complex128,
    np.bool_: Dtype.bool,
    np.dtype('float32'): Dtype.float32,
    np.dtype('float64'): Dtype.float64,
    np.dtype('complex64'): Dtype.complex64,
    np.dtype('complex128'): Dtype.complex128,
    np.dtype('bool'): Dtype.bool,
}

_dtype_to_numpy = {
    None: None,
    Dtype.float32: np.float32,
    Dtype.float64: np.float64,
    Dtype.complex64: np.complex64,
    Dtype.complex128: np.complex128,
    Dtype.bool: np.bool_,
}
