"""Implements a BlockBackend using PyTorch."""
# Copyright (C) TeNPy Developers, Apache license
from __future__ import annotations

import numpy
from numpy import prod

from ..dtypes import Dtype
from ._block_backend import Block, BlockBackend

__all__ = ['TorchBlockBackend']


class TorchBlockBackend(BlockBackend):
    """A block-backend using PyTorch"""

    svd_algorithms = ['gesvdj', 'gesvda', 'gesvd']

    def __init__(self, default_device: str = 'cpu') -> None:
        global torch_module
        try:
            import torch
        except ImportError as e:
            raise ImportError('Could not import torch. Use a different backend or install torch.') from e
        torch_module = torch
        self.dtype_map = {
            torch.float32: Dtype.float32,
            torch.float64: Dtype.float64,
            torch.complex64: Dtype.complex64,
            torch.complex128: Dtype.complex128,
            torch.bool: Dtype.bool,
            None: None,
        }
        self.backend_dtype_map = {
            Dtype.float32: torch.float32,
            Dtype.float64: torch.float64,
            Dtype.complex64: torch.complex64,
            Dtype.complex128: torch.complex128,
            Dtype.bool: torch.bool,
            None: None,
        }
        self.BlockCls = torch.Tensor
        super().__init__(default_device=self.as_device(default_device))

    # torch refuses in-place writes from a tensor that overlaps the destination in memory,
    # e.g. a permuted view of the destination itself. Work on a clone instead.

    def copy_into(self, src: Block, perm, dst: Block) -> Block:
        dst.copy_(self.permute_axes(src, list(perm)).clone())
        return dst

    def _accumulate(self, alpha, res: Block, beta, dst: Block) -> Block:
        return super()._accumulate(alpha, res.clone(), beta, dst)

    def as_block(self, a, dtype: Dtype = None, return_dtype: bool = False, device: str = None
                 ) -> Block:
        if not isinstance(a, torch_module.Tensor):
            # go via numpy, such that python floats become float64, not torch's default float32
            a = numpy.asarray(a)
        block = torch_module.as_tensor(a, dtype=self.backend_dtype_map[dtype],
                                       device=self.as_device(device))
        if not (block.is_floating_point() or block.is_complex() or block.dtype == torch_module.bool):
            block = block.to(torch_module.float64)  # force int to float.
        if return_dtype:
            return block, self.dtype_map[block.dtype]
        return block

    def as_device(self, device: str | None) -> str:
        if device is None:
            device = self.default_device
        res = torch_module.device(device)
        if res.index is None and res.type != 'cpu':
            res = torch_module.device(res.type, index=0)
        return str(res)

    def allclose(self, a: Block, b: Block, rtol: float = 1e-5, atol: float = 1e-8) -> bool:
        a = torch_module.as_tensor(a)
        b = torch_module.as_tensor(b)
        a, b = self.to_same_dtype(a, b)
        return bool(torch_module.allclose(a, b, rtol=rtol, atol=atol))

    def block_from_diagonal(self, diag: Block) -> Block:
        return torch_module.diag(diag)

    def block_from_numpy(self, a: numpy.ndarray, dtype: Dtype = None, device: str = None) -> Block:
        return torch_module.tensor(a, device=self.as_device(device),
                                   dtype=self.backend_dtype_map[dtype])

    def conj(self, a: Block) -> Block:
        # torch.conj is a lazy view, and the identity for real tensors. Always return new memory.
        if not a.is_complex():
            return a.clone()
        return torch_module.conj(a).resolve_conj()

    def copy_block(self, a: Block, device: str = None) -> Block:
        res = a.clone().detach()
        if device is not None:
            res = res.to(self.as_device(device))
        return res

    def eye_matrix(self, dim: int, dtype: Dtype, device: str = None) -> Block:
        return torch_module.eye(dim, dtype=self.backend_dtype_map[dtype],
                                device=self.as_device(device))

    def get_device(self, a: Block) -> str:
        res = a.device
        if res.index is None and res.type != 'cpu':
            res = torch_module.device(res.type, index=0)
        return str(res)

    def get_diagonal(self, a: Block) -> Block:
        return torch_module.diagonal(a)

    def get_dtype(self, a: Block) -> Dtype:
        return self.dtype_map[a.dtype]

    def get_shape(self, a: Block) -> tuple[int]:
        return tuple(a.shape)

    def imag(self, a: Block) -> Block:
        if not a.dtype.is_complex:
            return torch_module.zeros_like(a)
        return torch_module.imag(a)

    def item(self, a: Block) -> float | complex:
        if a.dtype.is_complex:
            return complex(a)
        else:
            return float(a)

    def make_contiguous(self, a: Block) -> Block:
        return a.contiguous()

    def matrix_dot(self, a: Block, b: Block) -> Block:
        a, b = self.to_same_dtype(a, b)
        return torch_module.matmul(a, b)

    def matrix_eig(self, a: Block) -> tuple[Block, Block]:
        w, v = torch_module.linalg.eig(a)
        if not a.dtype.is_complex and bool(torch_module.all(w.imag == 0)):
            w = w.real.to(a.dtype)
            v = v.real.to(a.dtype)
        return w, v

    def matrix_inv(self, a: Block) -> Block:
        return torch_module.linalg.inv(a)

    def matrix_qr(self, a: Block, full: bool) -> tuple[Block, Block]:
        return torch_module.linalg.qr(a, mode='complete' if full else 'reduced')

    def matrix_svd(self, a: Block, algorithm: str | None) -> tuple[Block, Block, Block]:
        if a.device.type == 'cuda':
            if algorithm is None:
                algorithm = 'gesvd'
            assert algorithm in self.svd_algorithms
        else:
            if algorithm == 'gesvd':
                algorithm = None
            if algorithm is not None:
                msg = 'For torch, the algorithm keyword is only supported on CUDA hardware'
                raise ValueError(msg)
        U, S, V = torch_module.linalg.svd(a, full_matrices=False, driver=algorithm)
        return U, S, V

    def max_abs(self, a: Block) -> float:
        if a.numel() == 0:
            return 0.
        return self.item(torch_module.max(torch_module.abs(a)))

    def norm(self, a: Block, order: int | float = 2, axis: int | None = None) -> float:
        res = torch_module.linalg.vector_norm(a, ord=order, dim=axis)
        if axis is None:
            res = self.item(res)
        return res

    def permute_axes(self, a: Block, permutation: list[int]) -> Block:
        return torch_module.permute(a, list(permutation))

    def phase_inverse(self, a: Block) -> Block:
        ones = torch_module.ones_like(a)
        safe = torch_module.where(a == 0, ones, a)
        return torch_module.where(a == 0, ones, torch_module.abs(safe) / safe)

    def real(self, a: Block) -> Block:
        return torch_module.real(a)

    def reshape(self, a: Block, shape: tuple[int]) -> Block:
        return torch_module.reshape(a, tuple(shape))

    def tdot(self, a: Block, b: Block, idcs_a: list[int], idcs_b: list[int]) -> Block:
        a, b = self.to_same_dtype(a, b, at_least=torch_module.float16)
        return torch_module.tensordot(a, b, (list(idcs_a), list(idcs_b)))

    def to_dtype(self, a: Block, dtype: Dtype) -> Block:
        return a.type(self.backend_dtype_map[dtype])

    def to_numpy(self, a: Block, numpy_dtype=None) -> numpy.ndarray:
        return numpy.asarray(a.detach().cpu().numpy(), dtype=numpy_dtype)

    def to_same_dtype(self, a: Block, b: Block, at_least=None) -> tuple[Block, ...]:
        dtype = torch_module.promote_types(a.dtype, b.dtype)
        if at_least is not None:
            dtype = torch_module.promote_types(dtype, at_least)
        if a.dtype != dtype:
            a = torch_module.as_tensor(a, dtype=dtype)
        if b.dtype != dtype:
            b = torch_module.as_tensor(b, dtype=dtype)
        return a, b

    def trace_partial(self, a: Block, idcs1: list[int], idcs2: list[int], remaining: list[int]) -> Block:
        a = torch_module.permute(a, remaining + idcs1 + idcs2)
        trace_dim = int(prod(a.shape[len(remaining):len(remaining)+len(idcs1)]))
        a = torch_module.reshape(a, tuple(a.shape[:len(remaining)]) + (trace_dim, trace_dim))
        return a.diagonal(offset=0, dim1=-1, dim2=-2).sum(-1)

    def zeros(self, shape: list[int], dtype: Dtype, device: str = None) -> Block:
        return torch_module.zeros(list(shape), dtype=self.backend_dtype_map[dtype],
                                  device=self.as_device(device))

    def _block_repr_lines(self, a: Block, indent: str, max_width: int, max_lines: int) -> list[str]:
        torch_module.set_printoptions(linewidth=max_width - len(indent))
        lines = [f'{indent}{line}' for line in repr(a).split('\n')]
        torch_module.set_printoptions(profile='default')
        if len(lines) > max_lines:
            first = (max_lines - 1) // 2
            last = max_lines - 1 - first
            lines = lines[:first] + [f'{indent}...'] + lines[-last:]
        return lines
