"""
GPU backend using PyTorch with FP32 precision.

NVIDIA CUDA or Apple MPS. Runs the same normal-equation pipeline as the
CPU backend, with Gauss-Jordan elimination written in torch ops.
"""

import math
from contextlib import contextmanager
import numpy as np
import torch
from typing import Optional, Any, Tuple

from .base import GPUBackendFP32, PolynomialFitResult
from ..exceptions import AllocationError, SingularMatrixError


class PyTorchBackendFP32(GPUBackendFP32):
    """
    PyTorch GPU backend with FP32 precision.

    Keeps all computation on GPU using torch tensors.
    Only converts at entry (numpy → torch) and exit (torch → numpy).

    Requirements:
    - NVIDIA GPU with CUDA, or Apple Silicon with MPS
    - PyTorch built with the matching support

    FP32 pivots degrade quickly with degree; prefer FP64 backends for
    degree > 3 or poorly scaled x.
    """

    torch_dtype = torch.float32

    def __init__(self, device: Optional[str] = None):
        """Initialize PyTorch FP32 backend."""
        self.name = "pytorch_fp32"
        self.precision = "fp32"
        self.device = self._select_device(device)

    def _select_device(self, requested: Optional[str]) -> Any:
        """Select GPU device. Fails if no GPU available."""
        if requested:
            return torch.device(requested)

        if torch.cuda.is_available():
            return torch.device('cuda')
        if hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
            return torch.device('mps')

        raise RuntimeError(
            "PyTorch backend requires a CUDA or MPS GPU.\n"
            "Options:\n"
            "  1. Use get_backend('cpu') for CPU (FP64)\n"
            "  2. Install CUDA- or MPS-enabled PyTorch"
        )

    def _to_device(self, a: np.ndarray):
        """numpy → torch on self.device (cast on host first; MPS has no FP64)."""
        t = torch.from_numpy(np.ascontiguousarray(a, dtype=np.float64))
        return t.to(dtype=self.torch_dtype).to(self.device)

    @contextmanager
    def _device_memory(self, name: str, shape: Tuple[int, ...]):
        """Re-raise device or host out-of-memory inside the block as AllocationError."""
        try:
            yield
        except AllocationError:
            raise
        except (torch.cuda.OutOfMemoryError, MemoryError) as e:
            raise AllocationError(
                f"Cannot allocate {name} with shape {shape} on {self.device}",
                shape=shape,
                name=name,
            ) from e
        except RuntimeError as e:
            # MPS reports exhaustion as a plain RuntimeError
            if "out of memory" not in str(e).lower():
                raise
            raise AllocationError(
                f"Cannot allocate {name} with shape {shape} on {self.device}",
                shape=shape,
                name=name,
            ) from e

    def _allocate(self, shape: Tuple[int, ...], name: str):
        with self._device_memory(name, shape):
            return torch.empty(shape, dtype=self.torch_dtype, device=self.device)

    def _design_matrix_gpu(self, x, n_columns: int):
        """Monomial powers by repeated multiplication (on GPU)."""
        n = x.shape[0]
        X = self._allocate((n, n_columns), 'design matrix')
        power = torch.ones(n, dtype=self.torch_dtype, device=self.device)
        for j in range(n_columns):
            X[:, j] = power
            power = power * x
        return X

    def _gauss_jordan_gpu(self, A, tol: float):
        """
        Gauss-Jordan inverse with partial pivoting (on GPU).

        Mirrors polyregression._core.inverse; pivot selection and the
        singularity check sync one scalar per column.
        """
        m = A.shape[0]
        work = A.clone()
        inv = torch.eye(m, dtype=self.torch_dtype, device=self.device)
        min_pivot = math.inf

        for i in range(m):
            pivot_row = i + int(torch.argmax(torch.abs(work[i:, i])).item())
            pivot_abs = abs(float(work[pivot_row, i].item()))

            if not math.isfinite(pivot_abs) or pivot_abs < tol:
                raise SingularMatrixError(
                    f"Matrix is singular to working precision: pivot {pivot_abs:.3e} "
                    f"in column {i} is below threshold {tol:.1e}",
                    pivot_index=i,
                    pivot_value=pivot_abs,
                    threshold=tol,
                )

            if pivot_row != i:
                work[[i, pivot_row]] = work[[pivot_row, i]]
                inv[[i, pivot_row]] = inv[[pivot_row, i]]

            pivot = work[i, i].clone()
            work[i] = work[i] / pivot
            inv[i] = inv[i] / pivot
            min_pivot = min(min_pivot, pivot_abs)

            factors = work[:, i].clone()
            factors[i] = 0
            work = work - torch.outer(factors, work[i])
            inv = inv - torch.outer(factors, inv[i])

        return inv, min_pivot

    def fit_polynomial(
        self,
        x: np.ndarray,
        y: np.ndarray,
        degree: int,
        pivot_tol: float
    ) -> PolynomialFitResult:
        """
        Fit polynomial on GPU.

        ALL computation happens on GPU with torch tensors.
        Only convert at boundaries (entry/exit).
        """
        n = len(y)
        m = degree + 1

        with self._device_memory('normal-equation pipeline', (n, m)):
            # Convert to GPU tensors ONCE at entry
            x_gpu = self._to_device(x)
            y_gpu = self._to_device(y)

            X = self._design_matrix_gpu(x_gpu, m)
            XtX = X.T @ X
            Xty = X.T @ y_gpu

            XtX_inv, min_pivot = self._gauss_jordan_gpu(XtX, pivot_tol)
            coef = XtX_inv @ Xty

            fitted = X @ coef
            residuals = y_gpu - fitted

            # Convert ONCE at exit
            return PolynomialFitResult(
                coef=coef.cpu().numpy(),
                fitted_values=fitted.cpu().numpy(),
                residuals=residuals.cpu().numpy(),
                xtx_inv=XtX_inv.cpu().numpy(),
                rank=m,
                df_residual=n - m,
                pivot_tol=float(pivot_tol),
                min_pivot=float(min_pivot)
            )

    def predict_polynomial(
        self,
        x: np.ndarray,
        coef: np.ndarray
    ) -> np.ndarray:
        """Evaluate polynomial on GPU."""
        with self._device_memory('predictions', (len(x), len(coef))):
            x_gpu = self._to_device(x)
            coef_gpu = self._to_device(coef)
            X = self._design_matrix_gpu(x_gpu, len(coef))
            return (X @ coef_gpu).cpu().numpy()

    def get_device_info(self) -> dict:
        """Get backend information."""
        return {
            'backend': 'gpu',
            'precision': self.precision,
            'device': str(self.device),
            'library': f'PyTorch {torch.__version__}',
        }
