"""
GPU backend using PyTorch with FP64 precision.

For data center GPUs: A100, H100, V100.
"""

import warnings
import torch
from typing import Optional

from .gpu_fp32_backend import PyTorchBackendFP32
from .base import GPUBackendFP64


class PyTorchBackendFP64(PyTorchBackendFP32, GPUBackendFP64):
    """
    PyTorch GPU backend with FP64 precision.

    Same as FP32 but uses float64 precision.
    Only recommended for data center GPUs with full FP64 support.
    """

    torch_dtype = torch.float64

    def __init__(self, device: Optional[str] = None):
        """Initialize PyTorch FP64 backend."""
        self.name = "pytorch_fp64"
        self.precision = "fp64"

        # Device selection (no Metal for FP64)
        if device == 'mps':
            raise RuntimeError(
                "FP64 not supported on Apple Metal. "
                "Use FP32 backend or CPU."
            )

        if device is None:
            if torch.cuda.is_available():
                device = 'cuda'
            else:
                warnings.warn("No CUDA GPU available, using CPU")
                device = 'cpu'

        self.device = torch.device(device)

        # Warn if using FP64 on gimped hardware
        if device == 'cuda':
            from .precision_detector import detect_gpu_capabilities
            caps = detect_gpu_capabilities()
            if caps.fp64_support.value == 'gimped_fp64':
                warnings.warn(
                    f"Using FP64 on {caps.gpu_name} with gimped FP64 support. "
                    f"This will be ~{int(1/caps.fp64_throughput_ratio)}x slower than FP32.",
                    UserWarning
                )
