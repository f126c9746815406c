"""
Backend selection and management.

Provides unified interface for CPU (NumPy) and GPU (PyTorch CUDA/MPS).
"""

from typing import Optional, Union
import warnings

from .base import BackendBase, PolynomialFitResult
from .precision_detector import (
    detect_gpu_capabilities,
    recommend_precision,
    GPUCapabilities
)

# Try importing CPU backend (always available)
try:
    from .cpu_backend import CPUBackendFP64, CPUBackendFP32
    CPU_AVAILABLE = True
except ImportError:
    CPU_AVAILABLE = False
    warnings.warn("CPU backend unavailable - installation error!")

# PyTorch backends (optional dependency)
try:
    from .gpu_fp32_backend import PyTorchBackendFP32
    PYTORCH_FP32_AVAILABLE = True
except ImportError:
    PYTORCH_FP32_AVAILABLE = False

try:
    from .gpu_fp64_backend import PyTorchBackendFP64
    PYTORCH_FP64_AVAILABLE = True
except ImportError:
    PYTORCH_FP64_AVAILABLE = False


def _cpu_backend(use_fp64: bool) -> BackendBase:
    if not CPU_AVAILABLE:
        raise RuntimeError("CPU backend unavailable!")
    return CPUBackendFP64() if use_fp64 else CPUBackendFP32()


def _pytorch_backend(use_fp64: bool) -> BackendBase:
    if use_fp64 and PYTORCH_FP64_AVAILABLE:
        return PyTorchBackendFP64()
    if not use_fp64 and PYTORCH_FP32_AVAILABLE:
        return PyTorchBackendFP32()
    raise RuntimeError(
        "PyTorch backend unavailable.\n"
        "Install: pip install torch"
    )


def get_backend(
    backend: Union[str, BackendBase] = 'auto',
    use_fp64: Optional[bool] = None
) -> BackendBase:
    """
    Get computational backend.

    Parameters
    ----------
    backend : str or BackendBase
        Backend selection:
        - 'auto': CPU unless a GPU with fast FP64 is present
        - 'cpu': CPU with NumPy
        - 'gpu': Any available GPU (PyTorch CUDA or MPS)
        - 'pytorch': Force PyTorch (FP64 falls back to torch on CPU)
        - a BackendBase instance is returned unchanged

    use_fp64 : bool or None
        Precision preference:
        - None: FP64
        - True: Force FP64
        - False: Allow FP32

    Returns
    -------
    BackendBase
        Backend instance

    Examples
    --------
    >>> backend = get_backend('auto')
    >>> backend = get_backend('cpu', use_fp64=False)  # NumPy float32
    >>> backend = get_backend('gpu')
    """
    if isinstance(backend, BackendBase):
        return backend

    if backend == 'auto':
        caps = detect_gpu_capabilities()

        # FP64 runs on the GPU only when it is fast there, otherwise on CPU
        if use_fp64 is not False:
            if caps.gpu_type == 'cuda' and caps.fp64_fast and PYTORCH_FP64_AVAILABLE:
                return PyTorchBackendFP64()
            return _cpu_backend(True)

        if caps.has_gpu and PYTORCH_FP32_AVAILABLE:
            return PyTorchBackendFP32()
        return _cpu_backend(False)

    elif backend == 'cpu':
        return _cpu_backend(use_fp64 is not False)

    elif backend == 'gpu':
        caps = detect_gpu_capabilities()

        if not caps.has_gpu:
            raise ValueError(
                "No GPU detected.\n"
                "Options:\n"
                "  - Use backend='cpu'\n"
                "  - Install PyTorch with CUDA for NVIDIA\n"
                "  - Install PyTorch with MPS for Apple Silicon"
            )

        # Metal has no FP64; only an explicit FP64 request is an error
        if caps.gpu_type == 'metal' and use_fp64 is None:
            return _pytorch_backend(False)
        return _pytorch_backend(recommend_precision(caps, use_fp64))

    elif backend == 'pytorch':
        caps = detect_gpu_capabilities()
        return _pytorch_backend(recommend_precision(caps, use_fp64))

    else:
        raise ValueError(
            f"Unknown backend: '{backend}'\n"
            f"Valid options: 'auto', 'cpu', 'gpu', 'pytorch'"
        )


def list_available_backends() -> list:
    """List names of available backends."""
    backends = []
    if CPU_AVAILABLE:
        backends.append('cpu')
    if PYTORCH_FP32_AVAILABLE or PYTORCH_FP64_AVAILABLE:
        backends.append('pytorch')
    return backends


def print_backend_info():
    """Print detailed backend information (diagnostic)."""
    caps = detect_gpu_capabilities()

    print("PolyRegression Backend Status")
    print("=" * 50)
    print(f"\nAvailable Backends:")
    print(f"  CPU (FP64/FP32):     {'✓' if CPU_AVAILABLE else '✗'} - NumPy Gauss-Jordan")
    print(f"  PyTorch (FP32):      {'✓' if PYTORCH_FP32_AVAILABLE else '✗'} - torch Gauss-Jordan")
    print(f"  PyTorch (FP64):      {'✓' if PYTORCH_FP64_AVAILABLE else '✗'} - torch Gauss-Jordan")

    print(f"\nHardware Detection:")
    if caps.has_gpu:
        print(f"  GPU Type: {caps.gpu_type}")
        print(f"  GPU Name: {caps.gpu_name}")
        print(f"  FP64 Support: {caps.fp64_support.value}")
    else:
        print(f"  No GPU detected")

    print(f"\nRecommended Backend:")
    try:
        backend = get_backend('auto')
        print(f"  {backend.name}")
    except (RuntimeError, ValueError) as e:
        print(f"  Error: {e}")


__all__ = [
    'get_backend',
    'list_available_backends',
    'print_backend_info',
    'BackendBase',
    'PolynomialFitResult',
    'GPUCapabilities',
    'detect_gpu_capabilities',
    'CPU_AVAILABLE',
    'PYTORCH_FP32_AVAILABLE',
    'PYTORCH_FP64_AVAILABLE',
]


if __name__ == "__main__":
    print_backend_info()
