"""
Hardware precision capability detection for PolyRegression.

Detects GPU hardware and decides between FP32 and FP64 for the
normal-equation pipeline.
"""

import warnings
from dataclasses import dataclass
from typing import Optional
from enum import Enum


class PrecisionSupport(Enum):
    """FP64 support level for hardware."""
    NO_GPU = "no_gpu"            # CPU only
    NO_FP64 = "no_fp64"          # Apple Metal
    GIMPED_FP64 = "gimped_fp64"  # Consumer NVIDIA
    FULL_FP64 = "full_fp64"      # A100, H100, ...


@dataclass
class GPUCapabilities:
    """
    GPU capability information.

    Attributes
    ----------
    has_gpu : bool
        Whether any GPU is available
    gpu_name : str
        Human-readable GPU name
    gpu_type : str
        'cuda', 'metal', or 'none'
    fp64_support : PrecisionSupport
        Level of FP64 support
    fp64_throughput_ratio : float
        Ratio of FP64 to FP32 throughput
    fp64_fast : bool
        Whether FP64 runs at useful speed on the GPU
    """
    has_gpu: bool
    gpu_name: str
    gpu_type: str
    fp64_support: PrecisionSupport
    fp64_throughput_ratio: float
    fp64_fast: bool


# (name fragment, FP64/FP32 throughput ratio), checked in order
_NVIDIA_FP64_TABLE = [
    ('A100', 1/2), ('A800', 1/2),
    ('H100', 1/2), ('H800', 1/2),
    ('V100', 1/2), ('P100', 1/2),
    ('RTX 50', 1/64), ('RTX 40', 1/64), ('RTX 30', 1/64),
    ('RTX 20', 1/32), ('GTX', 1/32),
]

CPU_ONLY = GPUCapabilities(
    has_gpu=False,
    gpu_name="CPU only",
    gpu_type="none",
    fp64_support=PrecisionSupport.NO_GPU,
    fp64_throughput_ratio=1.0,
    fp64_fast=True
)


def detect_gpu_capabilities() -> GPUCapabilities:
    """
    Detect GPU hardware and FP64 capabilities.

    CUDA is checked first, then Metal. Without torch, CPU only.
    """
    try:
        import torch
    except ImportError:
        return CPU_ONLY

    if torch.cuda.is_available():
        gpu_name = torch.cuda.get_device_name(0)
        support, ratio = classify_nvidia_gpu(gpu_name)
        return GPUCapabilities(
            has_gpu=True,
            gpu_name=gpu_name,
            gpu_type="cuda",
            fp64_support=support,
            fp64_throughput_ratio=ratio,
            fp64_fast=support == PrecisionSupport.FULL_FP64
        )

    if hasattr(torch.backends, 'mps') and torch.backends.mps.is_available():
        return GPUCapabilities(
            has_gpu=True,
            gpu_name="Apple Metal GPU",
            gpu_type="metal",
            fp64_support=PrecisionSupport.NO_FP64,
            fp64_throughput_ratio=0.0,
            fp64_fast=False
        )

    return CPU_ONLY


def classify_nvidia_gpu(gpu_name: str) -> tuple[PrecisionSupport, float]:
    """
    Classify NVIDIA GPU FP64 capabilities from its marketing name.

    Returns
    -------
    (support_level, throughput_ratio)
    """
    gpu_upper = gpu_name.upper()
    for fragment, ratio in _NVIDIA_FP64_TABLE:
        if fragment in gpu_upper:
            if ratio >= 1/2:
                return PrecisionSupport.FULL_FP64, ratio
            return PrecisionSupport.GIMPED_FP64, ratio

    warnings.warn(
        f"Unknown NVIDIA GPU '{gpu_name}'. Assuming gimped FP64."
    )
    return PrecisionSupport.GIMPED_FP64, 1/32


def validate_fp64_request(capabilities: GPUCapabilities, use_fp64: bool) -> None:
    """
    Validate an explicit FP64 request against GPU hardware.

    Raises
    ------
    RuntimeError
        If FP64 requested on Metal

    Warns
    -----
    UserWarning
        If FP64 requested on gimped hardware
    """
    if not use_fp64:
        return

    if capabilities.fp64_support == PrecisionSupport.NO_FP64:
        raise RuntimeError(
            f"FP64 requested but not supported on {capabilities.gpu_name}. "
            f"Use FP32 (use_fp64=False) or the CPU backend."
        )

    if capabilities.fp64_support == PrecisionSupport.GIMPED_FP64:
        warnings.warn(
            f"FP64 requested on {capabilities.gpu_name} with gimped FP64 "
            f"(ratio: {capabilities.fp64_throughput_ratio:.3f}). "
            f"Polynomial fits are small; consider backend='cpu' instead.",
            UserWarning
        )


def recommend_precision(capabilities: GPUCapabilities,
                        user_preference: Optional[bool]) -> bool:
    """
    Decide FP64 vs FP32.

    Unlike general least squares, the polynomial normal equations square
    the condition number of a Vandermonde design, so FP64 is the default
    whatever the hardware; FP32 only on explicit request.

    Returns
    -------
    bool
        True for FP64, False for FP32
    """
    if user_preference is None:
        return True

    if capabilities.has_gpu:
        validate_fp64_request(capabilities, user_preference)
    return user_preference


def print_capabilities() -> None:
    """Print detected GPU capabilities (for debugging)."""
    caps = detect_gpu_capabilities()

    print("GPU Capability Detection")
    print("=" * 50)
    print(f"GPU Available: {caps.has_gpu}")
    print(f"GPU Name: {caps.gpu_name}")
    print(f"GPU Type: {caps.gpu_type}")
    print(f"FP64 Support: {caps.fp64_support.value}")
    print(f"FP64/FP32 Ratio: {caps.fp64_throughput_ratio:.4f}")
    print(f"Fast FP64: {caps.fp64_fast}")


if __name__ == "__main__":
    print_capabilities()
