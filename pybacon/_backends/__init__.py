"""
Backend selection and management.

Kernels for the weighted cross-product and the hat-matrix diagonal run
on the CPU (NumPy, optionally threaded) or on an FP64-capable GPU
through PyTorch.
"""

from typing import Optional
import warnings

from .base import BackendBase
from .precision_detector import detect_gpu_capabilities, GPUCapabilities
from .._core.config import PARALLEL_MIN_SIZE

# Try importing CPU backend (always available)
try:
    from .cpu_fp64_backend import CPUBackendFP64
    CPU_AVAILABLE = True
except ImportError:
    CPU_AVAILABLE = False
    warnings.warn("CPU backend unavailable - installation error!")

# PyTorch backend (optional)
try:
    import torch  # noqa: F401
    from .gpu_fp64_backend import PyTorchBackendFP64
    PYTORCH_FP64_AVAILABLE = True
except ImportError:
    PYTORCH_FP64_AVAILABLE = False


def get_backend(
    backend: str = 'auto',
    n_jobs: Optional[int] = None,
    parallel_threshold: int = PARALLEL_MIN_SIZE,
    device: Optional[str] = None,
) -> BackendBase:
    """
    Get computational backend.

    Parameters
    ----------
    backend : str or BackendBase
        Backend selection:
        - 'auto': GPU only if it has full-speed FP64, otherwise CPU
        - 'cpu': NumPy (FP64)
        - 'pytorch': PyTorch FP64 (CUDA if available)
        A BackendBase instance is returned unchanged.
    n_jobs : int, optional
        Worker threads of the CPU backend
    parallel_threshold : int
        Problem size n * p above which the CPU backend uses threads
    device : str, optional
        Torch device of the PyTorch backend

    Returns
    -------
    BackendBase
        Backend instance

    Examples
    --------
    >>> backend = get_backend('cpu', n_jobs=4)
    >>> backend = get_backend('pytorch', device='cuda')
    """
    if isinstance(backend, BackendBase):
        return backend

    if backend == 'auto':
        caps = detect_gpu_capabilities()
        if caps.has_gpu and caps.recommended_fp64 and PYTORCH_FP64_AVAILABLE:
            return PyTorchBackendFP64(device=device)
        if not CPU_AVAILABLE:
            raise RuntimeError("No backends available!")
        return CPUBackendFP64(n_jobs=n_jobs, parallel_threshold=parallel_threshold)

    elif backend == 'cpu':
        if not CPU_AVAILABLE:
            raise RuntimeError("CPU backend unavailable!")
        return CPUBackendFP64(n_jobs=n_jobs, parallel_threshold=parallel_threshold)

    elif backend == 'pytorch':
        if not PYTORCH_FP64_AVAILABLE:
            raise RuntimeError(
                "PyTorch backend unavailable.\n"
                "Install: pip install torch"
            )
        return PyTorchBackendFP64(device=device)

    else:
        raise ValueError(
            f"Unknown backend: '{backend}'\n"
            f"Valid options: 'auto', 'cpu', 'pytorch'"
        )


def list_available_backends() -> list:
    """List names of available backends."""
    backends = []
    if CPU_AVAILABLE:
        backends.append('cpu')
    if PYTORCH_FP64_AVAILABLE:
        backends.append('pytorch')
    return backends


def print_backend_info():
    """Print detailed backend information (diagnostic)."""
    caps = detect_gpu_capabilities()

    print("pybacon Backend Status")
    print("=" * 50)
    print(f"\nAvailable Backends:")
    print(f"  CPU (FP64):          {'yes' if CPU_AVAILABLE else 'no'}")
    print(f"  PyTorch (FP64):      {'yes' if PYTORCH_FP64_AVAILABLE else 'no'}")

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
    except Exception as e:
        print(f"  Error: {e}")


__all__ = [
    'get_backend',
    'list_available_backends',
    'print_backend_info',
    'BackendBase',
    'GPUCapabilities',
    'detect_gpu_capabilities',
    'CPU_AVAILABLE',
    'PYTORCH_FP64_AVAILABLE',
]


if __name__ == "__main__":
    print_backend_info()
