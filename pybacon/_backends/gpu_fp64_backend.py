"""
GPU backend using PyTorch with FP64 precision.

For data center GPUs: A100, H100, V100. Also runs on a CPU torch device.
"""

import numpy as np
import warnings
from typing import Optional

from .base import GPUBackendFP64


class PyTorchBackendFP64(GPUBackendFP64):
    """
    PyTorch backend with FP64 precision.

    Converts at entry (numpy -> torch) and exit (torch -> numpy) of each
    kernel; the orchestration itself stays in NumPy.
    """

    def __init__(self, device: Optional[str] = None):
        """Initialize PyTorch FP64 backend."""
        self.name = "pytorch_fp64"
        self.precision = "fp64"

        try:
            import torch
            self.torch = torch
        except ImportError:
            raise ImportError(
                "PyTorch required for GPU backend. "
                "Install: pip install torch"
            )

        # Device selection (no Metal for FP64)
        if device == 'mps':
            raise RuntimeError(
                "FP64 not supported on Apple Metal. "
                "Use the CPU backend."
            )

        if device is None:
            if torch.cuda.is_available():
                device = 'cuda'
            else:
                warnings.warn("No CUDA GPU available, using CPU")
                device = 'cpu'

        self.device = torch.device(device)

        # Warn if using FP64 on gimped hardware
        if self.device.type == 'cuda':
            from .precision_detector import detect_gpu_capabilities
            caps = detect_gpu_capabilities()
            if caps.fp64_support.value == 'gimped_fp64':
                warnings.warn(
                    f"Using FP64 on {caps.gpu_name} with gimped FP64 support. "
                    f"This will be ~{int(1/caps.fp64_throughput_ratio)}x slower than FP32.",
                    UserWarning
                )

    def _tensor(self, a):
        return self.torch.as_tensor(np.asarray(a), dtype=self.torch.float64,
                                    device=self.device)

    def crossprod_xty(self, x, y, w, subset, out=None):
        v = np.where(subset, w * y, 0.0)
        xty = (self._tensor(x).T @ self._tensor(v)).cpu().numpy()
        if out is None:
            return xty
        out[:] = xty
        return out

    def hat_diagonal(self, x, w, L_inv, out=None):
        Z = self._tensor(x) @ self._tensor(L_inv).T
        hat = ((Z * Z).sum(dim=1) * self._tensor(w)).cpu().numpy()
        if out is None:
            return hat
        out[:] = hat
        return out

    def get_device_info(self) -> dict:
        """Get backend information."""
        return {
            'backend': 'gpu',
            'precision': 'fp64',
            'device': str(self.device),
            'library': f'PyTorch {self.torch.__version__}',
        }
