"""Fixed numerical constants of the ADM model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

NUM_SCALES = 4
BUFFER_COUNT = 35
MAX_ALIGN = 32

VIEW_DIST = 3.0
REF_DISPLAY_HEIGHT = 1080
BORDER_FACTOR = 0.1
NOISE_FLOOR = 1e-2

# Smallest axis that survives four halvings without reaching a single-sample DWT input.
MIN_DIMENSION = 9

DWT2_DB2_COEFFS_LO = np.array(
    [0.482962913144690, 0.836516303737469, 0.224143868041857, -0.129409522550921],
    dtype=np.float32,
)
DWT2_DB2_COEFFS_HI = np.array(
    [-0.129409522550921, -0.224143868041857, 0.836516303737469, -0.482962913144690],
    dtype=np.float32,
)


@dataclass(frozen=True)
class DwtModelParams:
    """Visual threshold model for one color channel (Watson et al.)."""

    a: float
    k: float
    f0: float
    g: Tuple[float, float, float, float]


# Y, Cb, Cr. Only luma is used.
DWT_7_9_YCBCR_THRESHOLD = (
    DwtModelParams(a=0.495, k=0.466, f0=0.401, g=(1.501, 1.0, 0.534, 1.0)),
    DwtModelParams(a=1.633, k=0.353, f0=0.209, g=(1.520, 1.0, 0.502, 1.0)),
    DwtModelParams(a=0.944, k=0.521, f0=0.404, g=(1.868, 1.0, 0.516, 1.0)),
)

# Rows: lambda 0 (finest) .. 5. Columns: theta 0 (ll), 1 (lh), 2 (hh), 3 (hl).
DWT_7_9_BASIS_FUNCTION_AMPLITUDES = (
    (0.62171, 0.67234, 0.72709, 0.67234),
    (0.34537, 0.41317, 0.49428, 0.41317),
    (0.18004, 0.22727, 0.28688, 0.22727),
    (0.091401, 0.11792, 0.15214, 0.11792),
    (0.045943, 0.059758, 0.077727, 0.059758),
    (0.023013, 0.030018, 0.039156, 0.030018),
)
