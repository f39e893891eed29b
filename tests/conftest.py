import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from vision.calibration import CalibrationRecord


@pytest.fixture
def flat_calibration() -> CalibrationRecord:
    """Unit focal length, zero distortion, center of a 2x2 image."""
    return CalibrationRecord.from_pinhole(
        fx=1.0,
        fy=1.0,
        cx=1.0,
        cy=1.0,
        lookup_table=[0.0, 0.0, 0.0],
        inverse_lookup_table=[0.0, 0.0, 0.0],
        center=(1.0, 1.0),
        reference_dimensions=(2, 2),
        pixel_size=0.001,
    )


@pytest.fixture
def device_calibration() -> CalibrationRecord:
    """Calibration shaped like a 768x576 photo depth map."""
    table = np.linspace(0.0, 0.02, 42)
    return CalibrationRecord.from_pinhole(
        fx=590.0,
        fy=590.0,
        cx=383.2,
        cy=287.6,
        lookup_table=table,
        inverse_lookup_table=-table,
        center=(385.1, 286.4),
        reference_dimensions=(768, 576),
        pixel_size=0.0014,
    )
