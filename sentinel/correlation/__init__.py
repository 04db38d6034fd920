"""Alert correlation and flap suppression."""

from sentinel.correlation.correlator import CORRELATION_WINDOW, AlertCorrelator
from sentinel.correlation.flap_detector import FlapDetector

__all__ = [
    "CORRELATION_WINDOW",
    "AlertCorrelator",
    "FlapDetector",
]
