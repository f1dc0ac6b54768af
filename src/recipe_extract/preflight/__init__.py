"""Two-stage admission gate for video URLs."""

from .gate import PreflightGate, check_duration, estimate_cost
from .messages import build_user_message
from .signals import tiny_classifier

__all__ = [
    "PreflightGate",
    "build_user_message",
    "check_duration",
    "estimate_cost",
    "tiny_classifier",
]
