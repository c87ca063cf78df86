"""
Battle flyer generation: validation, edge function client and job state.
"""

from .client import FlyerClient
from .job import FlyerGenerationJob
from .validation import ensure_valid, validate_flyer_request

__all__ = [
    "FlyerClient",
    "FlyerGenerationJob",
    "ensure_valid",
    "validate_flyer_request",
]
