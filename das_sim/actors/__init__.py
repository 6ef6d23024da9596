"""Actor implementations for the DAS simulator."""

from .round_driver import ROUND_DRIVER_ID, RoundDriver, RoundReport

__all__ = [
    "ROUND_DRIVER_ID",
    "RoundDriver",
    "RoundReport",
]
