"""
Financial Assistant - Source Package

The analytics core behind a small-business bookkeeping dashboard:
cash-flow forecasts, anomaly detection and rule-based insights computed
from the business's transaction history.

DESIGN PRINCIPLES:
1. Deterministic rules, no opaque models
2. Never modify the books
3. Same transactions + same clock -> same results
4. Every refresh must be auditable
5. Storage layer is swappable
"""

from finassist.config.logging_config import configure_logging

configure_logging()

__version__ = "1.0.0"
__author__ = "Financial Assistant Team"
