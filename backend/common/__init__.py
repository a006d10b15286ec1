"""Common reusable utility exports."""

from .risk_model_registry import DEFAULT_MODEL_ID, RiskModelRegistry

__all__ = [
    "DEFAULT_MODEL_ID",
    "RiskModelRegistry",
]
