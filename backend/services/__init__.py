"""Service layer exports."""

from .audit_trail import AuditTrail
from .credit_service import CreditService, build_score_factors
from .decision_engine import DecisionEngine
from .kyc_service import KycService
from .kyc_state_machine import KycStateMachine
from .review_gate import ReviewGate
from .score_calculator import ScoreCalculator

__all__ = [
    "AuditTrail",
    "CreditService",
    "build_score_factors",
    "DecisionEngine",
    "KycService",
    "KycStateMachine",
    "ReviewGate",
    "ScoreCalculator",
]
