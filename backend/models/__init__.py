"""Public model package exports for the credit risk and KYC engine."""

from .actors import Actor
from .assessments import (
    LoanAssessmentResult,
    LoanRequest,
    Recommendation,
    RiskAssessmentResult,
    RiskFactorImpact,
    SuggestedModifications,
)
from .audit_logs import AuditLogModel
from .base import BaseDocumentModel, Percentage
from .credit_scores import SCORE_CEILING, SCORE_FLOOR, CreditScoreModel, rating_for_score
from .enums import (
    ActorRole,
    AddressVerificationStatus,
    AuditEventType,
    CreditRating,
    Decision,
    DocumentKind,
    KycEvent,
    KycStatus,
    RecommendationPriority,
    ScoreFactor,
)
from .exceptions import (
    AttemptsExhaustedError,
    ConcurrentModificationError,
    InvalidTransitionError,
    ModelError,
    ModelNotFoundError,
    ModelValidationError,
    SourceUnavailableError,
    TerminalStateError,
    UnauthorizedError,
    UnknownModelError,
)
from .kyc_submissions import (
    MANDATORY_DOCUMENTS,
    MAX_SUBMISSION_ATTEMPTS,
    AddressVerificationModel,
    DocumentReference,
    KycSubmissionModel,
    ReviewComment,
)
from .loans import LoanRecordModel
from .repositories import AuditLogRepository, BorrowerDataSource, KycSubmissionRepository
from .risk_models import RiskModelPreset
from .score_factors import ScoreFactorsModel

__all__ = [
    "Actor",
    "LoanAssessmentResult",
    "LoanRequest",
    "Recommendation",
    "RiskAssessmentResult",
    "RiskFactorImpact",
    "SuggestedModifications",
    "AuditLogModel",
    "BaseDocumentModel",
    "Percentage",
    "SCORE_FLOOR",
    "SCORE_CEILING",
    "CreditScoreModel",
    "rating_for_score",
    "ActorRole",
    "AddressVerificationStatus",
    "AuditEventType",
    "CreditRating",
    "Decision",
    "DocumentKind",
    "KycEvent",
    "KycStatus",
    "RecommendationPriority",
    "ScoreFactor",
    "ModelError",
    "ModelValidationError",
    "ModelNotFoundError",
    "UnknownModelError",
    "UnauthorizedError",
    "InvalidTransitionError",
    "TerminalStateError",
    "AttemptsExhaustedError",
    "ConcurrentModificationError",
    "SourceUnavailableError",
    "MANDATORY_DOCUMENTS",
    "MAX_SUBMISSION_ATTEMPTS",
    "AddressVerificationModel",
    "DocumentReference",
    "KycSubmissionModel",
    "ReviewComment",
    "LoanRecordModel",
    "KycSubmissionRepository",
    "BorrowerDataSource",
    "AuditLogRepository",
    "RiskModelPreset",
    "ScoreFactorsModel",
]
