"""Reusable enums for credit risk and KYC domain models."""

from enum import Enum


class StringEnum(str, Enum):
    """Base enum class with string behavior for JSON serialization."""


class ActorRole(StringEnum):
    """Role names used for engine authorization checks."""

    BORROWER = "borrower"
    LENDER = "lender"
    ADMIN = "admin"


class KycStatus(StringEnum):
    """KYC submission lifecycle states."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class KycEvent(StringEnum):
    """Events that drive the KYC submission state machine."""

    RESUBMIT = "resubmit"
    APPROVE = "approve"
    REJECT = "reject"
    RESET = "reset"


class AddressVerificationStatus(StringEnum):
    """Address-proof sub-verification states."""

    NOT_SUBMITTED = "not_submitted"
    SUBMITTED = "submitted"
    VERIFIED = "verified"
    REJECTED = "rejected"


class DocumentKind(StringEnum):
    """Identity document kinds accepted in a KYC bundle."""

    IDENTITY_PRIMARY = "identity_primary"
    IDENTITY_SECONDARY = "identity_secondary"
    SELFIE = "selfie"
    ADDRESS_PROOF = "address_proof"
    INCOME_PROOF = "income_proof"


class CreditRating(StringEnum):
    """Qualitative rating bands for a credit score."""

    POOR = "Poor"
    FAIR = "Fair"
    GOOD = "Good"
    EXCELLENT = "Excellent"


class Decision(StringEnum):
    """Risk model recommendation."""

    APPROVE = "approve"
    REJECT = "reject"


class ScoreFactor(StringEnum):
    """Factor names shared by the score calculator and risk model presets."""

    PAYMENT_HISTORY = "payment_history"
    CREDIT_UTILIZATION = "credit_utilization"
    CREDIT_HISTORY = "credit_history"
    LOAN_DIVERSITY = "loan_diversity"
    SOCIAL_TRUST = "social_trust"
    KYC = "kyc"


class RecommendationPriority(StringEnum):
    """Priority of an advisory recommendation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AuditEventType(StringEnum):
    """Audit trail event categories."""

    KYC_SUBMITTED = "KYC_SUBMITTED"
    KYC_REVIEWED = "KYC_REVIEWED"
    KYC_ATTEMPTS_RESET = "KYC_ATTEMPTS_RESET"
    ADDRESS_SUBMITTED = "ADDRESS_SUBMITTED"
    ADDRESS_REVIEWED = "ADDRESS_REVIEWED"
    TRUST_RATED = "TRUST_RATED"
