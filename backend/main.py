"""Application entrypoint for the credit risk and KYC engine FastAPI adapter."""

import sys
from pathlib import Path
from typing import Optional

_BACKEND_DIR = Path(__file__).resolve().parent
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from api.credit_router import build_credit_router
from api.kyc_router import build_kyc_router
from api.routes import build_router
from common.risk_model_registry import RiskModelRegistry
from core import AppSettings, FirebaseClientManager, get_logger, load_settings, setup_logging
from repositories.audit_log_repositories import FirestoreAuditLogRepository, InMemoryAuditLogRepository
from repositories.firestore_borrower_data_source import FirestoreBorrowerDataSource
from repositories.firestore_kyc_repository import FirestoreKycSubmissionRepository
from repositories.memory_borrower_data_source import InMemoryBorrowerDataSource
from repositories.memory_kyc_repository import InMemoryKycSubmissionRepository
from services import AuditTrail, CreditService, DecisionEngine, KycService, KycStateMachine, ReviewGate


setup_logging()
logger = get_logger(__name__)


def _build_storage(settings: AppSettings):
    """Return `(kyc_repository, data_source, audit_repository)` for the configured backend."""
    if settings.firebase_enabled:
        manager = FirebaseClientManager(
            project_id=settings.firebase_project_id,
            credentials_path=settings.firebase_credentials_path,
        )
        return (
            FirestoreKycSubmissionRepository(manager, collection_name=settings.firebase_kyc_collection),
            FirestoreBorrowerDataSource(
                manager,
                loans_collection=settings.firebase_loans_collection,
                trust_collection=settings.firebase_trust_collection,
            ),
            FirestoreAuditLogRepository(manager, collection_name=settings.firebase_audit_collection),
        )
    logger.warning("Firebase disabled; using in-memory storage.")
    return InMemoryKycSubmissionRepository(), InMemoryBorrowerDataSource(), InMemoryAuditLogRepository()


def create_app(
    settings: Optional[AppSettings] = None,
    kyc_repository=None,
    data_source=None,
    audit_repository=None,
    registry: Optional[RiskModelRegistry] = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Storage and registry can be injected; otherwise they follow `config.yml`.
    """
    settings = settings or load_settings()
    app = FastAPI(title=settings.app_name, debug=settings.debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if kyc_repository is None or data_source is None or audit_repository is None:
        default_kyc, default_source, default_audit = _build_storage(settings)
        kyc_repository = kyc_repository or default_kyc
        data_source = data_source or default_source
        audit_repository = audit_repository or default_audit

    registry = registry or RiskModelRegistry(
        path=settings.credit_models_path,
        default_model_id=settings.credit_default_model,
    )
    audit_trail = AuditTrail(audit_repository)
    state_machine = KycStateMachine()
    credit_service = CreditService(
        data_source=data_source,
        kyc_repository=kyc_repository,
        registry=registry,
        engine=DecisionEngine(min_rate=settings.credit_min_rate, max_rate=settings.credit_max_rate),
        cache_ttl_sec=settings.credit_score_cache_ttl_sec,
        audit_trail=audit_trail,
    )
    kyc_service = KycService(kyc_repository, state_machine=state_machine, audit_trail=audit_trail)
    review_gate = ReviewGate(
        kyc_repository,
        state_machine=state_machine,
        audit_trail=audit_trail,
        on_verified=credit_service.invalidate,
    )

    app.state.credit_service = credit_service
    app.state.kyc_service = kyc_service
    app.state.review_gate = review_gate

    app.include_router(build_router(settings))
    app.include_router(build_credit_router(credit_service))
    app.include_router(build_kyc_router(kyc_service, review_gate))

    logger.info("Application initialized: %s", settings.app_name)
    return app


app = create_app()


def run() -> None:
    """Start the ASGI server for local development."""
    settings = load_settings()
    try:
        uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
    except Exception:
        logger.exception("Failed to start uvicorn server.")
        raise


if __name__ == "__main__":
    run()
