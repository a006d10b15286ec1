"""Script to rewrite legacy KYC status spellings (e.g. "approved") to canonical values."""

import argparse
import json
import logging
from pathlib import Path
import sys


BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from core import FirebaseClientManager, load_settings
from services.kyc_migration import migrate_kyc_statuses


logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)


def main() -> None:
    """Run the KYC status migration against the configured Firestore project."""
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Rewrite legacy KYC status values in Firestore.")
    parser.add_argument(
        "--collection",
        type=str,
        default=settings.firebase_kyc_collection,
        help="KYC submissions collection name.",
    )
    parser.add_argument("--apply", action="store_true", help="Write changes; default is a dry run.")
    args = parser.parse_args()

    if not settings.firebase_enabled:
        raise SystemExit("Firebase is disabled in config.yml; nothing to migrate.")

    manager = FirebaseClientManager(
        project_id=settings.firebase_project_id,
        credentials_path=settings.firebase_credentials_path,
    )
    report = migrate_kyc_statuses(manager, collection_name=args.collection, dry_run=not args.apply)
    print(json.dumps(report.as_dict(), indent=2))
    if report.unknown:
        logger.warning("Documents with unrecognised status need manual review count=%d", len(report.unknown))


if __name__ == "__main__":
    main()
