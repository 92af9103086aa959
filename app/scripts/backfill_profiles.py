"""
Backfill User Profiles Script
Creates a default user_profiles row for every Supabase Auth identity that has none.
Can be run manually after enabling the profiles table on an existing project:

    python -m app.scripts.backfill_profiles
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.settings import settings
from app.database.supabase_client import get_service_supabase
from app.modules.profiles.service import ProfileService
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """Run the profile backfill with the service role client"""
    if not settings.supabase_service_role_key:
        logger.error("SUPABASE_SERVICE_ROLE_KEY is required to list auth users")
        sys.exit(1)
    try:
        supabase = get_service_supabase()
        logger.info("Starting profile backfill...")
        report = ProfileService(supabase).backfill_missing_profiles(supabase)
        logger.info(
            f"Backfill completed: {report.created} created, "
            f"{report.skipped} already present, {report.failed} failed"
        )
    except Exception as e:
        logger.error(f"Error during backfill: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
