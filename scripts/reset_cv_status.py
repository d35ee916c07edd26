"""
Move résumés stuck in ``error`` back to ``pending`` and print a status summary.

Usage: python scripts/reset_cv_status.py [--team TEAM_ID]
"""
import argparse
import logging
import os
import sys

from sqlalchemy import func
from sqlalchemy.orm import Session

# Ensure we can import cvtrack modules
sys.path.append(os.getcwd())

from cvtrack.database import SessionLocal, init_db
from cvtrack.models.resume import Resume
from cvtrack.services.cv_processor import CVProcessor

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def reset_cv_status(team_id=None):
    init_db()
    db: Session = SessionLocal()
    try:
        count = CVProcessor(db).reset_errored_resumes(team_id)
        logger.info(f"Reset {count} CV(s) from 'error' to 'pending'")

        query = db.query(Resume.status, func.count(Resume.id))
        if team_id is not None:
            query = query.filter(Resume.team_id == team_id)
        print("\nCV status summary:")
        for status, total in query.group_by(Resume.status).all():
            print(f" - {status.value}: {total}")
    except Exception as e:
        logger.error(f"Reset failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--team", type=int, default=None, help="limit the reset to one team")
    args = parser.parse_args()
    reset_cv_status(args.team)
