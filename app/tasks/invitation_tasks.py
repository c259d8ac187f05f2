# ===== app/tasks/invitation_tasks.py =====
import logging

from app.config.celery_config import celery_app
from app.config.database import SessionLocal
from app.services.invitation.timeout_sweep import expire_stale_invitations as run_sweep

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def expire_stale_invitations(self):
    """Periodic sweep: advance invitation chains past unresponsive providers"""
    db = SessionLocal()
    try:
        advanced = run_sweep(db)
        return {"status": "success", "advanced": advanced}

    except Exception as exc:
        logger.error(f"Invitation timeout sweep failed: {exc}")
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))

    finally:
        db.close()
