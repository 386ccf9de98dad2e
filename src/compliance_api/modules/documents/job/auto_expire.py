import logging

from apscheduler.schedulers.background import BackgroundScheduler

from compliance_api.database import SessionLocal
from compliance_api.modules.documents.services.expiry import expire_documents

logger = logging.getLogger(__name__)

def run_expiry_sweep():
    with SessionLocal() as session:
        expire_documents(session)

def start_expiry_job(interval_minutes: int = 60) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()

    def job():
        try:
            run_expiry_sweep()
        except Exception:
            logger.exception("Expiry sweep failed")

    scheduler.add_job(job, 'interval', minutes=interval_minutes, id="expiry_sweep")
    scheduler.start()
    logger.info("Expiry sweep scheduled every %d minute(s)", interval_minutes)
    return scheduler
