import logging
import requests
from celery import shared_task
from flask import current_app

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def notify_submission_task(self, url: str, kind: str, payload: dict, timeout: float = 5.0) -> int:
    """POST a new order, quote or contact to the automation webhook."""
    try:
        resp = requests.post(url, json={"type": kind, "data": payload}, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Webhook delivery for %s failed: %s", kind, exc)
        raise self.retry(exc=exc)
    logger.info("Webhook delivered %s (HTTP %s)", kind, resp.status_code)
    return resp.status_code


def dispatch_submission(kind: str, payload: dict) -> bool:
    """Queue a webhook notification; returns False when no webhook is configured."""
    url = current_app.config.get("WEBHOOK_URL")
    if not url:
        logger.info("No webhook configured, skipping %s notification", kind)
        return False
    timeout = float(current_app.config.get("WEBHOOK_TIMEOUT_SECONDS", 5))
    if current_app.config.get("TESTING"):
        notify_submission_task(url, kind, payload, timeout)
    else:
        notify_submission_task.delay(url, kind, payload, timeout)
    return True
