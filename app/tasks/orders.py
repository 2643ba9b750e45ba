import logging
from contextlib import nullcontext

from celery import shared_task
from flask import current_app

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def notify_order_event_task(order_id: int, event: str) -> None:
    """Record an order lifecycle event; no customer channel is wired up."""
    logger.info({"event": "order_" + event, "order_id": order_id})


@shared_task(bind=True, max_retries=2, default_retry_delay=30)
def recover_stalled_orders_task(self, older_than_minutes: int = None) -> dict:
    """Finalize or discard checkout drafts stuck in pending_creation."""
    from app import create_app
    from app.services.order_service import recover_stalled_orders

    # a live app context (eager mode, CLI) is reused as is
    ctx = nullcontext() if current_app else create_app().app_context()
    with ctx:
        try:
            result = recover_stalled_orders(older_than_minutes)
        except Exception as exc:
            logger.error("Stalled order recovery failed: %s", exc)
            raise self.retry(exc=exc)
    logger.info("Stalled order recovery: %s", result)
    return result
