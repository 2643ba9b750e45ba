import os
import logging
from celery import Celery
from celery.signals import task_failure, task_retry

logger = logging.getLogger(__name__)

celery_app = Celery(
    "cartledger",
    broker=os.environ.get("CELERY_BROKER_URL", "memory://"),
    backend=os.environ.get("CELERY_RESULT_BACKEND", "cache+memory://"),
)
celery_app.conf.update(
    task_always_eager=os.environ.get("CELERY_TASK_ALWAYS_EAGER", "0") == "1",
    task_eager_propagates=True,
    task_store_eager_result=False,
    task_acks_late=True,
    timezone="UTC",
    imports=("app.tasks.orders",),
    task_routes={"app.tasks.orders.*": {"queue": "orders"}},
    beat_schedule={
        # drafts left in pending_creation by a crashed checkout
        "recover-stalled-orders": {
            "task": "app.tasks.orders.recover_stalled_orders_task",
            "schedule": float(os.environ.get("RECOVERY_INTERVAL_SECONDS", 300)),
        },
    },
)


@task_failure.connect
def _log_failure(sender=None, task_id=None, exception=None, args=None, **kwargs):
    logger.error("Task %s[%s] failed with args %s: %s", getattr(sender, "name", "?"), task_id, args, exception)


@task_retry.connect
def _log_retry(sender=None, request=None, reason=None, **kwargs):
    logger.warning("Task %s[%s] retrying: %s", getattr(sender, "name", "?"), getattr(request, "id", "?"), reason)
