import json
import logging

import redis
from celery import shared_task
from django.conf import settings
from django.utils import timezone

from .exceptions import NotFound
from .services import LocalStore, make_batch, make_syncer

logger = logging.getLogger(__name__)

_redis_client = None


def _get_redis_client():
    global _redis_client
    if _redis_client is None:
        url = getattr(settings, "CELERY_BROKER_URL", "redis://localhost:6379/0")
        _redis_client = redis.Redis.from_url(url)
    return _redis_client


def _set_task_health(task_name: str, payload: dict, ttl_seconds: int = 2 * 24 * 3600) -> None:
    data = {
        "task": task_name,
        "at": timezone.now().isoformat(),
        **(payload or {}),
    }
    try:
        _get_redis_client().set(
            f"task_health:{task_name}",
            json.dumps(data, default=str),
            ex=ttl_seconds,
        )
    except redis.RedisError:
        logger.exception("Failed to store task health for %s", task_name)


@shared_task
def sync_student(student_id):
    try:
        outcome = make_syncer(LocalStore()).sync(student_id)
    except NotFound:
        logger.warning("sync_student: student_id=%s no longer exists", student_id)
        return {"status": "not_found", "studentId": student_id}
    except Exception as e:
        logger.exception("sync_student failed for student_id=%s", student_id)
        _set_task_health("sync_student", {"status": "error", "studentId": student_id, "error": str(e)})
        raise
    return outcome


@shared_task
def sync_all_students():
    result = make_batch(LocalStore()).run()
    _set_task_health("sync_all_students", {"status": "ok", **result})
    return result
