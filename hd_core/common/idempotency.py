# hd_core/common/idempotency.py
from __future__ import annotations

import logging

from django.db import IntegrityError, transaction

from hd_core.common.models import IdempotencyRecord

logger = logging.getLogger(__name__)


def get_key(request):
    # DRF test client: HTTP_IDEMPOTENCY_KEY -> request.META["HTTP_IDEMPOTENCY_KEY"]
    return request.META.get("HTTP_IDEMPOTENCY_KEY")


def load_response(request, key):
    """
    Returns (status_code, data) of a previously stored response, or None.
    """
    if not key or not getattr(request.user, "id", None):
        return None

    rec = IdempotencyRecord.objects.filter(
        user_id=int(request.user.id),
        method=request.method.upper(),
        path=request.path,
        idempotency_key=str(key),
    ).first()
    return None if rec is None else (rec.status_code, rec.response_data)


def save_response(request, key, response_data, status_code: int = 200) -> None:
    if not key or not getattr(request.user, "id", None):
        return

    try:
        with transaction.atomic():
            IdempotencyRecord.objects.create(
                user_id=int(request.user.id),
                method=request.method.upper(),
                path=request.path,
                idempotency_key=str(key),
                status_code=int(status_code),
                response_data=response_data,
            )
    except IntegrityError:
        # already stored by a concurrent replay
        logger.debug("Idempotency key %s already stored for %s", key, request.path)
