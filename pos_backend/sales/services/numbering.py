# sales/services/numbering.py

"""
DOCUMENT NUMBERING

Sequential-per-day numbers: <PREFIX>-<YYYYMMDD>-<NNNN>.

The counter row for the day is locked for the rest of the caller's
transaction, so concurrent sales on the same day get distinct, gap-free
numbers (a rolled-back sale releases its number).
"""

from __future__ import annotations

from django.db import transaction
from django.utils import timezone

from sales.models import DocumentSequence


@transaction.atomic
def next_number(*, prefix: str, day=None) -> str:
    day = day or timezone.localdate()
    key = f"{prefix}-{day:%Y%m%d}"

    seq, _ = DocumentSequence.objects.select_for_update().get_or_create(key=key)
    seq.last_value += 1
    seq.save(update_fields=["last_value"])

    return f"{key}-{seq.last_value:04d}"
