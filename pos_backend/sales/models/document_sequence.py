# sales/models/document_sequence.py

from django.db import models


class DocumentSequence(models.Model):
    """
    Per-key counter for human-readable document numbers.

    key is "<PREFIX>-<YYYYMMDD>"; last_value is the last number issued.
    Incremented only under SELECT ... FOR UPDATE (sales.services.numbering).
    """

    key = models.CharField(max_length=64, unique=True)
    last_value = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.key} -> {self.last_value}"
