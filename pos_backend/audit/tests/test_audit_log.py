# audit/tests/test_audit_log.py

from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.test import TestCase, override_settings

from audit.models import AuditLog
from audit.services.audit_log import Action, emit, log_action

User = get_user_model()


class AuditLogTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="auditor", password="pass")

    def test_emit_writes_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            emit(
                user=self.user,
                action=Action.SALE_COMPLETED,
                entity="Sale",
                entity_id="abc",
                before={"status": "DRAFT"},
                after={"status": "COMPLETED", "grand_total": Decimal("3000.00")},
            )
            # nothing is written until the transaction commits
            self.assertFalse(AuditLog.objects.exists())

        self.assertEqual(len(callbacks), 1)
        log = AuditLog.objects.get()
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.after_snapshot["grand_total"], "3000.00")
        self.assertEqual(log.before_snapshot, {"status": "DRAFT"})

    def test_rolled_back_work_leaves_no_entry(self):
        class Boom(Exception):
            pass

        with self.captureOnCommitCallbacks(execute=True):
            try:
                with transaction.atomic():
                    emit(
                        user=self.user,
                        action=Action.SALE_CANCELLED,
                        entity="Sale",
                        entity_id="abc",
                    )
                    raise Boom()
            except Boom:
                pass

        self.assertFalse(AuditLog.objects.exists())

    @override_settings(AUDIT_LOG_ENABLED=False)
    def test_disabled_audit_registers_nothing(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            emit(user=None, action=Action.CREATED, entity="Sale", entity_id="abc")

        self.assertEqual(callbacks, [])
        self.assertFalse(AuditLog.objects.exists())

    def test_delivery_failure_is_logged_not_raised(self):
        with mock.patch(
            "audit.services.audit_log.log_action", side_effect=RuntimeError("sink down")
        ):
            with self.assertLogs("audit", level="ERROR") as logs:
                with self.captureOnCommitCallbacks(execute=True):
                    emit(user=None, action=Action.CREATED, entity="Sale", entity_id="abc")

        self.assertIn("Audit log delivery failed", logs.output[0])
        self.assertFalse(AuditLog.objects.exists())

    def test_entries_are_immutable(self):
        log = log_action(
            user_id=self.user.pk,
            action=Action.DEBT_PAYMENT,
            entity="Debt",
            entity_id="d-1",
        )

        log.entity = "Sale"
        with self.assertRaises(ValidationError):
            log.save()

        with self.assertRaises(ValidationError):
            log.delete()
