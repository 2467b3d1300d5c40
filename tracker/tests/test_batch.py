import smtplib
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core import mail
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from tracker.models import Submission
from tracker.services import BatchSync, EmailNotifier, LocalStore, ReminderService, StudentSync
from tracker.services.sync import is_inactive
from tracker.tests.fakes import FakeCodeforcesClient, make_student, submission_row


class FlakySync(StudentSync):
    def __init__(self, store, client, failing_ids):
        super().__init__(store, client)
        self.failing_ids = set(failing_ids)

    def sync(self, student_id, handle=None):
        if student_id in self.failing_ids:
            raise RuntimeError("remote exploded")
        return super().sync(student_id, handle=handle)


class BatchSyncTests(TestCase):
    def _batch(self, client, failing_ids=()):
        store = LocalStore()
        return BatchSync(
            store,
            FlakySync(store, client, failing_ids),
            ReminderService(store, EmailNotifier()),
        )

    def test_failing_student_does_not_abort_batch(self):
        first = make_student(email='a@example.com', handle='a_cf')
        broken = make_student(email='b@example.com', handle='b_cf', emails_enabled=False)
        third = make_student(email='c@example.com', handle='c_cf')
        recent = timezone.now() - timedelta(days=1)
        client = FakeCodeforcesClient(submissions=[submission_row(1, recent)])

        result = self._batch(client, failing_ids=[broken.pk]).run()

        self.assertEqual(result['syncedCount'], 2)
        self.assertEqual(result['totalStudents'], 3)
        self.assertEqual(result['emailsSent'], 0)
        self.assertTrue(Submission.objects.filter(submission_id=1).exists())

    def test_inactive_students_get_reminders(self):
        active = make_student(email='a@example.com', handle='a_cf')
        idle = make_student(email='idle@example.com', handle='idle_cf')
        muted = make_student(email='m@example.com', handle='m_cf', emails_enabled=False)
        client = FakeCodeforcesClient()
        active.last_submission_date = timezone.now() - timedelta(days=2)
        active.save()
        idle.last_submission_date = timezone.now() - timedelta(days=10)
        idle.save()

        result = self._batch(client).run()

        self.assertEqual(result['emailsSent'], 1)
        self.assertEqual([m.to for m in mail.outbox], [['idle@example.com']])
        idle.refresh_from_db()
        muted.refresh_from_db()
        self.assertEqual(idle.reminder_count, 1)
        self.assertEqual(muted.reminder_count, 0)

    def test_dispatch_failure_is_not_counted(self):
        student = make_student()
        with patch(
            'tracker.services.reminders.EmailMultiAlternatives.send',
            side_effect=smtplib.SMTPException('relay denied'),
        ):
            result = self._batch(FakeCodeforcesClient()).run()

        self.assertEqual(result['syncedCount'], 1)
        self.assertEqual(result['emailsSent'], 0)
        student.refresh_from_db()
        self.assertEqual(student.reminder_count, 0)

    def test_unencodable_address_does_not_abort_batch(self):
        make_student(email='a@example.com', handle='a_cf')
        bad = make_student(email='x@bü..com', handle='bad_cf')
        make_student(email='c@example.com', handle='c_cf')

        with self.assertLogs('tracker.services', level='WARNING'):
            result = self._batch(FakeCodeforcesClient()).run()

        self.assertEqual(result['syncedCount'], 3)
        self.assertEqual(result['emailsSent'], 2)
        self.assertEqual(sorted(m.to[0] for m in mail.outbox), ['a@example.com', 'c@example.com'])
        bad.refresh_from_db()
        self.assertEqual(bad.reminder_count, 0)

    def test_unexpected_reminder_error_does_not_abort_batch(self):
        make_student(email='a@example.com', handle='a_cf')
        make_student(email='b@example.com', handle='b_cf')
        batch = self._batch(FakeCodeforcesClient())

        with patch.object(batch.reminders, 'send_reminder', side_effect=[RuntimeError('boom'), {'reminderCount': 1}]):
            with self.assertLogs('tracker.services.sync', level='ERROR'):
                result = batch.run()

        self.assertEqual(result['syncedCount'], 2)
        self.assertEqual(result['emailsSent'], 1)

    def test_is_inactive(self):
        student = make_student()
        now = timezone.now()
        self.assertTrue(is_inactive(student, now=now))
        student.last_submission_date = now - timedelta(days=7, minutes=1)
        self.assertTrue(is_inactive(student, now=now))
        student.last_submission_date = now - timedelta(days=6)
        self.assertFalse(is_inactive(student, now=now))


class SyncStudentsCommandTests(TestCase):
    def test_command_runs_batch(self):
        make_student(emails_enabled=False)
        out = StringIO()
        with patch('tracker.services.CodeforcesClient', return_value=FakeCodeforcesClient()):
            call_command('sync_students', stdout=out)
        self.assertIn('Synced 1/1 students', out.getvalue())

    def test_command_single_student(self):
        student = make_student()
        out = StringIO()
        client = FakeCodeforcesClient(submissions=[submission_row(5, timezone.now())])
        with patch('tracker.services.CodeforcesClient', return_value=client):
            call_command('sync_students', student_id=student.pk, stdout=out)
        self.assertIn('1 submissions', out.getvalue())
        self.assertEqual(len(mail.outbox), 0)
