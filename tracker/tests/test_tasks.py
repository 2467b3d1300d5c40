import json
from unittest.mock import MagicMock, patch

import redis
from django.core import mail
from django.test import TestCase
from django.utils import timezone

from tracker.models import Submission
from tracker.tasks import sync_all_students, sync_student
from tracker.tests.fakes import FakeCodeforcesClient, make_student, submission_row


class TaskTestCase(TestCase):
    def setUp(self):
        self.redis = MagicMock()
        patcher = patch('tracker.tasks._get_redis_client', return_value=self.redis)
        patcher.start()
        self.addCleanup(patcher.stop)

    def use_client(self, client):
        patcher = patch('tracker.services.CodeforcesClient', return_value=client)
        patcher.start()
        self.addCleanup(patcher.stop)

    def health(self, task_name):
        key, payload = self.redis.set.call_args.args
        self.assertEqual(key, f'task_health:{task_name}')
        return json.loads(payload)


class SyncStudentTaskTests(TaskTestCase):
    def test_syncs_student(self):
        student = make_student()
        self.use_client(FakeCodeforcesClient(
            profile={'rating': 1400, 'max_rating': 1450},
            submissions=[submission_row(9, timezone.now())],
        ))

        outcome = sync_student(student.pk)

        self.assertEqual(outcome['studentId'], student.pk)
        self.assertEqual(outcome['submissionsSynced'], 1)
        self.assertTrue(Submission.objects.filter(student=student, submission_id=9).exists())
        student.refresh_from_db()
        self.assertEqual(student.current_rating, 1400)
        self.redis.set.assert_not_called()

    def test_deleted_student_is_not_an_error(self):
        self.use_client(FakeCodeforcesClient())

        with self.assertLogs('tracker.tasks', level='WARNING'):
            outcome = sync_student(4242)

        self.assertEqual(outcome, {'status': 'not_found', 'studentId': 4242})
        self.redis.set.assert_not_called()

    def test_failure_records_health_and_reraises(self):
        student = make_student()
        client = FakeCodeforcesClient()
        client.get_profile = MagicMock(side_effect=RuntimeError('remote exploded'))
        self.use_client(client)

        with self.assertLogs('tracker.tasks', level='ERROR'):
            with self.assertRaises(RuntimeError):
                sync_student(student.pk)

        health = self.health('sync_student')
        self.assertEqual(health['status'], 'error')
        self.assertEqual(health['studentId'], student.pk)
        self.assertEqual(health['error'], 'remote exploded')

    def test_redis_outage_does_not_mask_failure(self):
        student = make_student()
        client = FakeCodeforcesClient()
        client.get_profile = MagicMock(side_effect=RuntimeError('remote exploded'))
        self.use_client(client)
        self.redis.set.side_effect = redis.ConnectionError('redis down')

        with self.assertLogs('tracker.tasks', level='ERROR'):
            with self.assertRaises(RuntimeError):
                sync_student(student.pk)


class SyncAllStudentsTaskTests(TaskTestCase):
    def test_records_batch_counts(self):
        make_student(email='a@example.com', handle='a_cf')
        make_student(email='b@example.com', handle='b_cf', emails_enabled=False)
        self.use_client(FakeCodeforcesClient())

        result = sync_all_students()

        self.assertEqual(result['totalStudents'], 2)
        self.assertEqual(result['syncedCount'], 2)
        self.assertEqual(result['emailsSent'], 1)
        self.assertEqual(len(mail.outbox), 1)

        health = self.health('sync_all_students')
        self.assertEqual(health['status'], 'ok')
        self.assertEqual(health['syncedCount'], 2)
        self.assertEqual(health['emailsSent'], 1)
        self.assertEqual(health['totalStudents'], 2)
        self.assertEqual(self.redis.set.call_args.kwargs['ex'], 2 * 24 * 3600)
