import logging
import time
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from tracker.exceptions import DispatchFailure, PreconditionFailed

logger = logging.getLogger(__name__)


class StudentSync:
    """Pulls one student's Codeforces data into the local store."""

    def __init__(self, store, client):
        self.store = store
        self.client = client

    def sync(self, student_id, handle=None) -> dict:
        started = time.monotonic()
        student = self.store.get_student(student_id)
        handle = handle or student.handle

        profile = self.client.get_profile(handle)
        rating_history = self.client.get_rating_history(handle)
        submissions = self.client.get_submissions(handle)

        if profile:
            self.store.update_ratings(
                student.pk,
                profile['rating'],
                profile['max_rating'],
                timezone.now(),
            )
        else:
            logger.warning(f"No Codeforces profile for {handle}; ratings left unchanged.")

        for row in rating_history:
            self.store.upsert_contest(student.pk, row)

        last_submission = None
        if submissions:
            reassigned = self.store.submissions_owned_by_others(
                student.pk,
                [sub['submission_id'] for sub in submissions],
            )
            if reassigned:
                logger.warning(
                    "Reassigning %s submissions to student_id=%s handle=%s",
                    len(reassigned),
                    student.pk,
                    handle,
                )
            for sub in submissions:
                self.store.upsert_submission(student.pk, sub)

            last_submission = max(sub['submission_time'] for sub in submissions)
            self.store.advance_last_submission_date(student.pk, last_submission)

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "sync student_id=%s handle=%s profile=%s contests=%s submissions=%s duration_ms=%s",
            student.pk,
            handle,
            bool(profile),
            len(rating_history),
            len(submissions),
            duration_ms,
        )
        return {
            'message': 'Sync completed successfully',
            'studentId': student.pk,
            'profileUpdated': bool(profile),
            'contestsSynced': len(rating_history),
            'submissionsSynced': len(submissions),
            'lastSubmissionDate': last_submission.isoformat() if last_submission else None,
        }


def is_inactive(student, now=None, days=None) -> bool:
    now = now or timezone.now()
    days = days if days is not None else getattr(settings, "INACTIVITY_DAYS", 7)
    last = student.last_submission_date
    return last is None or last < now - timedelta(days=days)


class BatchSync:
    """Syncs every student in turn and reminds the inactive ones."""

    def __init__(self, store, syncer, reminders):
        self.store = store
        self.syncer = syncer
        self.reminders = reminders

    def run(self) -> dict:
        started = time.monotonic()
        students = self.store.list_students()
        synced_count = 0
        emails_sent = 0
        errors = 0

        for student in students:
            try:
                self.syncer.sync(student.pk)
                synced_count += 1
            except Exception:
                errors += 1
                logger.exception("Batch sync failed for student_id=%s", student.pk)
                continue

            try:
                fresh = self.store.get_student(student.pk)
                if fresh.emails_enabled and is_inactive(fresh):
                    self.reminders.send_reminder(fresh.pk)
                    emails_sent += 1
            except (DispatchFailure, PreconditionFailed) as e:
                errors += 1
                logger.warning(f"Reminder not sent for student_id={student.pk}: {e}")
            except Exception:
                errors += 1
                logger.exception("Reminder check failed for student_id=%s", student.pk)

        logger.info(
            "batch sync students=%s synced=%s emails=%s errors=%s duration_ms=%s",
            len(students),
            synced_count,
            emails_sent,
            errors,
            int((time.monotonic() - started) * 1000),
        )
        return {
            'message': 'Batch sync completed',
            'syncedCount': synced_count,
            'emailsSent': emails_sent,
            'totalStudents': len(students),
        }
