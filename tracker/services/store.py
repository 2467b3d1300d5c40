import functools
import logging

from django.db import IntegrityError, InterfaceError, OperationalError
from django.db.models import F, Q

from tracker.exceptions import Conflict, InfrastructureUnavailable, NotFound
from tracker.models import Contest, Student, Submission

logger = logging.getLogger(__name__)

STUDENT_FIELDS = ('name', 'email', 'phone', 'handle', 'emails_enabled')

# Keeps IN (...) lists below SQLite's bound-parameter limit.
_ID_CHUNK = 500


def _db_guard(method):
    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Database unavailable in {method.__name__}: {e}")
            raise InfrastructureUnavailable("Database connection failed.") from e
    return wrapper


class LocalStore:
    """
    Keyed access to students, contests and submissions.

    Instances are created by the entry points (views, tasks, commands) and
    handed to the services that need them.
    """

    # --- students ---

    @_db_guard
    def list_students(self):
        return list(Student.objects.all())

    @_db_guard
    def get_student(self, student_id):
        try:
            return Student.objects.get(pk=student_id)
        except (Student.DoesNotExist, ValueError, TypeError):
            raise NotFound("Student not found")

    def _check_unique(self, email, handle, exclude_id=None):
        qs = Student.objects.filter(Q(email=email) | Q(handle=handle))
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        if qs.exists():
            raise Conflict("Student with this email or Codeforces handle already exists")

    @_db_guard
    def create_student(self, **fields):
        self._check_unique(fields.get('email'), fields.get('handle'))
        try:
            return Student.objects.create(**fields)
        except IntegrityError as e:
            raise Conflict("Student with this email or Codeforces handle already exists") from e

    @_db_guard
    def update_student(self, student, **fields):
        self._check_unique(fields.get('email', student.email), fields.get('handle', student.handle), exclude_id=student.pk)
        for name in STUDENT_FIELDS:
            if name in fields:
                setattr(student, name, fields[name])
        try:
            student.save()
        except IntegrityError as e:
            raise Conflict("Student with this email or Codeforces handle already exists") from e
        return student

    @_db_guard
    def delete_student(self, student_id):
        deleted, _ = Student.objects.filter(pk=student_id).delete()
        if not deleted:
            raise NotFound("Student not found")

    @_db_guard
    def update_ratings(self, student_id, rating, max_rating, at):
        Student.objects.filter(pk=student_id).update(
            current_rating=rating,
            max_rating=max_rating,
            last_data_update=at,
        )

    @_db_guard
    def advance_last_submission_date(self, student_id, when):
        """Moves last_submission_date forward only; returns True if it changed."""
        updated = Student.objects.filter(pk=student_id).filter(
            Q(last_submission_date__isnull=True) | Q(last_submission_date__lt=when)
        ).update(last_submission_date=when)
        return bool(updated)

    @_db_guard
    def increment_reminder_count(self, student_id):
        Student.objects.filter(pk=student_id).update(reminder_count=F('reminder_count') + 1)

    # --- contests ---

    @_db_guard
    def upsert_contest(self, student_id, row):
        _, created = Contest.objects.update_or_create(
            student_id=student_id,
            contest_id=row['contest_id'],
            defaults={
                'contest_name': row['contest_name'],
                'rank': row['rank'],
                'old_rating': row['old_rating'],
                'new_rating': row['new_rating'],
                'rating_change': row['rating_change'],
                'participation_type': row['participation_type'],
                'contest_time': row['contest_time'],
            },
        )
        return created

    @_db_guard
    def contests_for(self, student_id, since=None):
        qs = Contest.objects.filter(student_id=student_id)
        if since is not None:
            qs = qs.filter(contest_time__gte=since)
        return list(qs.order_by('-contest_time'))

    # --- submissions ---

    @_db_guard
    def upsert_submission(self, student_id, row):
        _, created = Submission.objects.update_or_create(
            submission_id=row['submission_id'],
            defaults={
                'student_id': student_id,
                'contest_id': row.get('contest_id'),
                'problem_index': row.get('problem_index') or '',
                'problem_name': row['problem_name'],
                'problem_rating': row.get('problem_rating'),
                'verdict': row['verdict'],
                'language': row['language'],
                'submission_time': row['submission_time'],
            },
        )
        return created

    @_db_guard
    def submissions_owned_by_others(self, student_id, submission_ids):
        ids = list(submission_ids)
        foreign = []
        for i in range(0, len(ids), _ID_CHUNK):
            foreign.extend(
                Submission.objects.filter(submission_id__in=ids[i:i + _ID_CHUNK])
                .exclude(student_id=student_id)
                .values_list('submission_id', flat=True)
            )
        return foreign

    @_db_guard
    def submissions_for(self, student_id, since=None):
        qs = Submission.objects.filter(student_id=student_id)
        if since is not None:
            qs = qs.filter(submission_time__gte=since)
        return list(qs.order_by('submission_time', 'submission_id'))
