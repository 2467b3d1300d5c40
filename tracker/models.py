from django.db import models
from django.utils import timezone


class Student(models.Model):
    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=50)
    handle = models.CharField(max_length=100, unique=True, help_text="Codeforces handle")

    # Cached Codeforces metrics (written by the sync pipeline)
    current_rating = models.IntegerField(default=0)
    max_rating = models.IntegerField(default=0)
    last_data_update = models.DateTimeField(default=timezone.now)
    last_submission_date = models.DateTimeField(null=True, blank=True)

    # Inactivity reminders
    reminder_count = models.PositiveIntegerField(default=0)
    emails_enabled = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.handle})"


class Contest(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='contests')
    contest_id = models.IntegerField()
    contest_name = models.CharField(max_length=300)
    rank = models.IntegerField()
    old_rating = models.IntegerField()
    new_rating = models.IntegerField()
    rating_change = models.IntegerField()
    participation_type = models.CharField(max_length=50, default='CONTESTANT')
    contest_time = models.DateTimeField()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-contest_time']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'contest_id'],
                name='contest_student_contest_uniq',
            ),
        ]
        indexes = [
            models.Index(fields=['student', 'contest_time'], name='contest_student_time_idx'),
        ]

    def __str__(self):
        return f"{self.student.handle} - {self.contest_name} ({self.rating_change:+d})"


class Submission(models.Model):
    # Codeforces submission ids are global across all users
    submission_id = models.BigIntegerField(unique=True)
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='submissions')
    contest_id = models.IntegerField(null=True, blank=True)
    problem_index = models.CharField(max_length=10, blank=True, default='')
    problem_name = models.CharField(max_length=300)
    problem_rating = models.IntegerField(null=True, blank=True)
    verdict = models.CharField(max_length=50)  # Ex: 'OK', 'WRONG_ANSWER'
    language = models.CharField(max_length=100)
    submission_time = models.DateTimeField()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-submission_time']
        indexes = [
            models.Index(fields=['student', 'submission_time'], name='submission_student_time_idx'),
        ]

    def __str__(self):
        return f"{self.student.handle} - {self.contest_id}{self.problem_index} {self.problem_name} ({self.verdict})"
