import logging
import smtplib

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone

from tracker.exceptions import DispatchFailure, PreconditionFailed

logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "Coding Practice Reminder - Get Back to Problem Solving! 🚀"
TEST_SUBJECT = "Test Email - Student Progress Management System ✅"


class EmailNotifier:
    """Renders tracker emails and hands them to Django's mail backend."""

    def __init__(self, from_email=None, connection=None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.connection = connection

    def _send(self, subject, recipient, template, context):
        text = render_to_string(f"tracker/emails/{template}.txt", context)
        html = render_to_string(f"tracker/emails/{template}.html", context)
        mail = EmailMultiAlternatives(
            subject,
            text,
            self.from_email,
            [recipient],
            connection=self.connection,
        )
        mail.attach_alternative(html, 'text/html')
        try:
            mail.send()
        except (smtplib.SMTPException, OSError, ValueError) as e:
            logger.error(f"Failed to send '{template}' email to {recipient}: {e}")
            raise DispatchFailure("Failed to send email. Please check your SMTP configuration.") from e
        logger.info(f"'{template}' email sent to {recipient}")

    def send_reminder(self, student, reminder_number):
        self._send(
            REMINDER_SUBJECT,
            student.email,
            'reminder',
            {
                'name': student.name,
                'reminder_number': reminder_number,
                'inactivity_days': getattr(settings, "INACTIVITY_DAYS", 7),
            },
        )

    def send_test_email(self, email):
        self._send(TEST_SUBJECT, email, 'test_email', {'sent_at': timezone.localtime()})


class ReminderService:
    def __init__(self, store, notifier):
        self.store = store
        self.notifier = notifier

    def send_reminder(self, student_id) -> dict:
        student = self.store.get_student(student_id)
        if not student.emails_enabled:
            raise PreconditionFailed("Email notifications are disabled for this student")

        reminder_number = student.reminder_count + 1
        self.notifier.send_reminder(student, reminder_number)
        self.store.increment_reminder_count(student.pk)
        return {'reminderCount': reminder_number}
