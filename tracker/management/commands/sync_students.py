from django.core.management.base import BaseCommand, CommandError

from tracker.exceptions import NotFound
from tracker.services import LocalStore, make_batch, make_syncer
from tracker.tasks import sync_all_students, sync_student


class Command(BaseCommand):
    help = "Syncs Codeforces data for every student and sends inactivity reminders."

    def add_arguments(self, parser):
        parser.add_argument(
            "--student-id",
            type=int,
            help="Only sync the given student (no reminders).",
        )
        parser.add_argument(
            "--queue",
            action="store_true",
            help="Queue the sync on Celery instead of running it here.",
        )

    def handle(self, *args, **options):
        student_id = options.get("student_id")

        if options.get("queue"):
            if student_id:
                sync_student.delay(student_id)
            else:
                sync_all_students.delay()
            self.stdout.write(self.style.SUCCESS("Sync queued."))
            return

        store = LocalStore()
        if student_id:
            try:
                outcome = make_syncer(store).sync(student_id)
            except NotFound:
                raise CommandError(f"Student {student_id} not found.")
            self.stdout.write(
                self.style.SUCCESS(
                    f"Student {student_id}: {outcome['contestsSynced']} contests, "
                    f"{outcome['submissionsSynced']} submissions."
                )
            )
            return

        result = make_batch(store).run()
        self.stdout.write(
            self.style.SUCCESS(
                f"Synced {result['syncedCount']}/{result['totalStudents']} students, "
                f"{result['emailsSent']} reminders sent."
            )
        )
