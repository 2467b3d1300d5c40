import csv
import functools
import json
import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.http import HttpResponse, JsonResponse
from django.utils import timezone
from django.utils.crypto import constant_time_compare
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .exceptions import TrackerError
from .serializers import CSV_HEADER, contest_to_dict, student_to_csv_row, student_to_dict
from .services import EmailNotifier, LocalStore, make_batch, make_reminders, make_syncer
from .services.analytics import compute_problem_stats, window_start
from .tasks import sync_student

logger = logging.getLogger(__name__)

MAX_WINDOW_DAYS = 36500
REQUIRED_STUDENT_FIELDS = ('name', 'email', 'phone', 'handle')


class BadRequest(Exception):
    pass


def _error(message, status, **extra):
    return JsonResponse({'error': message, **extra}, status=status)


def json_api(view):
    """Maps tracker exceptions to JSON error responses."""

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except BadRequest as e:
            return _error(str(e), 400)
        except TrackerError as e:
            if e.status_code >= 500:
                logger.error(f"{view.__name__} failed: {e}")
            return _error(str(e), e.status_code)
        except Exception:
            logger.exception("Unexpected error in %s", view.__name__)
            return _error("Internal server error", 500)

    return csrf_exempt(wrapper)


def _read_json(request) -> dict:
    try:
        body = json.loads(request.body or b"{}")
    except (ValueError, UnicodeDecodeError):
        raise BadRequest("Invalid JSON body")
    if not isinstance(body, dict):
        raise BadRequest("JSON body must be an object")
    return body


def _student_fields(body: dict) -> dict:
    handle = body.get('handle') or body.get('codeforcesHandle')
    fields = {
        'name': (body.get('name') or '').strip(),
        'email': (body.get('email') or '').strip(),
        'phone': (body.get('phone') or '').strip(),
        'handle': (handle or '').strip(),
    }
    if not all(fields[name] for name in REQUIRED_STUDENT_FIELDS):
        raise BadRequest("All fields are required")
    _check_email(fields['email'])
    emails_enabled = body.get('emailsEnabled')
    if emails_enabled is not None:
        fields['emails_enabled'] = bool(emails_enabled)
    return fields


def _check_email(email):
    try:
        validate_email(email)
    except ValidationError:
        raise BadRequest("Invalid email format")


def _positive_int_param(request, name, default=None, maximum=MAX_WINDOW_DAYS):
    raw = request.GET.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise BadRequest(f"'{name}' must be a positive integer")
    if value <= 0:
        raise BadRequest(f"'{name}' must be a positive integer")
    if value > maximum:
        raise BadRequest(f"'{name}' must be at most {maximum}")
    return value


def _enqueue_sync(student_id):
    try:
        sync_student.delay(student_id)
    except Exception:
        logger.exception("Could not enqueue sync for student_id=%s", student_id)


@json_api
@require_http_methods(["GET", "POST"])
def students(request):
    store = LocalStore()
    if request.method == 'GET':
        return JsonResponse([student_to_dict(s) for s in store.list_students()], safe=False)

    fields = _student_fields(_read_json(request))
    student = store.create_student(**fields)
    transaction.on_commit(lambda: _enqueue_sync(student.pk))
    return JsonResponse(student_to_dict(student), status=201)


@json_api
@require_http_methods(["GET"])
def students_csv(request):
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = 'attachment; filename="students.csv"'
    writer = csv.writer(response)
    writer.writerow(CSV_HEADER)
    for student in LocalStore().list_students():
        writer.writerow(student_to_csv_row(student))
    return response


@json_api
@require_http_methods(["GET", "PUT", "DELETE"])
def student_detail(request, student_id):
    store = LocalStore()
    if request.method == 'DELETE':
        store.delete_student(student_id)
        return JsonResponse({'message': 'Student deleted successfully'})

    student = store.get_student(student_id)
    if request.method == 'GET':
        return JsonResponse(student_to_dict(student))

    fields = _student_fields(_read_json(request))
    handle_changed = student.handle != fields['handle']
    student = store.update_student(student, **fields)
    if handle_changed:
        transaction.on_commit(lambda: _enqueue_sync(student.pk))
    return JsonResponse(student_to_dict(student))


@json_api
@require_http_methods(["GET"])
def student_contests(request, student_id):
    store = LocalStore()
    store.get_student(student_id)
    days = _positive_int_param(request, 'days')
    since = timezone.now() - timedelta(days=days) if days else None
    contests = store.contests_for(student_id, since=since)
    return JsonResponse([contest_to_dict(c) for c in contests], safe=False)


@json_api
@require_http_methods(["GET"])
def student_problems(request, student_id):
    store = LocalStore()
    store.get_student(student_id)
    days = _positive_int_param(request, 'days', default=30)
    now = timezone.now()
    submissions = store.submissions_for(student_id, since=window_start(days, now))
    return JsonResponse(compute_problem_stats(submissions, days, now=now))


@json_api
@require_http_methods(["POST"])
def send_reminder(request, student_id):
    result = make_reminders(LocalStore()).send_reminder(student_id)
    return JsonResponse({'message': 'Reminder email sent successfully', **result})


@json_api
@require_http_methods(["POST"])
def sync_student_view(request):
    body = _read_json(request)
    student_id = body.get('studentId')
    if student_id in (None, ''):
        raise BadRequest("studentId is required")
    outcome = make_syncer(LocalStore()).sync(student_id, handle=body.get('handle') or None)
    return JsonResponse(outcome)


def _has_sync_credential(request) -> bool:
    expected = getattr(settings, "SYNC_API_KEY", "")
    if not expected:
        return True
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return False
    return constant_time_compare(header[len('Bearer '):], expected)


@json_api
@require_http_methods(["POST"])
def sync_all_view(request):
    if not _has_sync_credential(request):
        return _error("Unauthorized", 401)
    return JsonResponse(make_batch(LocalStore()).run())


@json_api
@require_http_methods(["POST"])
def test_email(request):
    email = (_read_json(request).get('email') or '').strip()
    if not email:
        raise BadRequest("Email is required")
    _check_email(email)
    EmailNotifier().send_test_email(email)
    return JsonResponse({
        'message': 'Test email sent successfully',
        'details': 'Check your inbox (and spam folder) for the test email.',
    })
