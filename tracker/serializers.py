def _iso(value):
    return value.isoformat() if value else None


def student_to_dict(student) -> dict:
    return {
        'id': student.pk,
        'name': student.name,
        'email': student.email,
        'phone': student.phone,
        'handle': student.handle,
        'currentRating': student.current_rating,
        'maxRating': student.max_rating,
        'lastDataUpdate': _iso(student.last_data_update),
        'lastSubmissionDate': _iso(student.last_submission_date),
        'reminderCount': student.reminder_count,
        'emailsEnabled': student.emails_enabled,
        'createdAt': _iso(student.created_at),
        'updatedAt': _iso(student.updated_at),
    }


def contest_to_dict(contest) -> dict:
    return {
        'id': contest.pk,
        'studentId': contest.student_id,
        'contestId': contest.contest_id,
        'contestName': contest.contest_name,
        'rank': contest.rank,
        'oldRating': contest.old_rating,
        'newRating': contest.new_rating,
        'ratingChange': contest.rating_change,
        'participationType': contest.participation_type,
        'contestTime': _iso(contest.contest_time),
    }


CSV_HEADER = [
    'Name',
    'Email',
    'Phone',
    'Codeforces Handle',
    'Current Rating',
    'Max Rating',
    'Last Updated',
    'Reminders Sent',
    'Emails Enabled',
]


def student_to_csv_row(student) -> list:
    return [
        student.name,
        student.email,
        student.phone,
        student.handle,
        student.current_rating,
        student.max_rating,
        _iso(student.last_data_update) or '',
        student.reminder_count,
        'Yes' if student.emails_enabled else 'No',
    ]
