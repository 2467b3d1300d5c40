from django.contrib import admin

from .models import Contest, Student, Submission

admin.site.site_header = "Student Progress Administration"
admin.site.site_title = "Student Progress Admin"


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = (
        'name',
        'handle',
        'email',
        'current_rating',
        'max_rating',
        'last_submission_date',
        'reminder_count',
        'emails_enabled',
    )
    list_filter = ('emails_enabled',)
    search_fields = ('name', 'email', 'handle')
    readonly_fields = ('last_data_update', 'reminder_count', 'created_at', 'updated_at')


@admin.register(Contest)
class ContestAdmin(admin.ModelAdmin):
    list_display = ('student', 'contest_id', 'contest_name', 'rank', 'rating_change', 'contest_time')
    search_fields = ('student__handle', 'contest_name')
    list_select_related = ('student',)


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ('submission_id', 'student', 'contest_id', 'problem_index', 'problem_name', 'verdict', 'submission_time')
    list_filter = ('verdict',)
    search_fields = ('student__handle', 'problem_name')
    list_select_related = ('student',)
