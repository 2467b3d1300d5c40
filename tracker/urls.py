from django.urls import path
from . import views

urlpatterns = [
    path('students', views.students, name='students'),
    path('students/export.csv', views.students_csv, name='students_csv'),
    path('students/<int:student_id>', views.student_detail, name='student_detail'),
    path('students/<int:student_id>/contests', views.student_contests, name='student_contests'),
    path('students/<int:student_id>/problems', views.student_problems, name='student_problems'),
    path('students/<int:student_id>/send-reminder', views.send_reminder, name='send_reminder'),
    path('sync/student', views.sync_student_view, name='sync_student'),
    path('sync/all', views.sync_all_view, name='sync_all'),
    path('test-email', views.test_email, name='test_email'),
]
