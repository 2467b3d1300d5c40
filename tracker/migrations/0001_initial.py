import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Student',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('phone', models.CharField(max_length=50)),
                ('handle', models.CharField(help_text='Codeforces handle', max_length=100, unique=True)),
                ('current_rating', models.IntegerField(default=0)),
                ('max_rating', models.IntegerField(default=0)),
                ('last_data_update', models.DateTimeField(default=django.utils.timezone.now)),
                ('last_submission_date', models.DateTimeField(blank=True, null=True)),
                ('reminder_count', models.PositiveIntegerField(default=0)),
                ('emails_enabled', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Contest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('contest_id', models.IntegerField()),
                ('contest_name', models.CharField(max_length=300)),
                ('rank', models.IntegerField()),
                ('old_rating', models.IntegerField()),
                ('new_rating', models.IntegerField()),
                ('rating_change', models.IntegerField()),
                ('participation_type', models.CharField(default='CONTESTANT', max_length=50)),
                ('contest_time', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='contests', to='tracker.student')),
            ],
            options={
                'ordering': ['-contest_time'],
                'indexes': [models.Index(fields=['student', 'contest_time'], name='contest_student_time_idx')],
                'constraints': [models.UniqueConstraint(fields=('student', 'contest_id'), name='contest_student_contest_uniq')],
            },
        ),
        migrations.CreateModel(
            name='Submission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('submission_id', models.BigIntegerField(unique=True)),
                ('contest_id', models.IntegerField(blank=True, null=True)),
                ('problem_index', models.CharField(blank=True, default='', max_length=10)),
                ('problem_name', models.CharField(max_length=300)),
                ('problem_rating', models.IntegerField(blank=True, null=True)),
                ('verdict', models.CharField(max_length=50)),
                ('language', models.CharField(max_length=100)),
                ('submission_time', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='submissions', to='tracker.student')),
            ],
            options={
                'ordering': ['-submission_time'],
                'indexes': [models.Index(fields=['student', 'submission_time'], name='submission_student_time_idx')],
            },
        ),
    ]
