import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenants', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(help_text='Display name (e.g., Swift Dzire - Manual)', max_length=100)),
                ('plate_number', models.CharField(help_text='Registration plate, stored upper-cased', max_length=20)),
                ('is_active', models.BooleanField(db_index=True, default=True, help_text='Whether this vehicle can be booked')),
                ('notes', models.TextField(blank=True, help_text='Additional notes about the vehicle')),
                ('created_by', models.ForeignKey(blank=True, help_text='User who created this record', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_created_set', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, help_text='User who last updated this record', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_updated_set', to=settings.AUTH_USER_MODEL)),
                ('tenant', models.ForeignKey(help_text='Driving school this record belongs to', on_delete=django.db.models.deletion.PROTECT, related_name='%(class)s_set', to='tenants.tenant')),
            ],
            options={
                'verbose_name': 'Vehicle',
                'verbose_name_plural': 'Vehicles',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['tenant', 'is_active'], name='sched_vehicle_ten_active_idx')],
                'constraints': [models.UniqueConstraint(fields=('tenant', 'plate_number'), name='unique_plate_per_tenant')],
            },
        ),
        migrations.CreateModel(
            name='Enrollment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('plan_days', models.PositiveIntegerField(help_text='Number of lesson days in the plan')),
                ('completed_days', models.PositiveIntegerField(default=0, help_text='Number of sessions marked present')),
                ('start_date', models.DateField()),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('skip_sundays', models.BooleanField(default=True, help_text='Sundays are not counted toward the plan')),
                ('total_price', models.DecimalField(decimal_places=2, help_text='Agreed price of the whole plan', max_digits=10)),
                ('status', models.CharField(choices=[('ACTIVE', 'Active'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], db_index=True, default='ACTIVE', max_length=20)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.ForeignKey(blank=True, help_text='User who created this record', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_created_set', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, help_text='User who last updated this record', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_updated_set', to=settings.AUTH_USER_MODEL)),
                ('tenant', models.ForeignKey(help_text='Driving school this record belongs to', on_delete=django.db.models.deletion.PROTECT, related_name='%(class)s_set', to='tenants.tenant')),
                ('student', models.ForeignKey(help_text='Student taking the lessons', on_delete=django.db.models.deletion.PROTECT, related_name='student_enrollments', to=settings.AUTH_USER_MODEL)),
                ('trainer', models.ForeignKey(help_text='Trainer giving the lessons', on_delete=django.db.models.deletion.PROTECT, related_name='trainer_enrollments', to=settings.AUTH_USER_MODEL)),
                ('vehicle', models.ForeignKey(help_text='Vehicle used for the lessons', on_delete=django.db.models.deletion.PROTECT, related_name='enrollments', to='scheduling.vehicle')),
            ],
            options={
                'verbose_name': 'Enrollment',
                'verbose_name_plural': 'Enrollments',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['tenant', 'status'], name='sched_enr_ten_status_idx'),
                    models.Index(fields=['tenant', 'trainer'], name='sched_enr_ten_trainer_idx'),
                    models.Index(fields=['tenant', 'student'], name='sched_enr_ten_student_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('plan_days__gte', 1)), name='enrollment_plan_days_positive'),
                    models.CheckConstraint(condition=models.Q(('completed_days__gte', 0)), name='enrollment_completed_days_non_negative'),
                    models.CheckConstraint(condition=models.Q(('start_time__lt', models.F('end_time'))), name='enrollment_time_window_ordered'),
                    models.CheckConstraint(condition=models.Q(('total_price__gt', 0)), name='enrollment_total_price_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LessonSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('date', models.DateField()),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('PRESENT', 'Present'), ('ABSENT', 'Absent'), ('CANCELLED', 'Cancelled')], db_index=True, default='PENDING', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('created_by', models.ForeignKey(blank=True, help_text='User who created this record', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_created_set', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, help_text='User who last updated this record', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_updated_set', to=settings.AUTH_USER_MODEL)),
                ('tenant', models.ForeignKey(help_text='Driving school this record belongs to', on_delete=django.db.models.deletion.PROTECT, related_name='%(class)s_set', to='tenants.tenant')),
                ('enrollment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sessions', to='scheduling.enrollment')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='student_sessions', to=settings.AUTH_USER_MODEL)),
                ('trainer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='trainer_sessions', to=settings.AUTH_USER_MODEL)),
                ('vehicle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sessions', to='scheduling.vehicle')),
                ('makeup_for', models.ForeignKey(blank=True, help_text='Absent session this makeup compensates for', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='makeups', to='scheduling.lessonsession')),
            ],
            options={
                'verbose_name': 'Lesson Session',
                'verbose_name_plural': 'Lesson Sessions',
                'ordering': ['date', 'start_time', 'pk'],
                'indexes': [
                    models.Index(fields=['tenant', 'date', 'trainer'], name='sched_sess_ten_date_trn_idx'),
                    models.Index(fields=['tenant', 'date', 'vehicle'], name='sched_sess_ten_date_veh_idx'),
                    models.Index(fields=['tenant', 'date', 'student'], name='sched_sess_ten_date_stu_idx'),
                    models.Index(fields=['enrollment', 'date'], name='sched_sess_enr_date_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('start_time__lt', models.F('end_time'))), name='session_time_window_ordered'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, help_text='Payment amount', max_digits=10)),
                ('method', models.CharField(choices=[('cash', 'Cash'), ('online', 'Online'), ('bank_transfer', 'Bank Transfer'), ('cheque', 'Cheque')], default='cash', help_text='Method of payment', max_length=20)),
                ('paid_at', models.DateTimeField(default=django.utils.timezone.now, help_text='When payment was made')),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('tenant', models.ForeignKey(help_text='Driving school this record belongs to', on_delete=django.db.models.deletion.PROTECT, related_name='%(class)s_set', to='tenants.tenant')),
                ('enrollment', models.ForeignKey(help_text='Enrollment this payment is for', on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='scheduling.enrollment')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='recorded_payments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Payment',
                'verbose_name_plural': 'Payments',
                'ordering': ['-paid_at'],
                'indexes': [
                    models.Index(fields=['tenant', 'enrollment'], name='sched_pay_ten_enr_idx'),
                    models.Index(fields=['tenant', 'paid_at'], name='sched_pay_ten_paid_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('amount__gt', 0)), name='payment_amount_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AttendanceEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('mark', 'Mark'), ('reset', 'Reset'), ('cancel', 'Cancel')], max_length=10)),
                ('from_status', models.CharField(max_length=20)),
                ('to_status', models.CharField(max_length=20)),
                ('makeup_session_id', models.BigIntegerField(blank=True, help_text='Makeup session created (mark absent) or removed (reset)', null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('tenant', models.ForeignKey(help_text='Driving school this record belongs to', on_delete=django.db.models.deletion.PROTECT, related_name='%(class)s_set', to='tenants.tenant')),
                ('enrollment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendance_events', to='scheduling.enrollment')),
                ('session', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='attendance_events', to='scheduling.lessonsession')),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='attendance_events', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Attendance Event',
                'verbose_name_plural': 'Attendance Events',
                'ordering': ['created_at', 'pk'],
                'indexes': [models.Index(fields=['tenant', 'enrollment'], name='sched_evt_ten_enr_idx')],
            },
        ),
    ]
