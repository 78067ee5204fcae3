# Initial migration for rostering app
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import rostering.domain.models

WEEKDAYS = [(0, 'Domingo'), (1, 'Segunda'), (2, 'Terça'), (3, 'Quarta'), (4, 'Quinta'), (5, 'Sexta'), (6, 'Sábado')]

class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=150)),
                ('theme_config', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={'verbose_name': 'Organização', 'verbose_name_plural': 'Organizações', 'ordering': ['name']},
        ),
        migrations.CreateModel(
            name='Profile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('org_role', models.CharField(choices=[('admin', 'Administrador'), ('member', 'Membro')], db_index=True, default='member', max_length=10)),
                ('full_name', models.CharField(blank=True, db_index=True, max_length=150, null=True)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('phone', models.CharField(blank=True, max_length=30, null=True)),
                ('avatar_url', models.URLField(blank=True, max_length=500, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='profiles', to='rostering.organization')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Perfil',
                'verbose_name_plural': 'Perfis',
                'ordering': ['full_name'],
                'indexes': [models.Index(fields=['organization', 'org_role'], name='profile_org_role_idx')],
            },
        ),
        migrations.CreateModel(
            name='ServiceDay',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('weekday', models.IntegerField(choices=WEEKDAYS, db_index=True, help_text='0=Domingo ... 6=Sábado', validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(6)])),
                ('name', models.CharField(max_length=100)),
                ('start_time', models.TimeField(blank=True, null=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='service_days', to='rostering.organization')),
            ],
            options={
                'verbose_name': 'Dia de culto',
                'verbose_name_plural': 'Dias de culto',
                'ordering': ['weekday', 'start_time', 'name'],
                'indexes': [models.Index(fields=['organization', 'weekday'], name='serviceday_org_weekday_idx')],
            },
        ),
        migrations.CreateModel(
            name='Department',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('priority_order', models.IntegerField(db_index=True, default=0, help_text='Menor valor = maior prioridade')),
                ('availability_deadline_day', models.PositiveSmallIntegerField(default=rostering.domain.models._default_deadline_day, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(31)])),
                ('description', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='departments', to='rostering.organization')),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='children', to='rostering.department')),
            ],
            options={
                'verbose_name': 'Departamento',
                'verbose_name_plural': 'Departamentos',
                'ordering': ['priority_order', 'name'],
                'indexes': [models.Index(fields=['organization', 'priority_order'], name='department_org_priority_idx')],
            },
        ),
        migrations.CreateModel(
            name='DepartmentFunction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='functions', to='rostering.department')),
            ],
            options={
                'verbose_name': 'Função',
                'verbose_name_plural': 'Funções',
                'ordering': ['name'],
                'constraints': [models.UniqueConstraint(fields=('department', 'name'), name='uniq_function_department_name')],
            },
        ),
        migrations.CreateModel(
            name='DepartmentMember',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('dept_role', models.CharField(choices=[('leader', 'Líder'), ('member', 'Membro')], db_index=True, default='member', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='members', to='rostering.department')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='department_memberships', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Membro do departamento',
                'verbose_name_plural': 'Membros do departamento',
                'indexes': [models.Index(fields=['user'], name='deptmember_user_idx')],
                'constraints': [models.UniqueConstraint(fields=('department', 'user'), name='uniq_department_member')],
            },
        ),
        migrations.CreateModel(
            name='MemberFunction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('function', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='member_functions', to='rostering.departmentfunction')),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='member_functions', to='rostering.departmentmember')),
            ],
            options={
                'verbose_name': 'Função do membro',
                'verbose_name_plural': 'Funções dos membros',
                'constraints': [models.UniqueConstraint(fields=('member', 'function'), name='uniq_member_function')],
            },
        ),
        migrations.AddField(
            model_name='departmentmember',
            name='functions',
            field=models.ManyToManyField(blank=True, related_name='members', through='rostering.MemberFunction', to='rostering.departmentfunction'),
        ),
        migrations.CreateModel(
            name='DepartmentLeader',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='leaders', to='rostering.department')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='led_departments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Líder do departamento',
                'verbose_name_plural': 'Líderes do departamento',
                'constraints': [models.UniqueConstraint(fields=('department', 'user'), name='uniq_department_leader')],
            },
        ),
        migrations.CreateModel(
            name='AvailabilityRoutine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_available', models.BooleanField(default=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('service_day', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='routines', to='rostering.serviceday')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='availability_routines', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Rotina de disponibilidade',
                'verbose_name_plural': 'Rotinas de disponibilidade',
                'constraints': [models.UniqueConstraint(fields=('user', 'service_day'), name='uniq_routine_user_service_day')],
            },
        ),
        migrations.CreateModel(
            name='AvailabilityException',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('specific_date', models.DateField(db_index=True)),
                ('is_available', models.BooleanField()),
                ('notes', models.TextField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('service_day', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='exceptions', to='rostering.serviceday')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='availability_exceptions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Exceção de disponibilidade',
                'verbose_name_plural': 'Exceções de disponibilidade',
                'ordering': ['specific_date'],
                'indexes': [models.Index(fields=['specific_date', 'user'], name='exception_date_user_idx')],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('service_day__isnull', False)), fields=('user', 'specific_date', 'service_day'), name='uniq_exception_user_date_service_day'),
                    models.UniqueConstraint(condition=models.Q(('service_day__isnull', True)), fields=('user', 'specific_date'), name='uniq_exception_user_date_whole_day'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RosterEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('schedule_date', models.DateField(db_index=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='roster_entries', to='rostering.department')),
                ('function', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='roster_entries', to='rostering.departmentfunction')),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='roster_entries', to='rostering.departmentmember')),
                ('service_day', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='roster_entries', to='rostering.serviceday')),
            ],
            options={
                'verbose_name': 'Escala',
                'verbose_name_plural': 'Escalas',
                'ordering': ['schedule_date', 'service_day__start_time'],
                'indexes': [
                    models.Index(fields=['schedule_date', 'service_day'], name='roster_date_service_idx'),
                    models.Index(fields=['department', 'schedule_date'], name='roster_dept_date_idx'),
                ],
                'constraints': [models.UniqueConstraint(fields=('department', 'function', 'schedule_date', 'service_day'), name='uniq_roster_slot')],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(db_index=True, max_length=50)),
                ('table', models.CharField(db_index=True, max_length=50)),
                ('record_id', models.CharField(max_length=50)),
                ('before', models.JSONField(blank=True, null=True)),
                ('after', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('author', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Auditoria',
                'verbose_name_plural': 'Auditorias',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['table', 'created_at'], name='audit_table_created_idx'),
                    models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
                ],
            },
        ),
    ]
