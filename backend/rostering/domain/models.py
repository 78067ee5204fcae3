from __future__ import annotations

from django.conf import settings
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q

# =========================
# Choices canônicos
# =========================

class OrgRole(models.TextChoices):
    ADMIN = "admin", "Administrador"
    MEMBER = "member", "Membro"

class DeptRole(models.TextChoices):
    LEADER = "leader", "Líder"
    MEMBER = "member", "Membro"

WEEKDAY_CHOICES = [
    (0, "Domingo"),
    (1, "Segunda"),
    (2, "Terça"),
    (3, "Quarta"),
    (4, "Quinta"),
    (5, "Sexta"),
    (6, "Sábado"),
]

def _default_deadline_day() -> int:
    return getattr(settings, "DEFAULT_AVAILABILITY_DEADLINE_DAY", 20)

# =========================
# Organização e pessoas
# =========================

class Organization(models.Model):
    """Igreja/organização dona dos departamentos e dias de culto."""
    name = models.CharField(max_length=150)
    theme_config = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Organização"
        verbose_name_plural = "Organizações"
        ordering = ["name"]

    def __str__(self):
        return self.name

class Profile(models.Model):
    """Perfil do usuário dentro de uma organização."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="profiles")
    org_role = models.CharField(max_length=10, choices=OrgRole.choices, default=OrgRole.MEMBER, db_index=True)
    full_name = models.CharField(max_length=150, blank=True, null=True, db_index=True)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=30, blank=True, null=True)
    avatar_url = models.URLField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Perfil"
        verbose_name_plural = "Perfis"
        ordering = ["full_name"]
        indexes = [
            models.Index(fields=["organization", "org_role"], name="profile_org_role_idx"),
        ]

    def __str__(self):
        return self.full_name or self.user.get_username()

    @property
    def is_admin(self) -> bool:
        return self.org_role == OrgRole.ADMIN

class ServiceDay(models.Model):
    """Culto/evento semanal recorrente (ex.: "Culto de Domingo à Noite")."""
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="service_days")
    weekday = models.IntegerField(
        choices=WEEKDAY_CHOICES,
        help_text="0=Domingo ... 6=Sábado",
        validators=[MinValueValidator(0), MaxValueValidator(6)],
        db_index=True,
    )
    name = models.CharField(max_length=100)
    start_time = models.TimeField(blank=True, null=True)

    class Meta:
        verbose_name = "Dia de culto"
        verbose_name_plural = "Dias de culto"
        ordering = ["weekday", "start_time", "name"]
        indexes = [
            models.Index(fields=["organization", "weekday"], name="serviceday_org_weekday_idx"),
        ]

    def __str__(self):
        return f"{self.get_weekday_display()} - {self.name}"

# =========================
# Departamentos
# =========================

class Department(models.Model):
    """Departamento (ministério) com prioridade de escala e prazo de disponibilidade."""
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="departments")
    name = models.CharField(max_length=120)
    parent = models.ForeignKey(
        "self", blank=True, null=True, on_delete=models.SET_NULL, related_name="children"
    )
    priority_order = models.IntegerField(default=0, help_text="Menor valor = maior prioridade", db_index=True)
    availability_deadline_day = models.PositiveSmallIntegerField(
        default=_default_deadline_day,
        validators=[MinValueValidator(1), MaxValueValidator(31)],
    )
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Departamento"
        verbose_name_plural = "Departamentos"
        ordering = ["priority_order", "name"]
        indexes = [
            models.Index(fields=["organization", "priority_order"], name="department_org_priority_idx"),
        ]

    def __str__(self):
        return self.name

class DepartmentFunction(models.Model):
    """Função dentro de um departamento (ex.: "Guitarrista")."""
    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name="functions")
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Função"
        verbose_name_plural = "Funções"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=("department", "name"), name="uniq_function_department_name"),
        ]

    def __str__(self):
        return f"{self.department} / {self.name}"

class DepartmentMember(models.Model):
    """Vínculo de um usuário a um departamento."""
    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="department_memberships")
    dept_role = models.CharField(max_length=10, choices=DeptRole.choices, default=DeptRole.MEMBER, db_index=True)
    functions = models.ManyToManyField(
        DepartmentFunction, through="MemberFunction", related_name="members", blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Membro do departamento"
        verbose_name_plural = "Membros do departamento"
        constraints = [
            models.UniqueConstraint(fields=("department", "user"), name="uniq_department_member"),
        ]
        indexes = [
            models.Index(fields=["user"], name="deptmember_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.department}"

class MemberFunction(models.Model):
    """Função exercida por um membro dentro do seu departamento."""
    member = models.ForeignKey(DepartmentMember, on_delete=models.CASCADE, related_name="member_functions")
    function = models.ForeignKey(DepartmentFunction, on_delete=models.CASCADE, related_name="member_functions")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Função do membro"
        verbose_name_plural = "Funções dos membros"
        constraints = [
            models.UniqueConstraint(fields=("member", "function"), name="uniq_member_function"),
        ]

    def clean(self):
        if self.member_id and self.function_id and self.member.department_id != self.function.department_id:
            raise ValidationError({"function": "A função deve pertencer ao departamento do membro."})

    def __str__(self):
        return f"{self.member.user} -> {self.function.name}"

class DepartmentLeader(models.Model):
    """Líder designado de um departamento."""
    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name="leaders")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="led_departments")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Líder do departamento"
        verbose_name_plural = "Líderes do departamento"
        constraints = [
            models.UniqueConstraint(fields=("department", "user"), name="uniq_department_leader"),
        ]

    def __str__(self):
        return f"{self.user} lidera {self.department}"

# =========================
# Disponibilidade
# =========================

class AvailabilityRoutine(models.Model):
    """Disponibilidade padrão semanal de um usuário por dia de culto."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="availability_routines")
    service_day = models.ForeignKey(ServiceDay, on_delete=models.CASCADE, related_name="routines")
    is_available = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Rotina de disponibilidade"
        verbose_name_plural = "Rotinas de disponibilidade"
        constraints = [
            models.UniqueConstraint(fields=("user", "service_day"), name="uniq_routine_user_service_day"),
        ]

    def __str__(self):
        return f"{self.user} {self.service_day} {'sim' if self.is_available else 'não'}"

class AvailabilityException(models.Model):
    """Exceção de disponibilidade numa data; sem dia de culto vale para o dia inteiro."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="availability_exceptions")
    specific_date = models.DateField(db_index=True)
    service_day = models.ForeignKey(
        ServiceDay, blank=True, null=True, on_delete=models.CASCADE, related_name="exceptions"
    )
    is_available = models.BooleanField()
    notes = models.TextField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Exceção de disponibilidade"
        verbose_name_plural = "Exceções de disponibilidade"
        ordering = ["specific_date"]
        constraints = [
            models.UniqueConstraint(
                fields=("user", "specific_date", "service_day"),
                condition=Q(service_day__isnull=False),
                name="uniq_exception_user_date_service_day",
            ),
            models.UniqueConstraint(
                fields=("user", "specific_date"),
                condition=Q(service_day__isnull=True),
                name="uniq_exception_user_date_whole_day",
            ),
        ]
        indexes = [
            models.Index(fields=["specific_date", "user"], name="exception_date_user_idx"),
        ]

    def __str__(self):
        scope = self.service_day or "dia inteiro"
        return f"{self.user} {self.specific_date} ({scope}) {'sim' if self.is_available else 'não'}"

# =========================
# Escala
# =========================

class RosterEntry(models.Model):
    """Escala de um membro numa função, data e culto."""
    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name="roster_entries")
    function = models.ForeignKey(DepartmentFunction, on_delete=models.CASCADE, related_name="roster_entries")
    member = models.ForeignKey(DepartmentMember, on_delete=models.CASCADE, related_name="roster_entries")
    service_day = models.ForeignKey(ServiceDay, on_delete=models.PROTECT, related_name="roster_entries")
    schedule_date = models.DateField(db_index=True)
    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = "Escala"
        verbose_name_plural = "Escalas"
        ordering = ["schedule_date", "service_day__start_time"]
        constraints = [
            models.UniqueConstraint(
                fields=("department", "function", "schedule_date", "service_day"),
                name="uniq_roster_slot",
            ),
        ]
        indexes = [
            models.Index(fields=["schedule_date", "service_day"], name="roster_date_service_idx"),
            models.Index(fields=["department", "schedule_date"], name="roster_dept_date_idx"),
        ]

    def __str__(self):
        return f"{self.schedule_date} {self.service_day.name} {self.function.name} -> {self.member.user}"

# =========================
# Auditoria
# =========================

class AuditLog(models.Model):
    """Registra ações de criação, atualização e exclusão em outros modelos."""
    action = models.CharField(max_length=50, db_index=True)
    table = models.CharField(max_length=50, db_index=True)
    record_id = models.CharField(max_length=50)
    before = models.JSONField(blank=True, null=True)
    after = models.JSONField(blank=True, null=True)
    author = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    ip_address = models.GenericIPAddressField(blank=True, null=True)

    class Meta:
        verbose_name = "Auditoria"
        verbose_name_plural = "Auditorias"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["table", "created_at"], name="audit_table_created_idx"),
            models.Index(fields=["action", "created_at"], name="audit_action_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.created_at:%Y-%m-%d %H:%M:%S} | {self.table}:{self.record_id} | {self.action}"
