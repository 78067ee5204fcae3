from __future__ import annotations

from typing import List, Optional

from rest_framework import viewsets
from rest_framework.exceptions import ValidationError

from rostering.domain.errors import Unauthorized
from rostering.domain.models import (
    AvailabilityException,
    AvailabilityRoutine,
    Department,
    DepartmentFunction,
    DepartmentLeader,
    DepartmentMember,
    MemberFunction,
    Organization,
    Profile,
    RosterEntry,
    ServiceDay,
)
from rostering.domain.repositories import MemberRepository, RosterRepository
from rostering.services.roster import ensure_can_manage

from .serializers import (
    AvailabilityExceptionSerializer,
    AvailabilityRoutineSerializer,
    DepartmentFunctionSerializer,
    DepartmentLeaderSerializer,
    DepartmentMemberSerializer,
    DepartmentSerializer,
    MemberFunctionSerializer,
    OrganizationSerializer,
    ProfileSerializer,
    RosterEntrySerializer,
    ServiceDaySerializer,
)

# =========================
# Escopo por organização
# =========================

def user_organization_ids(user) -> List[int]:
    """Organizações visíveis para o usuário (a do seu perfil)."""
    return list(Profile.objects.filter(user=user).values_list("organization_id", flat=True))

def _follow(obj, path: str):
    for attr in path.split("."):
        if obj is None:
            return None
        obj = obj.get(attr) if isinstance(obj, dict) else getattr(obj, attr, None)
    return obj

class OrganizationScopedViewSet(viewsets.ModelViewSet):
    """CRUD restrito à organização do usuário.

    Leitura: qualquer usuário da organização. Escrita: líderes do departamento
    (quando o registro pertence a um) ou administradores da organização.
    """
    organization_lookup = "organization"
    department_path: Optional[str] = None
    organization_path = "organization"

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user
        if user.is_superuser:
            return qs
        return qs.filter(**{f"{self.organization_lookup}__in": user_organization_ids(user)})

    def check_write(self, target) -> None:
        user = self.request.user
        if user.is_superuser:
            return
        if self.department_path:
            department = _follow(target, self.department_path)
            if department is None:
                raise ValidationError({"department": "Departamento obrigatório."})
            ensure_can_manage(user, department)
            return
        organization = _follow(target, self.organization_path)
        if organization is None or not MemberRepository.is_org_admin(user, organization.pk):
            raise Unauthorized()

    def perform_create(self, serializer):
        self.check_write(serializer.validated_data)
        serializer.save()

    def perform_update(self, serializer):
        instance = serializer.instance
        self.check_write(instance)
        root = (self.department_path or self.organization_path).split(".")[0]
        if root in serializer.validated_data:
            # mudança de escopo: precisa de permissão também no destino
            current = {f.name: getattr(instance, f.name, None) for f in instance._meta.concrete_fields}
            self.check_write({**current, **serializer.validated_data})
        serializer.save()

    def perform_destroy(self, instance):
        self.check_write(instance)
        instance.delete()

# =========================
# ViewSets
# =========================

class OrganizationViewSet(OrganizationScopedViewSet):
    queryset = Organization.objects.all()
    serializer_class = OrganizationSerializer
    organization_lookup = "id"
    filterset_fields = ["name"]

    def check_write(self, target) -> None:
        user = self.request.user
        if user.is_superuser:
            return
        if isinstance(target, Organization) and MemberRepository.is_org_admin(user, target.pk):
            return
        raise Unauthorized()

class ProfileViewSet(OrganizationScopedViewSet):
    queryset = Profile.objects.select_related("user", "organization")
    serializer_class = ProfileSerializer
    filterset_fields = ["organization", "org_role", "user"]

class ServiceDayViewSet(OrganizationScopedViewSet):
    queryset = ServiceDay.objects.all()
    serializer_class = ServiceDaySerializer
    filterset_fields = ["organization", "weekday"]

class DepartmentViewSet(OrganizationScopedViewSet):
    queryset = Department.objects.all()
    serializer_class = DepartmentSerializer
    filterset_fields = ["organization", "parent", "priority_order"]

class DepartmentFunctionViewSet(OrganizationScopedViewSet):
    queryset = DepartmentFunction.objects.select_related("department")
    serializer_class = DepartmentFunctionSerializer
    organization_lookup = "department__organization"
    department_path = "department"
    filterset_fields = ["department"]

class DepartmentMemberViewSet(OrganizationScopedViewSet):
    queryset = DepartmentMember.objects.select_related("user", "user__profile", "department").prefetch_related("functions")
    serializer_class = DepartmentMemberSerializer
    organization_lookup = "department__organization"
    department_path = "department"
    filterset_fields = ["department", "user", "dept_role"]

class MemberFunctionViewSet(OrganizationScopedViewSet):
    queryset = MemberFunction.objects.select_related("member", "function")
    serializer_class = MemberFunctionSerializer
    organization_lookup = "member__department__organization"
    department_path = "member.department"
    filterset_fields = ["member", "function"]

class DepartmentLeaderViewSet(OrganizationScopedViewSet):
    queryset = DepartmentLeader.objects.select_related("department", "user")
    serializer_class = DepartmentLeaderSerializer
    organization_lookup = "department__organization"
    organization_path = "department.organization"
    filterset_fields = ["department", "user"]

class AvailabilityRoutineViewSet(viewsets.ReadOnlyModelViewSet):
    """Rotinas do próprio usuário. Escritas passam por availability/routine/."""
    serializer_class = AvailabilityRoutineSerializer
    filterset_fields = ["service_day", "is_available"]

    def get_queryset(self):
        return AvailabilityRoutine.objects.filter(user=self.request.user).select_related("service_day")

class AvailabilityExceptionViewSet(viewsets.ReadOnlyModelViewSet):
    """Exceções do próprio usuário. Escritas passam por availability/exception/."""
    serializer_class = AvailabilityExceptionSerializer
    filterset_fields = {
        "specific_date": ["exact", "gte", "lte"],
        "service_day": ["exact", "isnull"],
        "is_available": ["exact"],
    }

    def get_queryset(self):
        return AvailabilityException.objects.filter(user=self.request.user).select_related("service_day")

class RosterEntryViewSet(viewsets.ReadOnlyModelViewSet):
    """Escalas da organização. Escritas passam por roster/assign/ e roster/<id>/unassign/."""
    serializer_class = RosterEntrySerializer
    filterset_fields = {
        "department": ["exact"],
        "function": ["exact"],
        "service_day": ["exact"],
        "member__user": ["exact"],
        "schedule_date": ["exact", "gte", "lte"],
    }

    def get_queryset(self):
        qs = RosterRepository.with_relations().order_by("schedule_date", "service_day__start_time", "id")
        user = self.request.user
        if user.is_superuser:
            return qs
        return qs.filter(department__organization__in=user_organization_ids(user))
