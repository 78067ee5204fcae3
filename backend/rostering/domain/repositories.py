from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple

from django.contrib.auth.models import User
from django.db.models import QuerySet

from rostering.domain.models import (
    AvailabilityException,
    AvailabilityRoutine,
    Department,
    DepartmentFunction,
    DepartmentLeader,
    DepartmentMember,
    DeptRole,
    OrgRole,
    Profile,
    RosterEntry,
    ServiceDay,
)
from rostering.utils import month_bounds

# ==========================================================
# Department Repository
# ==========================================================
class DepartmentRepository:
    """Repositório para operações relacionadas a Department e suas funções."""

    @classmethod
    def in_organization(cls, organization_id: int, department_id: int) -> Optional[Department]:
        """Retorna o departamento se ele pertencer à organização.

        Args:
            organization_id (int): A organização esperada.
            department_id (int): O departamento procurado.

        Returns:
            Optional[Department]: O departamento, ou None se não existir nessa organização.
        """
        return (
            Department.objects
            .filter(id=department_id, organization_id=organization_id)
            .select_related("organization")
            .first()
        )

    @classmethod
    def function_in(cls, department: Department, function_id: int) -> Optional[DepartmentFunction]:
        """Retorna a função se ela pertencer ao departamento."""
        return DepartmentFunction.objects.filter(id=function_id, department=department).first()

    @classmethod
    def for_user(cls, user: User) -> QuerySet[Department]:
        """Retorna os departamentos dos quais o usuário é membro."""
        return Department.objects.filter(members__user=user).distinct().order_by("priority_order", "name")

    @classmethod
    def higher_priority(cls, department: Department) -> QuerySet[Department]:
        """Retorna os departamentos da mesma organização com prioridade maior (priority_order menor).

        Args:
            department (Department): O departamento de referência.

        Returns:
            QuerySet[Department]: Departamentos ordenados da maior para a menor prioridade.
        """
        return (
            Department.objects
            .filter(organization_id=department.organization_id, priority_order__lt=department.priority_order)
            .order_by("priority_order", "name")
        )

    @classmethod
    def vacant_functions(cls, department: Department, d: date, service_day_id: int) -> QuerySet[DepartmentFunction]:
        """Funções do departamento ainda sem escala em (data, culto)."""
        taken = RosterEntry.objects.filter(
            department=department, schedule_date=d, service_day_id=service_day_id
        ).values("function_id")
        return DepartmentFunction.objects.filter(department=department).exclude(id__in=taken)

# ==========================================================
# Member Repository
# ==========================================================
class MemberRepository:
    """Repositório para operações relacionadas a DepartmentMember."""

    @classmethod
    def of_department(cls, department_id: int) -> QuerySet[DepartmentMember]:
        """Retorna os membros de um departamento com usuário e perfil carregados."""
        return (
            DepartmentMember.objects
            .filter(department_id=department_id)
            .select_related("user", "user__profile")
        )

    @classmethod
    def holding_function(cls, department_id: int, function_id: int) -> QuerySet[DepartmentMember]:
        """Retorna os membros do departamento que exercem a função.

        Args:
            department_id (int): O departamento.
            function_id (int): A função exigida.

        Returns:
            QuerySet[DepartmentMember]: Os membros que possuem a função via MemberFunction.
        """
        return (
            cls.of_department(department_id)
            .filter(member_functions__function_id=function_id)
            .distinct()
        )

    @classmethod
    def in_department(cls, department: Department, member_id: int) -> Optional[DepartmentMember]:
        return cls.of_department(department.id).filter(id=member_id).first()

    @classmethod
    def is_leader(cls, user: User, department: Department) -> bool:
        """Verifica se o usuário lidera o departamento (líder designado ou dept_role=leader)."""
        if DepartmentLeader.objects.filter(department=department, user=user).exists():
            return True
        return DepartmentMember.objects.filter(
            department=department, user=user, dept_role=DeptRole.LEADER
        ).exists()

    @classmethod
    def is_org_admin(cls, user: User, organization_id: int) -> bool:
        return Profile.objects.filter(
            user=user, organization_id=organization_id, org_role=OrgRole.ADMIN
        ).exists()

# ==========================================================
# ServiceDay Repository
# ==========================================================
class ServiceDayRepository:
    """Repositório para operações relacionadas a ServiceDay."""

    @classmethod
    def for_organization(cls, organization_id: int) -> QuerySet[ServiceDay]:
        return ServiceDay.objects.filter(organization_id=organization_id).order_by("weekday", "start_time", "name")

    @classmethod
    def on_weekday(cls, organization_id: int, weekday: int) -> List[ServiceDay]:
        """Retorna os cultos da organização no dia da semana (0=domingo)."""
        return list(cls.for_organization(organization_id).filter(weekday=weekday))

    @classmethod
    def in_organization(cls, organization_id: int, service_day_id: int) -> Optional[ServiceDay]:
        return ServiceDay.objects.filter(id=service_day_id, organization_id=organization_id).first()

# ==========================================================
# Availability Repository
# ==========================================================
class AvailabilityRepository:
    """Repositório para rotinas e exceções de disponibilidade."""

    @classmethod
    def routine_for(cls, user_id: int, service_day_id: int) -> Optional[AvailabilityRoutine]:
        return AvailabilityRoutine.objects.filter(user_id=user_id, service_day_id=service_day_id).first()

    @classmethod
    def exception_for(cls, user_id: int, d: date, service_day_id: Optional[int]) -> Optional[AvailabilityException]:
        """Retorna a exceção da data; service_day_id=None busca a exceção do dia inteiro."""
        qs = AvailabilityException.objects.filter(user_id=user_id, specific_date=d)
        if service_day_id is None:
            qs = qs.filter(service_day__isnull=True)
        else:
            qs = qs.filter(service_day_id=service_day_id)
        return qs.first()

    @classmethod
    def exceptions_on(cls, d: date, user_ids: Iterable[int]) -> Dict[Tuple[int, Optional[int]], bool]:
        """Mapa (user_id, service_day_id|None) -> is_available das exceções da data.

        Args:
            d (date): A data consultada.
            user_ids (Iterable[int]): Os usuários considerados.

        Returns:
            Dict[Tuple[int, Optional[int]], bool]: As exceções indexadas pela chave única.
        """
        out: Dict[Tuple[int, Optional[int]], bool] = {}
        qs = AvailabilityException.objects.filter(specific_date=d, user_id__in=list(user_ids))
        for uid, sid, avail in qs.values_list("user_id", "service_day_id", "is_available"):
            out[(int(uid), sid)] = bool(avail)
        return out

    @classmethod
    def routines_for(cls, service_day_ids: Iterable[int], user_ids: Iterable[int]) -> Dict[Tuple[int, int], bool]:
        """Mapa (user_id, service_day_id) -> is_available das rotinas."""
        out: Dict[Tuple[int, int], bool] = {}
        qs = AvailabilityRoutine.objects.filter(
            service_day_id__in=list(service_day_ids), user_id__in=list(user_ids)
        )
        for uid, sid, avail in qs.values_list("user_id", "service_day_id", "is_available"):
            out[(int(uid), int(sid))] = bool(avail)
        return out

# ==========================================================
# Roster Repository
# ==========================================================
class RosterRepository:
    """Repositório para operações relacionadas a RosterEntry."""

    @classmethod
    def with_relations(cls) -> QuerySet[RosterEntry]:
        return RosterEntry.objects.select_related(
            "department", "function", "service_day", "member", "member__user", "member__user__profile"
        )

    @classmethod
    def occupied(cls, department_id: int, function_id: int, d: date, service_day_id: int) -> bool:
        return RosterEntry.objects.filter(
            department_id=department_id,
            function_id=function_id,
            schedule_date=d,
            service_day_id=service_day_id,
        ).exists()

    @classmethod
    def busy_user_ids(cls, organization_id: int, d: date, service_day_id: Optional[int] = None) -> Set[int]:
        """Usuários já escalados em qualquer departamento da organização no mesmo culto.

        Args:
            organization_id (int): A organização.
            d (date): A data do culto.
            service_day_id (Optional[int], optional): O culto. Se None, qualquer escala na data conta.

        Returns:
            Set[int]: IDs dos usuários ocupados.
        """
        qs = RosterEntry.objects.filter(department__organization_id=organization_id, schedule_date=d)
        if service_day_id is not None:
            qs = qs.filter(service_day_id=service_day_id)
        return {int(uid) for uid in qs.values_list("member__user_id", flat=True)}

    @classmethod
    def upcoming_for_user(cls, user: User, today: date, limit: Optional[int] = None) -> List[RosterEntry]:
        """Próximas escalas do usuário (a partir de hoje), em ordem cronológica."""
        qs = (
            cls.with_relations()
            .filter(member__user=user, schedule_date__gte=today)
            .order_by("schedule_date", "service_day__start_time", "department__name")
        )
        if limit:
            qs = qs[:limit]
        return list(qs)

    @classmethod
    def slot_team(cls, entry: RosterEntry) -> List[RosterEntry]:
        """Equipe do mesmo departamento escalada na mesma data e culto."""
        qs = cls.with_relations().filter(
            department_id=entry.department_id,
            schedule_date=entry.schedule_date,
            service_day_id=entry.service_day_id,
        )
        return sorted(qs, key=lambda e: e.function.name.casefold())

    @classmethod
    def month_for_department(cls, department_id: int, year: int, month: int) -> QuerySet[RosterEntry]:
        first, last = month_bounds(year, month)
        return (
            cls.with_relations()
            .filter(department_id=department_id, schedule_date__gte=first, schedule_date__lte=last)
            .order_by("schedule_date", "service_day__start_time", "function__name")
        )

    @classmethod
    def by_slot(cls, entries: Iterable[RosterEntry]) -> Dict[Tuple[date, int], List[RosterEntry]]:
        """Agrupa escalas por (data, culto)."""
        out: Dict[Tuple[date, int], List[RosterEntry]] = defaultdict(list)
        for e in entries:
            out[(e.schedule_date, e.service_day_id)].append(e)
        return out

    @classmethod
    def between(cls, start: date, end: date) -> QuerySet[RosterEntry]:
        return cls.with_relations().filter(schedule_date__gte=start, schedule_date__lte=end)

