from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from django.contrib.auth.models import User
from django.db import IntegrityError, transaction
from django.utils import timezone

from rostering.domain.errors import NotFound, SlotOccupied, Unauthorized, translate_io_errors
from rostering.domain.models import Department, RosterEntry
from rostering.domain.repositories import (
    DepartmentRepository,
    MemberRepository,
    RosterRepository,
    ServiceDayRepository,
)
from rostering.services.calendar import ensure_occurs_on

log = logging.getLogger(__name__)

# =========================
# Permissões
# =========================

def can_manage_department(user: Optional[User], department: Department) -> bool:
    """Líderes do departamento e administradores da organização podem montar a escala."""
    if user is None or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    if MemberRepository.is_org_admin(user, department.organization_id):
        return True
    return MemberRepository.is_leader(user, department)

def ensure_can_manage(user: Optional[User], department: Department) -> None:
    if not can_manage_department(user, department):
        raise Unauthorized()

# =========================
# Operações principais
# =========================

@translate_io_errors
def assign(
    department_id: int,
    function_id: int,
    member_id: int,
    service_day_id: int,
    schedule_date: date,
    user: Optional[User] = None,
) -> RosterEntry:
    """Escala um membro numa função para (data, culto).

    A verificação prévia é otimista: se outro líder preencher a vaga ao mesmo
    tempo, a constraint única dispara na gravação e o conflito vira SlotOccupied.

    Args:
        department_id (int): O departamento.
        function_id (int): A função do departamento.
        member_id (int): O DepartmentMember a escalar.
        service_day_id (int): O culto.
        schedule_date (date): A data.
        user (Optional[User], optional): Autor da escala. Defaults to None.

    Raises:
        NotFound: Se alguma referência não pertence ao departamento/organização.
        ValidationError: Se o culto não ocorre no dia da semana da data.
        SlotOccupied: Se a vaga já está preenchida.

    Returns:
        RosterEntry: A escala criada.
    """
    department = Department.objects.filter(id=department_id).first()
    if department is None:
        raise NotFound("Departamento não encontrado.")
    function = DepartmentRepository.function_in(department, function_id)
    if function is None:
        raise NotFound("Função não encontrada neste departamento.")
    member = MemberRepository.in_department(department, member_id)
    if member is None:
        raise NotFound("Membro não encontrado neste departamento.")
    service_day = ServiceDayRepository.in_organization(department.organization_id, service_day_id)
    if service_day is None:
        raise NotFound("Culto não encontrado nesta organização.")
    ensure_occurs_on(service_day, schedule_date)

    if RosterRepository.occupied(department.id, function.id, schedule_date, service_day.id):
        raise SlotOccupied()

    try:
        with transaction.atomic():
            entry = RosterEntry.objects.create(
                department=department,
                function=function,
                member=member,
                service_day=service_day,
                schedule_date=schedule_date,
                created_by=user if user is not None and user.is_authenticated else None,
            )
    except IntegrityError as exc:
        log.info(
            "Conflito de escala na gravação: dept=%s func=%s data=%s culto=%s",
            department.id, function.id, schedule_date, service_day.id,
        )
        raise SlotOccupied() from exc

    log.info(
        "Escala criada: %s em %s/%s (%s %s)",
        member.user_id, department.name, function.name, schedule_date, service_day.name,
    )
    return entry

@translate_io_errors
def unassign(roster_entry_id: int) -> None:
    """Remove a escala. Quem chama deve consultar a elegibilidade de novo."""
    deleted, _ = RosterEntry.objects.filter(id=roster_entry_id).delete()
    if not deleted:
        raise NotFound("Escala não encontrada.")
    log.info("Escala removida: %s", roster_entry_id)

# =========================
# Consultas
# =========================

@translate_io_errors
def upcoming_for_user(user: User, today: Optional[date] = None, limit: Optional[int] = None) -> List[RosterEntry]:
    """Próximas escalas do usuário."""
    return RosterRepository.upcoming_for_user(user, today or timezone.localdate(), limit=limit)

@translate_io_errors
def slot_team(roster_entry_id: int, user: User) -> List[RosterEntry]:
    """Equipe escalada no mesmo departamento, data e culto de uma escala.

    Visível para quem está na equipe, líderes do departamento e administradores.
    """
    entry = RosterRepository.with_relations().filter(id=roster_entry_id).first()
    if entry is None:
        raise NotFound("Escala não encontrada.")
    team = RosterRepository.slot_team(entry)
    if any(e.member.user_id == user.pk for e in team):
        return team
    ensure_can_manage(user, entry.department)
    return team
