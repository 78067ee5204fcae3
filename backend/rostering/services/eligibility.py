from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Set

from rostering.domain.errors import NotFound, translate_io_errors
from rostering.domain.models import Department, DepartmentFunction, DepartmentMember, ServiceDay
from rostering.domain.repositories import (
    DepartmentRepository,
    MemberRepository,
    RosterRepository,
    ServiceDayRepository,
)
from rostering.services.availability import AvailabilityMatrix
from rostering.services.calendar import ensure_occurs_on
from rostering.utils import _get_setting, sunday_weekday

log = logging.getLogger(__name__)

# ===== Data Classes =====

@dataclass(frozen=True)
class EligibleMember:
    """Membro apto a ser escalado numa função, já com os nomes normalizados."""
    user_id: int
    full_name: Optional[str]
    email: Optional[str]
    avatar_url: Optional[str]
    function_id: int
    function_name: str
    is_available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

def _profile_fields(member: DepartmentMember) -> Dict[str, Optional[str]]:
    user = member.user
    profile = getattr(user, "profile", None)
    full_name = (profile.full_name if profile else None) or user.get_full_name() or None
    email = (profile.email if profile else None) or user.email or None
    return {
        "full_name": full_name,
        "email": email,
        "avatar_url": profile.avatar_url if profile else None,
    }

def _sort_key(m: EligibleMember):
    return ((m.full_name or "").casefold(), m.user_id)

# ===== Filtro de prioridade =====

class PriorityReservation:
    """Membros reservados por departamentos de maior prioridade no mesmo culto.

    Um membro fica reservado quando pertence a um departamento mais prioritário
    da organização que ainda tem, nesse culto, uma função vaga que ele exerce e
    para a qual está disponível.
    """

    def __init__(self, department: Department, d: date, service_day: ServiceDay):
        self.department = department
        self.date = d
        self.service_day = service_day

    def reserved_user_ids(self, candidate_ids: Set[int], busy_ids: Set[int]) -> Set[int]:
        pending = set(candidate_ids) - busy_ids
        reserved: Set[int] = set()
        if not pending:
            return reserved
        matrix = AvailabilityMatrix(self.date, pending, [self.service_day])
        for dept in DepartmentRepository.higher_priority(self.department):
            vacant_ids = list(
                DepartmentRepository.vacant_functions(dept, self.date, self.service_day.id)
                .values_list("id", flat=True)
            )
            if not vacant_ids:
                continue
            holders = (
                DepartmentMember.objects
                .filter(
                    department=dept,
                    user_id__in=pending,
                    member_functions__function_id__in=vacant_ids,
                )
                .values_list("user_id", flat=True)
                .distinct()
            )
            for uid in holders:
                if matrix.is_available(int(uid), self.service_day):
                    reserved.add(int(uid))
            pending -= reserved
            if not pending:
                break
        return reserved

# ===== Consulta principal =====

def _resolve_scope(organization_id: int, department_id: int, function_id: int) -> tuple[Department, DepartmentFunction]:
    department = DepartmentRepository.in_organization(organization_id, department_id)
    if department is None:
        raise NotFound("Departamento não encontrado nesta organização.")
    function = DepartmentRepository.function_in(department, function_id)
    if function is None:
        raise NotFound("Função não encontrada neste departamento.")
    return department, function

@translate_io_errors
def find_eligible_members(
    organization_id: int,
    department_id: int,
    function_id: int,
    d: date,
    service_day_id: Optional[int] = None,
) -> List[EligibleMember]:
    """Lista os membros que podem ser escalados na função, data e (opcionalmente) culto.

    Filtros, todos conjuntivos: membro do departamento, exerce a função,
    disponível, sem escala conflitante em qualquer departamento da organização
    e não reservado por departamento de maior prioridade.

    Args:
        organization_id (int): A organização.
        department_id (int): O departamento que está montando a escala.
        function_id (int): A função a preencher.
        d (date): A data.
        service_day_id (Optional[int], optional): O culto da data. Se None, considera todos os cultos do dia.

    Raises:
        NotFound: Se departamento, função ou culto não pertencem à organização.
        ValidationError: Se o culto não ocorre no dia da semana da data.

    Returns:
        List[EligibleMember]: Membros aptos, ordenados por nome.
    """
    department, function = _resolve_scope(organization_id, department_id, function_id)

    if service_day_id is not None:
        service_day = ServiceDayRepository.in_organization(organization_id, service_day_id)
        if service_day is None:
            raise NotFound("Culto não encontrado nesta organização.")
        ensure_occurs_on(service_day, d)
        service_days = [service_day]
    else:
        service_day = None
        service_days = ServiceDayRepository.on_weekday(organization_id, sunday_weekday(d))

    candidates = list(MemberRepository.holding_function(department.id, function.id))
    if not candidates:
        return []

    candidate_ids = {int(m.user_id) for m in candidates}
    busy_ids = RosterRepository.busy_user_ids(organization_id, d, service_day_id)
    matrix = AvailabilityMatrix(d, candidate_ids, service_days)

    reserved: Set[int] = set()
    if service_day is not None and _get_setting("ENFORCE_DEPARTMENT_PRIORITY", True):
        reserved = PriorityReservation(department, d, service_day).reserved_user_ids(candidate_ids, busy_ids)

    out: List[EligibleMember] = []
    for member in candidates:
        uid = int(member.user_id)
        if uid in busy_ids or uid in reserved:
            continue
        if not matrix.is_available_for_all(uid):
            continue
        out.append(EligibleMember(
            user_id=uid,
            function_id=function.id,
            function_name=function.name,
            is_available=True,
            **_profile_fields(member),
        ))
    out.sort(key=_sort_key)
    log.debug(
        "Elegíveis dept=%s func=%s data=%s culto=%s: %d de %d (ocupados=%d, reservados=%d)",
        department.id, function.id, d, service_day_id, len(out), len(candidates), len(busy_ids), len(reserved),
    )
    return out
