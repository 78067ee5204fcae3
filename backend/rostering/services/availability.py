from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
import calendar as pycal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from django.contrib.auth.models import User
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from rostering.domain.errors import DeadlineExceeded, NotFound, translate_io_errors
from rostering.domain.models import AvailabilityException, AvailabilityRoutine, Department, ServiceDay
from rostering.domain.repositories import AvailabilityRepository, DepartmentRepository
from rostering.services.calendar import service_occurrences
from rostering.utils import _get_setting, add_months, month_bounds

log = logging.getLogger(__name__)

SOURCE_SERVICE_EXCEPTION = "service_exception"
SOURCE_DAY_EXCEPTION = "day_exception"
SOURCE_ROUTINE = "routine"
SOURCE_DEFAULT = "default"

# ==========================================================
# Decisão (pura, após as três leituras)
# ==========================================================

def _decide(
    service_exception: Optional[bool],
    day_exception: Optional[bool],
    routine: Optional[bool],
) -> Tuple[bool, str]:
    if service_exception is not None:
        return service_exception, SOURCE_SERVICE_EXCEPTION
    if day_exception is not None:
        return day_exception, SOURCE_DAY_EXCEPTION
    if routine is not None:
        return routine, SOURCE_ROUTINE
    return True, SOURCE_DEFAULT

def decide_availability(
    service_exception: Optional[bool],
    day_exception: Optional[bool],
    routine: Optional[bool],
) -> bool:
    """Aplica a precedência exceção do culto > exceção do dia > rotina > disponível.

    Args:
        service_exception (Optional[bool]): Exceção da data para o culto, se houver.
        day_exception (Optional[bool]): Exceção da data para o dia inteiro, se houver.
        routine (Optional[bool]): Rotina semanal do culto, se houver.

    Returns:
        bool: Se o usuário está disponível.
    """
    return _decide(service_exception, day_exception, routine)[0]

def _flag(record) -> Optional[bool]:
    return None if record is None else bool(record.is_available)

@translate_io_errors
def resolve_availability_with_source(user_id: int, d: date, service_day: ServiceDay) -> Tuple[bool, str]:
    """Resolve a disponibilidade e informa qual camada decidiu."""
    service_exc = AvailabilityRepository.exception_for(user_id, d, service_day.id)
    day_exc = AvailabilityRepository.exception_for(user_id, d, None)
    routine = AvailabilityRepository.routine_for(user_id, service_day.id)
    return _decide(_flag(service_exc), _flag(day_exc), _flag(routine))

def resolve_availability(user_id: int, d: date, service_day: ServiceDay) -> bool:
    """Resolve se o usuário pode ser escalado no culto da data.

    Args:
        user_id (int): O usuário.
        d (date): A data do culto.
        service_day (ServiceDay): O culto recorrente que ocorre na data.

    Returns:
        bool: True se disponível.
    """
    return resolve_availability_with_source(user_id, d, service_day)[0]

class AvailabilityMatrix:
    """Resolve a disponibilidade de vários usuários numa data com duas consultas."""

    def __init__(self, d: date, user_ids: Iterable[int], service_days: Sequence[ServiceDay]):
        self.date = d
        self.user_ids = list(user_ids)
        self.service_days = list(service_days)
        self._exceptions = AvailabilityRepository.exceptions_on(d, self.user_ids)
        self._routines = AvailabilityRepository.routines_for([sd.id for sd in self.service_days], self.user_ids)

    def is_available(self, user_id: int, service_day: Optional[ServiceDay]) -> bool:
        """Disponibilidade para um culto; service_day=None considera apenas a exceção do dia."""
        if service_day is None:
            return decide_availability(None, self._exceptions.get((user_id, None)), None)
        return decide_availability(
            self._exceptions.get((user_id, service_day.id)),
            self._exceptions.get((user_id, None)),
            self._routines.get((user_id, service_day.id)),
        )

    def is_available_for_all(self, user_id: int) -> bool:
        """Disponível em todos os cultos da data (ou no dia, se não houver culto)."""
        if not self.service_days:
            return self.is_available(user_id, None)
        return all(self.is_available(user_id, sd) for sd in self.service_days)

# ==========================================================
# Prazo (mês editável)
# ==========================================================

def default_deadline_day() -> int:
    return int(_get_setting("DEFAULT_AVAILABILITY_DEADLINE_DAY", 20))

def resolve_editable_month(today: date, deadline_day: Optional[int] = None) -> date:
    """Primeiro dia do mês cuja disponibilidade pode ser editada hoje.

    Até o dia do prazo (inclusive) edita-se o próximo mês; depois dele o
    próximo mês já está sendo fechado e edita-se o mês seguinte.

    Args:
        today (date): A data de referência.
        deadline_day (Optional[int], optional): Dia do prazo. Defaults to DEFAULT_AVAILABILITY_DEADLINE_DAY.

    Returns:
        date: O primeiro dia do mês editável.
    """
    if deadline_day is None:
        deadline_day = default_deadline_day()
    months_ahead = 2 if today.day > deadline_day else 1
    return add_months(today, months_ahead)

def effective_deadline_day(user: User) -> int:
    """Dia de prazo que vale para o usuário: o menor entre seus departamentos."""
    days = list(DepartmentRepository.for_user(user).values_list("availability_deadline_day", flat=True))
    if not days:
        return default_deadline_day()
    return min(int(d) for d in days)

def ensure_editable(user: User, d: date, today: Optional[date] = None) -> None:
    """Levanta DeadlineExceeded se a data for anterior ao mês editável do usuário."""
    today = today or timezone.localdate()
    editable_from = resolve_editable_month(today, effective_deadline_day(user))
    if d < editable_from:
        log.info(
            "Escrita de disponibilidade recusada: user=%s data=%s editável a partir de %s",
            user.pk, d, editable_from,
        )
        raise DeadlineExceeded(editable_from)

@dataclass(frozen=True)
class DeadlineStatus:
    """Situação do prazo de disponibilidade de um departamento."""
    deadline_day: int
    is_past_deadline: bool
    days_remaining: int
    editable_month: date

    @property
    def can_edit(self) -> bool:
        return not self.is_past_deadline

    def to_dict(self) -> Dict[str, Any]:
        return {
            "can_edit": self.can_edit,
            "deadline_day": self.deadline_day,
            "days_remaining": self.days_remaining,
            "is_past_deadline": self.is_past_deadline,
            "editable_month": self.editable_month.isoformat(),
        }

def _deadline_date(year: int, month: int, day: int) -> date:
    last = pycal.monthrange(year, month)[1]
    return date(year, month, min(day, last))

def deadline_status(
    department: Department,
    today: Optional[date] = None,
    user: Optional[User] = None,
) -> DeadlineStatus:
    """Calcula a situação do prazo do departamento na data.

    Para um membro do departamento vale o prazo efetivo dele, o mesmo usado
    por ensure_editable; um prazo menor em outro departamento prevalece.

    Args:
        department (Department): O departamento.
        today (Optional[date], optional): Data de referência. Defaults to hoje.
        user (Optional[User], optional): Quem consulta. Defaults to None.

    Returns:
        DeadlineStatus: Prazo, dias restantes e mês editável.
    """
    today = today or timezone.localdate()
    deadline_day = int(department.availability_deadline_day or default_deadline_day())
    if user is not None and department.members.filter(user=user).exists():
        deadline_day = effective_deadline_day(user)
    is_past = today.day > deadline_day
    if is_past:
        nxt = add_months(today, 1)
        target = _deadline_date(nxt.year, nxt.month, deadline_day)
    else:
        target = _deadline_date(today.year, today.month, deadline_day)
    return DeadlineStatus(
        deadline_day=deadline_day,
        is_past_deadline=is_past,
        days_remaining=max((target - today).days, 0),
        editable_month=resolve_editable_month(today, deadline_day),
    )

# ==========================================================
# Escritas (upsert idempotente)
# ==========================================================

@translate_io_errors
def set_routine(user: User, service_day: ServiceDay, is_available: bool) -> AvailabilityRoutine:
    """Grava a rotina (user, culto); uma segunda escrita substitui o valor anterior."""
    routine, _ = AvailabilityRoutine.objects.update_or_create(
        user=user,
        service_day=service_day,
        defaults={"is_available": bool(is_available)},
    )
    return routine

@translate_io_errors
def set_exception(
    user: User,
    specific_date: date,
    service_day: Optional[ServiceDay],
    is_available: bool,
    notes: Optional[str] = None,
    today: Optional[date] = None,
) -> AvailabilityException:
    """Grava a exceção (user, data, culto|dia inteiro) respeitando o prazo.

    Args:
        user (User): O dono da disponibilidade.
        specific_date (date): A data da exceção.
        service_day (Optional[ServiceDay]): O culto; None vale para o dia inteiro.
        is_available (bool): O valor da exceção.
        notes (Optional[str], optional): Observação livre. Defaults to None.
        today (Optional[date], optional): Data de referência do prazo. Defaults to hoje.

    Raises:
        DeadlineExceeded: Se a data for anterior ao mês editável.

    Returns:
        AvailabilityException: O registro gravado.
    """
    ensure_editable(user, specific_date, today=today)
    exc, _ = AvailabilityException.objects.update_or_create(
        user=user,
        specific_date=specific_date,
        service_day=service_day,
        defaults={"is_available": bool(is_available), "notes": notes},
    )
    return exc

@translate_io_errors
def clear_exception(
    user: User,
    specific_date: date,
    service_day: Optional[ServiceDay],
    today: Optional[date] = None,
) -> None:
    """Remove a exceção, voltando a valer a rotina."""
    ensure_editable(user, specific_date, today=today)
    exc = AvailabilityRepository.exception_for(user.pk, specific_date, service_day.id if service_day else None)
    if exc is None:
        raise NotFound("Exceção de disponibilidade não encontrada.")
    exc.delete()

@translate_io_errors
@transaction.atomic
def save_month_availability(
    user: User,
    year: int,
    month: int,
    statuses: Mapping[date, bool],
    today: Optional[date] = None,
) -> int:
    """Grava em lote exceções de dia inteiro para as datas de um mês.

    Args:
        user (User): O dono da disponibilidade.
        year (int): Ano.
        month (int): Mês.
        statuses (Mapping[date, bool]): Disponibilidade por data.
        today (Optional[date], optional): Data de referência do prazo. Defaults to hoje.

    Returns:
        int: Número de datas gravadas.
    """
    first, last = month_bounds(year, month)
    ensure_editable(user, first, today=today)
    count = 0
    for d, available in sorted(statuses.items()):
        if not (first <= d <= last):
            raise ValidationError(f"A data {d.isoformat()} não pertence a {month:02d}/{year}.")
        AvailabilityException.objects.update_or_create(
            user=user,
            specific_date=d,
            service_day=None,
            defaults={"is_available": bool(available)},
        )
        count += 1
    log.info("Disponibilidade mensal gravada: user=%s %04d-%02d (%d datas)", user.pk, year, month, count)
    return count

# ==========================================================
# Consultas
# ==========================================================

@translate_io_errors
def month_overview(user: User, organization_id: int, year: int, month: int) -> List[Dict[str, Any]]:
    """Disponibilidade resolvida do usuário em cada culto do mês."""
    occurrences = service_occurrences(organization_id, year, month)
    out: List[Dict[str, Any]] = []
    for d, sd in occurrences:
        available, source = resolve_availability_with_source(user.pk, d, sd)
        out.append({
            "date": d.isoformat(),
            "service_day_id": sd.id,
            "service_day_name": sd.name,
            "is_available": available,
            "source": source,
        })
    return out
