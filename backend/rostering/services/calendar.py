from __future__ import annotations

from datetime import date, time
import calendar as pycal
from typing import Dict, List, Tuple

from django.conf import settings
from rest_framework.exceptions import ValidationError

from rostering.domain.models import ServiceDay
from rostering.domain.repositories import ServiceDayRepository
from rostering.utils import sunday_weekday

# ========= Utilidades tradicionais =========

def _parse_time(s: str | time) -> time:
    """Padroniza a entrada como time.

    Args:
        s (str | time): String no formato "HH:MM" ou objeto time.

    Returns:
        time: Objeto time correspondente.
    """
    if isinstance(s, time):
        return s
    hh, mm = str(s).split(":")
    return time(hour=int(hh), minute=int(mm))

def service_start_time(service_day: ServiceDay) -> time:
    """Horário do culto, ou o horário padrão configurado."""
    return service_day.start_time or _parse_time(settings.DEFAULT_SERVICE_TIME)

def weekdays_in_month(year: int, month: int, weekday: int) -> List[date]:
    """Lista as datas do mês que caem no dia da semana informado (0=domingo).

    Args:
        year (int): Ano do mês a ser verificado.
        month (int): Mês a ser verificado.
        weekday (int): Dia da semana com domingo=0.

    Returns:
        List[date]: Datas do mês nesse dia da semana.
    """
    cal = pycal.Calendar(firstweekday=0)
    return [
        d for d in cal.itermonthdates(year, month)
        if d.month == month and sunday_weekday(d) == weekday
    ]

def ensure_occurs_on(service_day: ServiceDay, d: date) -> None:
    """Levanta ValidationError se o culto não acontece no dia da semana da data."""
    if service_day.weekday != sunday_weekday(d):
        raise ValidationError({"service_day": f"O culto \"{service_day.name}\" não ocorre em {d:%d/%m/%Y}."})

# ========= Operações principais =========

def service_occurrences(organization_id: int, year: int, month: int) -> List[Tuple[date, ServiceDay]]:
    """Expande os dias de culto da organização em ocorrências concretas no mês.

    Args:
        organization_id (int): A organização.
        year (int): Ano.
        month (int): Mês.

    Returns:
        List[Tuple[date, ServiceDay]]: Pares (data, culto) em ordem cronológica.
    """
    by_weekday: Dict[int, List[ServiceDay]] = {}
    for sd in ServiceDayRepository.for_organization(organization_id):
        by_weekday.setdefault(sd.weekday, []).append(sd)

    out: List[Tuple[date, ServiceDay]] = []
    for weekday, days in by_weekday.items():
        for d in weekdays_in_month(year, month, weekday):
            out.extend((d, sd) for sd in days)
    out.sort(key=lambda pair: (pair[0], service_start_time(pair[1]), pair[1].name))
    return out
