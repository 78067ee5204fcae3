from __future__ import annotations

import logging
from datetime import date, timedelta
from smtplib import SMTPException
from typing import Iterable, List, Optional

from celery import shared_task
from django.conf import settings
from django.contrib.auth.models import User
from django.core.mail import send_mail
from django.utils import timezone

from rostering.domain.models import Department, RosterEntry
from rostering.domain.repositories import RosterRepository
from rostering.services.availability import deadline_status, effective_deadline_day
from rostering.services.calendar import service_start_time
from rostering.utils import _get_setting

log = logging.getLogger(__name__)

# =========================
# Helpers
# =========================

def _user_email(user: User) -> Optional[str]:
    profile = getattr(user, "profile", None)
    email = (profile.email if profile else None) or user.email
    return email.strip().lower() if email and email.strip() else None

def _distinct_valid_emails(users: Iterable[User]) -> List[str]:
    emails = {_user_email(u) for u in users}
    return sorted(e for e in emails if e)

def _parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None

# =========================
# Tasks
# =========================

@shared_task
def notify_roster_entry(entry_id: int) -> bool:
    """Lembra o voluntário de uma escala.

    Args:
        entry_id (int): ID da escala.

    Returns:
        bool: True se o e-mail foi enviado.
    """
    entry = RosterRepository.with_relations().filter(id=entry_id).first()
    if entry is None:
        log.warning("notify_roster_entry: escala %s não existe mais.", entry_id)
        return False

    email = _user_email(entry.member.user)
    if not email:
        return False

    start = service_start_time(entry.service_day)
    subject = f"Lembrete: {entry.department.name} em {entry.schedule_date:%d/%m/%Y}"
    msg = (
        f"Você está escalado(a) como {entry.function.name} no departamento {entry.department.name}.\n"
        f"Culto: {entry.service_day.name} em {entry.schedule_date:%d/%m/%Y} às {start:%H:%M}."
    )
    try:
        send_mail(subject, msg, settings.DEFAULT_FROM_EMAIL, [email], fail_silently=False)
    except (SMTPException, OSError):  # pragma: no cover
        log.exception("Falha ao enviar notify_roster_entry para %s (escala=%s).", email, entry_id)
        return False
    return True

@shared_task
def daily_reminder(today: Optional[str] = None) -> int:
    """Enfileira lembretes das escalas dos próximos REMINDER_DAYS_AHEAD dias.

    Args:
        today (Optional[str], optional): Data ISO de referência. Defaults to hoje.

    Returns:
        int: Número de lembretes enfileirados.
    """
    start = _parse_date(today) or timezone.localdate()
    end = start + timedelta(days=int(_get_setting("REMINDER_DAYS_AHEAD", 7)))

    count = 0
    entries: Iterable[RosterEntry] = RosterRepository.between(start, end)
    for e in entries:
        if not _user_email(e.member.user):
            continue
        notify_roster_entry.delay(e.id)
        count += 1

    log.info("daily_reminder: %d lembrete(s) enfileirado(s) entre %s e %s.", count, start, end)
    return count

@shared_task
def availability_deadline_reminder(today: Optional[str] = None) -> int:
    """Avisa os membros dos departamentos cujo prazo de disponibilidade vence em DEADLINE_REMINDER_DAYS dias.

    Cada membro é avisado apenas pelo departamento que define o seu prazo efetivo.

    Args:
        today (Optional[str], optional): Data ISO de referência. Defaults to hoje.

    Returns:
        int: Número de destinatários notificados.
    """
    ref = _parse_date(today) or timezone.localdate()
    days_before = int(_get_setting("DEADLINE_REMINDER_DAYS", 3))

    sent = 0
    for dept in Department.objects.select_related("organization"):
        st = deadline_status(dept, today=ref)
        if st.is_past_deadline or st.days_remaining != days_before:
            continue
        # Quem tem prazo menor em outro departamento é avisado por ele
        users = [
            u for u in User.objects.filter(department_memberships__department=dept).select_related("profile")
            if effective_deadline_day(u) == st.deadline_day
        ]
        recipients = _distinct_valid_emails(users)
        if not recipients:
            continue
        month_label = f"{st.editable_month:%m/%Y}"
        subject = f"Prazo de disponibilidade: {dept.name}"
        msg = (
            f"Faltam {st.days_remaining} dia(s) para informar sua disponibilidade de {month_label} "
            f"no departamento {dept.name} (prazo: dia {st.deadline_day})."
        )
        try:
            send_mail(subject, msg, settings.DEFAULT_FROM_EMAIL, recipients, fail_silently=False)
        except (SMTPException, OSError):  # pragma: no cover
            log.exception("Falha ao enviar lembrete de prazo do departamento %s.", dept.id)
            continue
        sent += len(recipients)

    log.info("availability_deadline_reminder: %d destinatário(s) notificado(s).", sent)
    return sent
