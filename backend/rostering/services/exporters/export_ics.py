from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from django.contrib.auth.models import User
from django.utils.timezone import (
    get_current_timezone,
    get_current_timezone_name,
    localdate,
    make_aware,
    now as tz_now,
)
from icalendar import Calendar, Event, vCalAddress, vText

from rostering.domain.repositories import RosterRepository
from rostering.services.calendar import service_start_time
from rostering.utils import _get_setting

def export_user_ics(user: User, today: Optional[date] = None) -> bytes:
    """Exporta as próximas escalas do usuário para um arquivo ICS.

    Args:
        user (User): O voluntário.
        today (Optional[date], optional): Início do período. Defaults to hoje.

    Returns:
        bytes: O conteúdo do arquivo ICS gerado.
    """
    cal = Calendar()
    cal.add("prodid", "-//Escala de Voluntários//")
    cal.add("version", "2.0")
    cal.add("X-WR-CALNAME", "Minhas escalas")
    cal.add("X-WR-TIMEZONE", get_current_timezone_name())

    tz = get_current_timezone()
    duration_min = int(_get_setting("ICS_EVENT_DURATION_MINUTES", 120))
    loc = _get_setting("CALENDAR_LOCATION", None)
    now = tz_now()

    entries = RosterRepository.upcoming_for_user(user, today or localdate())
    for e in entries:
        ev = Event()

        start = service_start_time(e.service_day)
        dtstart = make_aware(datetime.combine(e.schedule_date, start), tz)
        dtend = dtstart + timedelta(minutes=duration_min)

        ev.add("uid", f"roster-{e.id}@volunteer-roster.local")
        ev.add("dtstamp", now)
        ev.add("dtstart", dtstart)
        ev.add("dtend", dtend)
        ev.add("categories", [e.department.name])
        ev.add("summary", f"{e.department.name}: {e.function.name} ({e.service_day.name})")

        desc_lines = [
            f"Departamento: {e.department.name}",
            f"Função: {e.function.name}",
            f"Culto: {e.service_day.name}",
            f"Início: {e.schedule_date.strftime('%d/%m/%Y')} às {start.strftime('%H:%M')}",
        ]
        ev.add("description", "\n".join(desc_lines))

        if loc:
            ev.add("location", loc)

        email = user.email or getattr(getattr(user, "profile", None), "email", None)
        if email:
            attendee = vCalAddress(f"MAILTO:{email}")
            attendee.params["cn"] = vText(user.get_full_name() or user.get_username())
            attendee.params["role"] = vText("REQ-PARTICIPANT")
            ev.add("attendee", attendee, encode=0)

        cal.add_component(ev)

    return cal.to_ical()
