import pytest
from datetime import date
from io import BytesIO
from django.core import mail
from django.core.management import call_command
from django.test import override_settings
from icalendar import Calendar
from openpyxl import load_workbook

from rostering.apps import rostering_settings_check
from rostering.models import Department, DepartmentMember, Organization, RosterEntry, ServiceDay
from rostering.services.exporters.export_ics import export_user_ics
from rostering.services.exporters.export_xlsx import export_department_month_xlsx
from rostering.tasks import availability_deadline_reminder, daily_reminder

def _book(som, mesa, member, service_day, d):
    return RosterEntry.objects.create(
        department=som, function=mesa, member=member, service_day=service_day, schedule_date=d
    )

@pytest.mark.django_db
def test_daily_reminder_sends_for_entries_in_window(make_user, som, mesa, sunday_pm, add_member):
    ana, bia = make_user("ana"), make_user("bia")
    m_ana = add_member(som, ana, mesa)
    m_bia = add_member(som, bia, mesa)
    _book(som, mesa, m_ana, sunday_pm, date(2025, 11, 9))
    _book(som, mesa, m_bia, sunday_pm, date(2025, 11, 30))

    assert daily_reminder("2025-11-05") == 1
    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ["ana@example.com"]
    assert "Mesa de Som" in mail.outbox[0].body

@pytest.mark.django_db
def test_deadline_reminder_only_on_the_configured_day(make_user, som, louvor, add_member, settings):
    settings.DEADLINE_REMINDER_DAYS = 3
    ana, bia = make_user("ana"), make_user("bia")
    add_member(som, ana)
    add_member(som, bia)
    Department.objects.filter(pk=louvor.pk).update(availability_deadline_day=25)

    assert availability_deadline_reminder("2025-10-16") == 0
    assert availability_deadline_reminder("2025-10-17") == 2
    assert sorted(mail.outbox[0].to) == ["ana@example.com", "bia@example.com"]
    assert "11/2025" in mail.outbox[0].body

@pytest.mark.django_db
def test_xlsx_export(make_user, som, mesa, sunday_am, sunday_pm, add_member):
    ana = make_user("ana", "Ana Souza")
    m_ana = add_member(som, ana, mesa)
    _book(som, mesa, m_ana, sunday_pm, date(2025, 10, 12))

    wb = load_workbook(BytesIO(export_department_month_xlsx(som, 2025, 10)))
    assert wb.sheetnames == ["Escala (2025-10)", "Grade"]
    rows = list(wb["Escala (2025-10)"].iter_rows(min_row=2, values_only=True))
    assert len(rows) == 1
    assert rows[0][2:] == ("Domingo Noite", "Mesa de Som", "Ana Souza")

    grid = list(wb["Grade"].iter_rows(values_only=True))
    assert grid[0] == ("Outubro 2025", "Culto", "Mesa de Som")
    assert len(grid) == 1 + 4 * 2
    assert ("Domingo Noite", "Ana Souza") in [(r[1], r[2]) for r in grid[1:]]

@pytest.mark.django_db
def test_ics_export(make_user, som, mesa, sunday_pm, add_member, settings):
    settings.ICS_EVENT_DURATION_MINUTES = 90
    ana = make_user("ana")
    m_ana = add_member(som, ana, mesa)
    _book(som, mesa, m_ana, sunday_pm, date(2025, 11, 9))
    _book(som, mesa, m_ana, sunday_pm, date(2025, 10, 5))

    cal = Calendar.from_ical(export_user_ics(ana, today=date(2025, 11, 1)))
    events = [c for c in cal.walk() if c.name == "VEVENT"]
    assert len(events) == 1
    ev = events[0]
    assert str(ev["summary"]) == "Som: Mesa de Som (Domingo Noite)"
    assert (ev.decoded("dtend") - ev.decoded("dtstart")).total_seconds() == 90 * 60

@pytest.mark.django_db
def test_trigger_task_sync(make_user, som, mesa, sunday_pm, add_member):
    ana = make_user("ana")
    _book(som, mesa, add_member(som, ana, mesa), sunday_pm, date(2025, 11, 9))
    call_command("trigger_task", "daily_reminder", "--sync", "--date", "2025-11-05")
    assert len(mail.outbox) == 1

@pytest.mark.django_db
def test_seed_demo_is_idempotent():
    call_command("seed_demo")
    counts = (Organization.objects.count(), ServiceDay.objects.count(), DepartmentMember.objects.count())
    call_command("seed_demo")
    assert counts == (Organization.objects.count(), ServiceDay.objects.count(), DepartmentMember.objects.count())
    assert counts[0] == 1 and counts[1] == 3

def test_settings_check_flags_invalid_values():
    with override_settings(DEFAULT_AVAILABILITY_DEADLINE_DAY=40, DEFAULT_SERVICE_TIME="7pm"):
        ids = {e.id for e in rostering_settings_check(None)}
    assert {"rostering.E001", "rostering.E002"} <= ids
    assert rostering_settings_check(None) == []

@pytest.mark.django_db
def test_deadline_reminder_uses_each_member_effective_deadline(org, make_user, louvor, add_member, settings):
    settings.DEADLINE_REMINDER_DAYS = 3
    midia = Department.objects.create(organization=org, name="Mídia", priority_order=2, availability_deadline_day=25)
    ana, bia = make_user("ana"), make_user("bia")
    add_member(louvor, ana)
    add_member(midia, ana)
    add_member(midia, bia)

    assert availability_deadline_reminder("2025-10-17") == 1
    assert mail.outbox[-1].to == ["ana@example.com"]
    assert "Louvor" in mail.outbox[-1].subject

    assert availability_deadline_reminder("2025-10-22") == 1
    assert mail.outbox[-1].to == ["bia@example.com"]
