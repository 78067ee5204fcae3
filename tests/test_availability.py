import pytest
from datetime import date
from rest_framework.exceptions import ValidationError

from rostering.domain.errors import DeadlineExceeded, NotFound
from rostering.models import AvailabilityException, AvailabilityRoutine, Department
from rostering.services.availability import (
    clear_exception,
    deadline_status,
    effective_deadline_day,
    month_overview,
    resolve_availability,
    resolve_availability_with_source,
    resolve_editable_month,
    save_month_availability,
    set_exception,
    set_routine,
)

SUNDAY = date(2025, 11, 9)
BEFORE_DEADLINE = date(2025, 10, 15)

@pytest.mark.django_db
def test_default_is_available(make_user, sunday_pm):
    u = make_user("ana")
    assert resolve_availability_with_source(u.pk, SUNDAY, sunday_pm) == (True, "default")

@pytest.mark.django_db
def test_precedence_service_exception_over_day_over_routine(make_user, sunday_pm):
    u = make_user("ana")
    set_routine(u, sunday_pm, False)
    assert resolve_availability(u.pk, SUNDAY, sunday_pm) is False

    set_exception(u, SUNDAY, None, True, today=BEFORE_DEADLINE)
    assert resolve_availability_with_source(u.pk, SUNDAY, sunday_pm) == (True, "day_exception")

    set_exception(u, SUNDAY, sunday_pm, False, today=BEFORE_DEADLINE)
    assert resolve_availability_with_source(u.pk, SUNDAY, sunday_pm) == (False, "service_exception")

@pytest.mark.django_db
def test_day_exception_applies_to_every_service(make_user, sunday_am, sunday_pm):
    u = make_user("ana")
    set_exception(u, SUNDAY, None, False, today=BEFORE_DEADLINE)
    assert resolve_availability(u.pk, SUNDAY, sunday_am) is False
    assert resolve_availability(u.pk, SUNDAY, sunday_pm) is False
    # outro domingo continua no padrão
    assert resolve_availability(u.pk, date(2025, 11, 16), sunday_pm) is True

def test_editable_month_switches_after_deadline():
    assert resolve_editable_month(date(2025, 10, 20), 20) == date(2025, 11, 1)
    assert resolve_editable_month(date(2025, 10, 21), 20) == date(2025, 12, 1)
    assert resolve_editable_month(date(2025, 12, 25), 20) == date(2026, 2, 1)
    assert resolve_editable_month(date(2025, 11, 30), 31) == date(2025, 12, 1)

@pytest.mark.django_db
def test_exception_before_editable_month_is_rejected(make_user, sunday_pm):
    u = make_user("ana")
    with pytest.raises(DeadlineExceeded) as exc:
        set_exception(u, SUNDAY, sunday_pm, False, today=date(2025, 10, 21))
    assert exc.value.editable_from == date(2025, 12, 1)
    assert not AvailabilityException.objects.exists()

@pytest.mark.django_db
def test_routine_is_not_deadline_gated_and_upserts(make_user, sunday_pm):
    u = make_user("ana")
    set_routine(u, sunday_pm, False)
    set_routine(u, sunday_pm, True)
    rows = AvailabilityRoutine.objects.filter(user=u, service_day=sunday_pm)
    assert rows.count() == 1
    assert rows.get().is_available is True

@pytest.mark.django_db
def test_whole_day_and_service_exceptions_are_distinct_keys(make_user, sunday_pm):
    u = make_user("ana")
    set_exception(u, SUNDAY, None, False, today=BEFORE_DEADLINE)
    set_exception(u, SUNDAY, sunday_pm, True, today=BEFORE_DEADLINE)
    set_exception(u, SUNDAY, None, True, notes="volto cedo", today=BEFORE_DEADLINE)

    qs = AvailabilityException.objects.filter(user=u, specific_date=SUNDAY)
    assert qs.count() == 2
    whole_day = qs.get(service_day__isnull=True)
    assert whole_day.is_available is True
    assert whole_day.notes == "volto cedo"

@pytest.mark.django_db
def test_effective_deadline_is_the_smallest_among_departments(make_user, louvor, som, add_member):
    u = make_user("ana")
    assert effective_deadline_day(u) == 20
    Department.objects.filter(pk=som.pk).update(availability_deadline_day=10)
    add_member(louvor, u)
    add_member(som, u)
    assert effective_deadline_day(u) == 10
    with pytest.raises(DeadlineExceeded):
        set_exception(u, SUNDAY, None, False, today=date(2025, 10, 15))

@pytest.mark.django_db
def test_clear_exception(make_user, sunday_pm):
    u = make_user("ana")
    with pytest.raises(NotFound):
        clear_exception(u, SUNDAY, sunday_pm, today=BEFORE_DEADLINE)
    set_exception(u, SUNDAY, sunday_pm, False, today=BEFORE_DEADLINE)
    clear_exception(u, SUNDAY, sunday_pm, today=BEFORE_DEADLINE)
    assert resolve_availability(u.pk, SUNDAY, sunday_pm) is True

@pytest.mark.django_db
def test_save_month_availability(make_user):
    u = make_user("ana")
    saved = save_month_availability(
        u, 2025, 11, {date(2025, 11, 2): False, date(2025, 11, 9): True}, today=BEFORE_DEADLINE
    )
    assert saved == 2
    assert AvailabilityException.objects.filter(user=u, service_day__isnull=True).count() == 2

    with pytest.raises(ValidationError):
        save_month_availability(u, 2025, 11, {date(2025, 12, 7): False}, today=BEFORE_DEADLINE)
    with pytest.raises(DeadlineExceeded):
        save_month_availability(u, 2025, 11, {date(2025, 11, 2): True}, today=date(2025, 10, 25))

@pytest.mark.django_db
def test_deadline_status(louvor):
    st = deadline_status(louvor, today=date(2025, 10, 18))
    assert st.can_edit and st.days_remaining == 2
    assert st.editable_month == date(2025, 11, 1)

    st = deadline_status(louvor, today=date(2025, 10, 25))
    assert st.is_past_deadline
    assert st.days_remaining == 26
    assert st.to_dict()["editable_month"] == "2025-12-01"

@pytest.mark.django_db
def test_month_overview(make_user, org, sunday_am, sunday_pm, wednesday):
    u = make_user("ana")
    set_routine(u, wednesday, False)
    rows = month_overview(u, org.id, 2025, 10)
    assert len(rows) == 4 * 2 + 5
    assert rows[0]["date"] == "2025-10-01"
    assert rows[0]["is_available"] is False and rows[0]["source"] == "routine"

@pytest.mark.django_db
def test_deadline_status_follows_the_member_effective_deadline(org, make_user, louvor, add_member):
    midia = Department.objects.create(organization=org, name="Mídia", priority_order=2, availability_deadline_day=25)
    ana = make_user("ana")
    add_member(louvor, ana)
    add_member(midia, ana)
    today = date(2025, 10, 22)

    assert deadline_status(midia, today=today).can_edit

    st = deadline_status(midia, today=today, user=ana)
    assert st.deadline_day == 20
    assert not st.can_edit
    assert st.editable_month == date(2025, 12, 1)
    with pytest.raises(DeadlineExceeded) as exc:
        set_exception(ana, date(2025, 11, 9), None, False, today=today)
    assert exc.value.editable_from == st.editable_month
