import pytest
from datetime import date
from rest_framework.exceptions import ValidationError

from rostering.domain.errors import NotFound
from rostering.models import Department, DepartmentFunction, Organization, RosterEntry
from rostering.services.availability import set_exception, set_routine
from rostering.services.eligibility import find_eligible_members

SUNDAY = date(2025, 11, 9)
MONDAY = date(2025, 11, 10)
TODAY = date(2025, 10, 15)

def _ids(members):
    return [m.user_id for m in members]

def _book(department, function, member, service_day, d=SUNDAY):
    return RosterEntry.objects.create(
        department=department, function=function, member=member, service_day=service_day, schedule_date=d
    )

@pytest.mark.django_db
def test_only_members_holding_the_function_sorted_by_name(org, make_user, som, mesa, sunday_pm, add_member):
    other_fn = DepartmentFunction.objects.create(department=som, name="Palco")
    zeca = make_user("zeca", "zeca Lima")
    ana = make_user("ana", "Ana Souza")
    bia = make_user("bia", "beatriz Alves")
    add_member(som, zeca, mesa)
    add_member(som, ana, mesa)
    add_member(som, bia, other_fn)

    result = find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_pm.id)
    assert _ids(result) == [ana.pk, zeca.pk]
    first = result[0].to_dict()
    assert first["full_name"] == "Ana Souza"
    assert first["function_name"] == "Mesa de Som"
    assert first["is_available"] is True

@pytest.mark.django_db
def test_unavailable_members_are_excluded(org, make_user, som, mesa, sunday_pm, add_member):
    ana = make_user("ana")
    bia = make_user("bia")
    add_member(som, ana, mesa)
    add_member(som, bia, mesa)
    set_routine(ana, sunday_pm, False)

    assert _ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_pm.id)) == [bia.pk]

    # exceção da data vence a rotina
    set_exception(ana, SUNDAY, sunday_pm, True, today=TODAY)
    assert set(_ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_pm.id))) == {ana.pk, bia.pk}

@pytest.mark.django_db
def test_member_booked_in_another_department_is_excluded(
    org, make_user, louvor, som, vocal, mesa, sunday_am, sunday_pm, add_member, settings
):
    settings.ENFORCE_DEPARTMENT_PRIORITY = False
    ana = make_user("ana")
    add_member(som, ana, mesa)
    in_louvor = add_member(louvor, ana, vocal)
    _book(louvor, vocal, in_louvor, sunday_am)

    # outro culto do mesmo dia não conflita
    assert _ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_am.id)) == []
    assert _ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_pm.id)) == [ana.pk]
    # sem culto informado qualquer escala na data conflita
    assert _ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY)) == []

@pytest.mark.django_db
def test_higher_priority_department_reserves_its_members(
    org, make_user, louvor, som, vocal, mesa, sunday_pm, add_member, settings
):
    ana = make_user("ana")
    bia = make_user("bia")
    add_member(som, ana, mesa)
    add_member(louvor, ana, vocal)

    assert _ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_pm.id)) == []

    settings.ENFORCE_DEPARTMENT_PRIORITY = False
    assert _ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_pm.id)) == [ana.pk]
    settings.ENFORCE_DEPARTMENT_PRIORITY = True

    # vaga de Vocal preenchida por outra pessoa libera a Ana
    _book(louvor, vocal, add_member(louvor, bia, vocal), sunday_pm)
    assert _ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_pm.id)) == [ana.pk]

@pytest.mark.django_db
def test_reservation_ignores_members_unavailable_for_the_higher_department(
    org, make_user, louvor, som, vocal, mesa, sunday_am, sunday_pm, add_member
):
    ana = make_user("ana")
    add_member(som, ana, mesa)
    add_member(louvor, ana, vocal)
    set_exception(ana, SUNDAY, sunday_pm, False, today=TODAY)

    # indisponível no culto: não é reservada, mas também não é elegível
    assert _ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_pm.id)) == []
    # no culto da manhã está disponível e o Louvor tem vaga: reservada
    assert _ids(find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_am.id)) == []
    # a reserva só vale com culto informado
    assert _ids(find_eligible_members(org.id, som.id, mesa.id, date(2025, 11, 16))) == [ana.pk]

@pytest.mark.django_db
def test_weekday_without_services_only_day_exception_counts(org, make_user, som, mesa, sunday_pm, add_member):
    ana = make_user("ana")
    bia = make_user("bia")
    add_member(som, ana, mesa)
    add_member(som, bia, mesa)
    set_routine(ana, sunday_pm, False)
    set_exception(bia, MONDAY, None, False, today=TODAY)

    assert _ids(find_eligible_members(org.id, som.id, mesa.id, MONDAY)) == [ana.pk]

@pytest.mark.django_db
def test_not_found_for_foreign_references(org, make_user, louvor, som, vocal, mesa, sunday_pm):
    other_org = Organization.objects.create(name="Outra")
    foreign = Department.objects.create(organization=other_org, name="Som")

    with pytest.raises(NotFound):
        find_eligible_members(org.id, som.id, vocal.id, SUNDAY, sunday_pm.id)
    with pytest.raises(NotFound):
        find_eligible_members(org.id, foreign.id, mesa.id, SUNDAY, sunday_pm.id)
    with pytest.raises(NotFound):
        find_eligible_members(other_org.id, som.id, mesa.id, SUNDAY)
    with pytest.raises(NotFound):
        find_eligible_members(org.id, som.id, mesa.id, SUNDAY, 999999)

@pytest.mark.django_db
def test_empty_department_returns_empty_list(org, som, mesa, sunday_pm):
    assert find_eligible_members(org.id, som.id, mesa.id, SUNDAY, sunday_pm.id) == []

@pytest.mark.django_db
def test_service_day_must_fall_on_the_date_weekday(org, make_user, som, mesa, sunday_pm, add_member):
    add_member(som, make_user("ana"), mesa)
    tuesday = date(2025, 11, 11)
    with pytest.raises(ValidationError):
        find_eligible_members(org.id, som.id, mesa.id, tuesday, sunday_pm.id)
