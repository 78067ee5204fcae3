import pytest
from datetime import date, timedelta
from django.utils import timezone
from rest_framework.test import APIClient

from rostering.models import AvailabilityRoutine, Department, DeptRole, Organization, RosterEntry
from rostering.services.availability import resolve_editable_month

def _next_weekday(start, weekday):
    """Próxima data (>= start) no dia da semana com domingo=0."""
    d = start
    while (d.weekday() + 1) % 7 != weekday:
        d += timedelta(days=1)
    return d

@pytest.fixture
def api():
    return APIClient()

@pytest.fixture
def leader(make_user, som, add_member):
    user = make_user("lider", "Líder do Som")
    add_member(som, user, role=DeptRole.LEADER)
    return user

@pytest.mark.django_db
def test_requires_authentication(api):
    resp = api.get("/api/v1/roster/upcoming/")
    assert resp.status_code in (401, 403)

@pytest.mark.django_db
def test_eligible_members_endpoint(api, org, leader, make_user, som, mesa, sunday_pm, add_member):
    ana = make_user("ana", "Ana Souza")
    add_member(som, ana, mesa)
    url = f"/api/v1/organizations/{org.id}/departments/{som.id}/functions/{mesa.id}/eligible-members/"

    api.force_authenticate(leader)
    resp = api.get(url, {"date": "2025-11-09", "service_day": sunday_pm.id})
    assert resp.status_code == 200
    assert [m["user_id"] for m in resp.json()] == [ana.pk]
    assert resp.json()[0]["full_name"] == "Ana Souza"

    assert api.get(url).status_code == 400
    assert api.get(url, {"date": "09/11/2025"}).status_code == 400

    api.force_authenticate(ana)
    resp = api.get(url, {"date": "2025-11-09"})
    assert resp.status_code == 403
    assert resp.json()["code"] == "unauthorized"

@pytest.mark.django_db
def test_assign_conflict_and_unassign(api, leader, make_user, som, mesa, sunday_pm, add_member):
    ana, bia = make_user("ana"), make_user("bia")
    m_ana = add_member(som, ana, mesa)
    m_bia = add_member(som, bia, mesa)
    api.force_authenticate(leader)

    payload = {
        "department": som.id, "function": mesa.id, "member": m_ana.id,
        "service_day": sunday_pm.id, "schedule_date": "2025-11-09",
    }
    resp = api.post("/api/v1/roster/assign/", payload, format="json")
    assert resp.status_code == 201
    body = resp.json()
    assert body["function_name"] == "Mesa de Som"
    assert body["service_day_name"] == sunday_pm.name

    resp = api.post("/api/v1/roster/assign/", {**payload, "member": m_bia.id}, format="json")
    assert resp.status_code == 409
    assert resp.json()["code"] == "slot_occupied"
    assert resp.json()["status_code"] == 409

    resp = api.delete(f"/api/v1/roster/{body['id']}/unassign/")
    assert resp.status_code == 204
    assert not RosterEntry.objects.exists()
    assert api.delete(f"/api/v1/roster/{body['id']}/unassign/").status_code == 404

@pytest.mark.django_db
def test_member_cannot_assign(api, make_user, som, mesa, sunday_pm, add_member):
    ana = make_user("ana")
    m_ana = add_member(som, ana, mesa)
    api.force_authenticate(ana)
    resp = api.post("/api/v1/roster/assign/", {
        "department": som.id, "function": mesa.id, "member": m_ana.id,
        "service_day": sunday_pm.id, "schedule_date": "2025-11-09",
    }, format="json")
    assert resp.status_code == 403

@pytest.mark.django_db
def test_exception_before_editable_month_returns_409(api, make_user, sunday_pm):
    ana = make_user("ana")
    api.force_authenticate(ana)
    today = timezone.localdate()
    resp = api.put("/api/v1/availability/exception/", {
        "specific_date": today.isoformat(), "service_day": sunday_pm.id, "is_available": False,
    }, format="json")
    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "deadline_exceeded"
    assert body["editable_from"] == resolve_editable_month(today, 20).isoformat()

@pytest.mark.django_db
def test_exception_put_and_delete(api, make_user, sunday_pm):
    ana = make_user("ana")
    api.force_authenticate(ana)
    editable = resolve_editable_month(timezone.localdate(), 20)
    d = _next_weekday(editable, 0)

    resp = api.put("/api/v1/availability/exception/", {
        "specific_date": d.isoformat(), "service_day": sunday_pm.id, "is_available": False, "notes": "viagem",
    }, format="json")
    assert resp.status_code == 200
    assert resp.json()["service_day_name"] == sunday_pm.name

    resp = api.get("/api/v1/availability/resolve/", {"date": d.isoformat(), "service_day": sunday_pm.id})
    assert resp.json()[0]["is_available"] is False
    assert resp.json()[0]["source"] == "service_exception"

    resp = api.delete(f"/api/v1/availability/exception/?specific_date={d.isoformat()}&service_day={sunday_pm.id}")
    assert resp.status_code == 204
    resp = api.get("/api/v1/availability/resolve/", {"date": d.isoformat()})
    assert resp.json()[0]["source"] == "default"

@pytest.mark.django_db
def test_routine_put_is_idempotent(api, make_user, sunday_pm):
    ana = make_user("ana")
    api.force_authenticate(ana)
    for value in (False, True):
        resp = api.put("/api/v1/availability/routine/", {"service_day": sunday_pm.id, "is_available": value}, format="json")
        assert resp.status_code == 200
    assert AvailabilityRoutine.objects.filter(user=ana).count() == 1
    assert api.get("/api/v1/routines/").json()[0]["is_available"] is True

@pytest.mark.django_db
def test_month_put_and_get(api, make_user, sunday_pm):
    ana = make_user("ana")
    api.force_authenticate(ana)
    editable = resolve_editable_month(timezone.localdate(), 20)
    sunday = _next_weekday(editable, 0)

    resp = api.put("/api/v1/availability/month/", {
        "year": editable.year, "month": editable.month,
        "days": [{"date": sunday.isoformat(), "is_available": False}],
    }, format="json")
    assert resp.status_code == 200
    assert resp.json()["saved"] == 1

    resp = api.get("/api/v1/availability/month/", {"year": editable.year, "month": editable.month})
    rows = {r["date"]: r for r in resp.json()}
    assert rows[sunday.isoformat()]["is_available"] is False
    assert rows[sunday.isoformat()]["source"] == "day_exception"

@pytest.mark.django_db
def test_editable_month_and_department_deadline(api, make_user, som, louvor, add_member):
    ana = make_user("ana")
    api.force_authenticate(ana)
    resp = api.get("/api/v1/availability/editable-month/")
    assert resp.status_code == 200
    assert resp.json()["deadline_day"] == 20
    assert resp.json()["editable_from"] == resolve_editable_month(timezone.localdate(), 20).isoformat()

    resp = api.get(f"/api/v1/departments/{som.id}/deadline/")
    assert resp.status_code == 200
    assert set(resp.json()) == {"can_edit", "deadline_day", "days_remaining", "is_past_deadline", "editable_month"}

    Department.objects.filter(pk=som.pk).update(availability_deadline_day=25)
    add_member(som, ana)
    add_member(louvor, ana)
    resp = api.get(f"/api/v1/departments/{som.id}/deadline/")
    assert resp.json()["deadline_day"] == 20

@pytest.mark.django_db
def test_departments_are_scoped_to_organization(api, make_user, som):
    other = Organization.objects.create(name="Outra")
    Department.objects.create(organization=other, name="Mídia")
    ana = make_user("ana")
    api.force_authenticate(ana)

    names = [d["name"] for d in api.get("/api/v1/departments/").json()]
    assert names == ["Som"]
    resp = api.post("/api/v1/departments/", {"organization": som.organization_id, "name": "Recepção"}, format="json")
    assert resp.status_code == 403

@pytest.mark.django_db
def test_org_admin_manages_departments(api, make_user, org, som):
    admin = make_user("admin", role="admin")
    api.force_authenticate(admin)
    resp = api.post("/api/v1/departments/", {"organization": org.id, "name": "Recepção", "priority_order": 5}, format="json")
    assert resp.status_code == 201
    assert resp.json()["availability_deadline_day"] == 20

    resp = api.patch(f"/api/v1/departments/{som.id}/", {"availability_deadline_day": 10}, format="json")
    assert resp.status_code == 200
    som.refresh_from_db()
    assert som.availability_deadline_day == 10

@pytest.mark.django_db
def test_upcoming_and_exports(api, leader, make_user, som, mesa, sunday_pm, add_member):
    ana = make_user("ana")
    m_ana = add_member(som, ana, mesa)
    d = _next_weekday(timezone.localdate() + timedelta(days=1), 0)
    RosterEntry.objects.create(department=som, function=mesa, member=m_ana, service_day=sunday_pm, schedule_date=d)

    api.force_authenticate(ana)
    resp = api.get("/api/v1/roster/upcoming/")
    assert [e["schedule_date"] for e in resp.json()] == [d.isoformat()]

    resp = api.get("/api/v1/export/ics")
    assert resp.status_code == 200
    assert resp["Content-Type"].startswith("text/calendar")
    assert b"BEGIN:VCALENDAR" in resp.content

    api.force_authenticate(leader)
    resp = api.get("/api/v1/export/xlsx", {"department": som.id, "year": d.year, "month": d.month})
    assert resp.status_code == 200
    assert resp["Content-Disposition"].endswith(f'{d.year}-{d.month:02d}.xlsx"')
    assert api.get("/api/v1/export/xlsx", {"year": d.year, "month": d.month}).status_code == 400

def test_error_logging_middleware_logs_5xx(rf, caplog):
    from django.http import HttpResponse
    from core.middleware import ErrorLoggingMiddleware

    mw = ErrorLoggingMiddleware(lambda request: HttpResponse(status=503))
    request = rf.get("/api/v1/roster/upcoming/", HTTP_X_REQUEST_ID="abc123")
    with caplog.at_level("ERROR", logger="django.request"):
        assert mw(request).status_code == 503
    assert "id=abc123 GET /api/v1/roster/upcoming/ user=anon" in caplog.text
