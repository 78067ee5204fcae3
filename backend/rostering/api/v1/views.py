from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status
from django.http import HttpResponse
from django.utils import timezone

from rostering.domain.errors import NotFound
from rostering.domain.models import Department, RosterEntry, ServiceDay
from rostering.domain.repositories import ServiceDayRepository
from rostering.services import availability as availability_service
from rostering.services import roster as roster_service
from rostering.services.calendar import ensure_occurs_on
from rostering.services.eligibility import find_eligible_members
from rostering.services.exporters.export_ics import export_user_ics
from rostering.services.exporters.export_xlsx import export_department_month_xlsx
from rostering.utils import _get_date_from_request, _get_ym_from_request, _request_params, sunday_weekday

from .serializers import (
    AssignInputSerializer,
    AvailabilityExceptionSerializer,
    AvailabilityRoutineSerializer,
    ExceptionInputSerializer,
    MonthInputSerializer,
    RosterEntrySerializer,
    RoutineInputSerializer,
)
from .viewsets import user_organization_ids

# =========================
# Helpers
# =========================

def _department_for(user, department_id) -> Department:
    qs = Department.objects.filter(id=department_id)
    if not user.is_superuser:
        qs = qs.filter(organization__in=user_organization_ids(user))
    department = qs.first()
    if department is None:
        raise NotFound("Departamento não encontrado.")
    return department

def _service_day_for(user, service_day_id) -> ServiceDay:
    qs = ServiceDay.objects.filter(id=service_day_id)
    if not user.is_superuser:
        qs = qs.filter(organization__in=user_organization_ids(user))
    service_day = qs.first()
    if service_day is None:
        raise NotFound("Culto não encontrado.")
    return service_day

def _optional_int(raw, name):
    if raw in (None, ""):
        return None, None
    try:
        return int(raw), None
    except (TypeError, ValueError):
        return None, f"Parâmetro '{name}' deve ser um número inteiro."

# =========================
# Elegibilidade
# =========================

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def eligible_members(request, organization_id: int, department_id: int, function_id: int):
    d, err = _get_date_from_request(request)
    if err:
        return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)
    service_day_id, err = _optional_int(request.query_params.get("service_day"), "service_day")
    if err:
        return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)

    department = _department_for(request.user, department_id)
    if department.organization_id != organization_id:
        raise NotFound("Departamento não encontrado nesta organização.")
    roster_service.ensure_can_manage(request.user, department)

    members = find_eligible_members(organization_id, department_id, function_id, d, service_day_id)
    return Response([m.to_dict() for m in members])

# =========================
# Escala
# =========================

@api_view(["POST"])
@permission_classes([IsAuthenticated])
def roster_assign(request):
    payload = AssignInputSerializer(data=request.data)
    payload.is_valid(raise_exception=True)
    data = payload.validated_data

    department = _department_for(request.user, data["department"])
    roster_service.ensure_can_manage(request.user, department)
    entry = roster_service.assign(
        department.id,
        data["function"],
        data["member"],
        data["service_day"],
        data["schedule_date"],
        user=request.user,
    )
    return Response(RosterEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
def roster_unassign(request, entry_id: int):
    entry = RosterEntry.objects.select_related("department").filter(id=entry_id).first()
    if entry is None:
        raise NotFound("Escala não encontrada.")
    _department_for(request.user, entry.department_id)
    roster_service.ensure_can_manage(request.user, entry.department)
    roster_service.unassign(entry_id)
    return Response(status=status.HTTP_204_NO_CONTENT)

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def roster_upcoming(request):
    limit, err = _optional_int(request.query_params.get("limit"), "limit")
    if err or (limit is not None and limit < 0):
        return Response({"detail": "Parâmetro 'limit' deve ser um inteiro >= 0."}, status=status.HTTP_400_BAD_REQUEST)
    entries = roster_service.upcoming_for_user(request.user, limit=limit)
    return Response(RosterEntrySerializer(entries, many=True).data)

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def roster_team(request, entry_id: int):
    team = roster_service.slot_team(entry_id, request.user)
    return Response(RosterEntrySerializer(team, many=True).data)

# =========================
# Disponibilidade
# =========================

@api_view(["PUT"])
@permission_classes([IsAuthenticated])
def availability_routine(request):
    payload = RoutineInputSerializer(data=request.data)
    payload.is_valid(raise_exception=True)
    service_day = _service_day_for(request.user, payload.validated_data["service_day"])
    routine = availability_service.set_routine(request.user, service_day, payload.validated_data["is_available"])
    return Response(AvailabilityRoutineSerializer(routine).data)

@api_view(["PUT", "DELETE"])
@permission_classes([IsAuthenticated])
def availability_exception(request):
    if request.method == "DELETE":
        qp, dp = _request_params(request)
        d, err = _get_date_from_request(request, "specific_date")
        if err:
            return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)
        service_day_id, err = _optional_int(qp.get("service_day") or dp.get("service_day"), "service_day")
        if err:
            return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)
        service_day = _service_day_for(request.user, service_day_id) if service_day_id is not None else None
        availability_service.clear_exception(request.user, d, service_day)
        return Response(status=status.HTTP_204_NO_CONTENT)

    payload = ExceptionInputSerializer(data=request.data)
    payload.is_valid(raise_exception=True)
    data = payload.validated_data
    if "is_available" not in data:
        return Response({"is_available": ["Este campo é obrigatório."]}, status=status.HTTP_400_BAD_REQUEST)
    service_day = None
    if data.get("service_day") is not None:
        service_day = _service_day_for(request.user, data["service_day"])
    exc = availability_service.set_exception(
        request.user,
        data["specific_date"],
        service_day,
        data["is_available"],
        notes=data.get("notes") or None,
    )
    return Response(AvailabilityExceptionSerializer(exc).data)

@api_view(["GET", "PUT"])
@permission_classes([IsAuthenticated])
def availability_month(request):
    if request.method == "GET":
        year, month, err = _get_ym_from_request(request)
        if err:
            return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)
        org_ids = user_organization_ids(request.user)
        if not org_ids:
            return Response([])
        return Response(availability_service.month_overview(request.user, org_ids[0], year, month))

    payload = MonthInputSerializer(data=request.data)
    payload.is_valid(raise_exception=True)
    data = payload.validated_data
    statuses = {item["date"]: item["is_available"] for item in data["days"]}
    saved = availability_service.save_month_availability(request.user, data["year"], data["month"], statuses)
    return Response({"saved": saved, "year": data["year"], "month": data["month"]})

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def availability_resolve(request):
    d, err = _get_date_from_request(request)
    if err:
        return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)
    service_day_id, err = _optional_int(request.query_params.get("service_day"), "service_day")
    if err:
        return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)

    if service_day_id is not None:
        service_day = _service_day_for(request.user, service_day_id)
        ensure_occurs_on(service_day, d)
        service_days = [service_day]
    else:
        org_ids = user_organization_ids(request.user)
        service_days = ServiceDayRepository.on_weekday(org_ids[0], sunday_weekday(d)) if org_ids else []

    out = []
    for sd in service_days:
        available, source = availability_service.resolve_availability_with_source(request.user.pk, d, sd)
        out.append({
            "date": d.isoformat(),
            "service_day_id": sd.id,
            "service_day_name": sd.name,
            "is_available": available,
            "source": source,
        })
    return Response(out)

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def availability_editable_month(request):
    deadline_day = availability_service.effective_deadline_day(request.user)
    editable_from = availability_service.resolve_editable_month(timezone.localdate(), deadline_day)
    return Response({"editable_from": editable_from.isoformat(), "deadline_day": deadline_day})

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def department_deadline(request, department_id: int):
    department = _department_for(request.user, department_id)
    return Response(availability_service.deadline_status(department, user=request.user).to_dict())

# =========================
# Exportações
# =========================

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def export_xlsx(request):
    department_id, err = _optional_int(request.query_params.get("department"), "department")
    if err or department_id is None:
        return Response({"detail": err or "Parâmetro 'department' é obrigatório."}, status=status.HTTP_400_BAD_REQUEST)
    year, month, err = _get_ym_from_request(request)
    if err:
        return Response({"detail": err}, status=status.HTTP_400_BAD_REQUEST)
    department = _department_for(request.user, department_id)
    content = export_department_month_xlsx(department, year, month)
    resp = HttpResponse(content, content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    resp["Content-Disposition"] = f'attachment; filename="escala-{department.id}-{year}-{month:02d}.xlsx"'
    return resp

@api_view(["GET"])
@permission_classes([IsAuthenticated])
def export_ics(request):
    content = export_user_ics(request.user)
    resp = HttpResponse(content, content_type="text/calendar")
    resp["Content-Disposition"] = 'attachment; filename="minhas-escalas.ics"'
    return resp
