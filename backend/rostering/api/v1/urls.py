from django.urls import path
from rest_framework.routers import DefaultRouter

from . import views
from .viewsets import (
    AvailabilityExceptionViewSet,
    AvailabilityRoutineViewSet,
    DepartmentFunctionViewSet,
    DepartmentLeaderViewSet,
    DepartmentMemberViewSet,
    DepartmentViewSet,
    MemberFunctionViewSet,
    OrganizationViewSet,
    ProfileViewSet,
    RosterEntryViewSet,
    ServiceDayViewSet,
)

router = DefaultRouter()
router.register("organizations", OrganizationViewSet, basename="organization")
router.register("profiles", ProfileViewSet, basename="profile")
router.register("service-days", ServiceDayViewSet, basename="service-day")
router.register("departments", DepartmentViewSet, basename="department")
router.register("functions", DepartmentFunctionViewSet, basename="function")
router.register("members", DepartmentMemberViewSet, basename="member")
router.register("member-functions", MemberFunctionViewSet, basename="member-function")
router.register("leaders", DepartmentLeaderViewSet, basename="leader")
router.register("routines", AvailabilityRoutineViewSet, basename="routine")
router.register("exceptions", AvailabilityExceptionViewSet, basename="exception")
router.register("roster-entries", RosterEntryViewSet, basename="roster-entry")

urlpatterns = [
    path(
        "organizations/<int:organization_id>/departments/<int:department_id>/functions/<int:function_id>/eligible-members/",
        views.eligible_members,
        name="api_eligible_members",
    ),
    path("roster/assign/", views.roster_assign, name="api_roster_assign"),
    path("roster/upcoming/", views.roster_upcoming, name="api_roster_upcoming"),
    path("roster/<int:entry_id>/unassign/", views.roster_unassign, name="api_roster_unassign"),
    path("roster/<int:entry_id>/team/", views.roster_team, name="api_roster_team"),

    path("availability/routine/", views.availability_routine, name="api_availability_routine"),
    path("availability/exception/", views.availability_exception, name="api_availability_exception"),
    path("availability/month/", views.availability_month, name="api_availability_month"),
    path("availability/resolve/", views.availability_resolve, name="api_availability_resolve"),
    path("availability/editable-month/", views.availability_editable_month, name="api_availability_editable_month"),
    path("departments/<int:department_id>/deadline/", views.department_deadline, name="api_department_deadline"),

    path("export/xlsx", views.export_xlsx, name="api_export_xlsx"),
    path("export/ics", views.export_ics, name="api_export_ics"),
] + router.urls
