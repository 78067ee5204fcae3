from __future__ import annotations

from django.contrib import admin

from rostering.domain.models import (
    AuditLog,
    AvailabilityException,
    AvailabilityRoutine,
    Department,
    DepartmentFunction,
    DepartmentLeader,
    DepartmentMember,
    MemberFunction,
    Organization,
    Profile,
    RosterEntry,
    ServiceDay,
)

# =========================
# Filtros utilitários
# =========================

class RosterMonthFilter(admin.SimpleListFilter):
    title = "Mês/Ano"
    parameter_name = "ym"

    def lookups(self, request, model_admin):
        pairs = (
            RosterEntry.objects
            .values_list("schedule_date__year", "schedule_date__month")
            .distinct()
            .order_by("schedule_date__year", "schedule_date__month")
        )
        return [(f"{y}-{m}", f"{m:02d}/{y}") for (y, m) in pairs]

    def queryset(self, request, qs):
        val = self.value()
        if not val:
            return qs
        y, m = val.split("-")
        return qs.filter(schedule_date__year=int(y), schedule_date__month=int(m))

# =========================
# Inlines
# =========================

class ServiceDayInline(admin.TabularInline):
    model = ServiceDay
    extra = 0
    fields = ("weekday", "name", "start_time")

class DepartmentFunctionInline(admin.TabularInline):
    model = DepartmentFunction
    extra = 0
    fields = ("name", "description")
    classes = ("collapse",)

class MemberFunctionInline(admin.TabularInline):
    model = MemberFunction
    extra = 0
    fields = ("function",)

class DepartmentLeaderInline(admin.TabularInline):
    model = DepartmentLeader
    extra = 0
    fields = ("user",)
    autocomplete_fields = ("user",)
    classes = ("collapse",)

# =========================
# Organização e pessoas
# =========================

@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)
    inlines = (ServiceDayInline,)

@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("full_name", "user", "organization", "org_role", "email", "phone")
    list_filter = ("organization", "org_role")
    search_fields = ("full_name", "email", "user__username")
    autocomplete_fields = ("user",)
    list_select_related = ("user", "organization")
    list_per_page = 50

@admin.register(ServiceDay)
class ServiceDayAdmin(admin.ModelAdmin):
    list_display = ("name", "weekday", "start_time", "organization")
    list_filter = ("organization", "weekday")
    search_fields = ("name",)

# =========================
# Departamentos
# =========================

@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "organization", "parent", "priority_order", "availability_deadline_day", "members_count")
    list_filter = ("organization",)
    search_fields = ("name",)
    ordering = ("organization", "priority_order", "name")
    inlines = (DepartmentFunctionInline, DepartmentLeaderInline)

    @admin.display(description="Membros")
    def members_count(self, obj: Department) -> int:
        return obj.members.count()

@admin.register(DepartmentFunction)
class DepartmentFunctionAdmin(admin.ModelAdmin):
    list_display = ("name", "department")
    list_filter = ("department",)
    search_fields = ("name", "department__name")

@admin.register(DepartmentMember)
class DepartmentMemberAdmin(admin.ModelAdmin):
    list_display = ("user", "department", "dept_role", "functions_display")
    list_filter = ("department", "dept_role")
    search_fields = ("user__username", "user__profile__full_name", "department__name")
    autocomplete_fields = ("user", "department")
    list_select_related = ("user", "department")
    inlines = (MemberFunctionInline,)
    list_per_page = 50

    actions = ["promote_to_leader", "demote_to_member"]

    @admin.display(description="Funções")
    def functions_display(self, obj: DepartmentMember) -> str:
        return ", ".join(f.name for f in obj.functions.all())

    @admin.action(description="Tornar líder")
    def promote_to_leader(self, request, qs):
        qs.update(dept_role="leader")

    @admin.action(description="Tornar membro")
    def demote_to_member(self, request, qs):
        qs.update(dept_role="member")

# =========================
# Disponibilidade
# =========================

@admin.register(AvailabilityRoutine)
class AvailabilityRoutineAdmin(admin.ModelAdmin):
    list_display = ("user", "service_day", "is_available", "updated_at")
    list_filter = ("is_available", "service_day__weekday")
    search_fields = ("user__username", "user__profile__full_name")
    autocomplete_fields = ("user", "service_day")
    list_per_page = 50

@admin.register(AvailabilityException)
class AvailabilityExceptionAdmin(admin.ModelAdmin):
    list_display = ("user", "specific_date", "service_day", "is_available", "notes")
    list_filter = ("is_available",)
    search_fields = ("user__username", "user__profile__full_name", "notes")
    autocomplete_fields = ("user", "service_day")
    date_hierarchy = "specific_date"
    list_per_page = 50

# =========================
# RosterEntry
# =========================

@admin.register(RosterEntry)
class RosterEntryAdmin(admin.ModelAdmin):
    list_display = ("schedule_date", "service_day", "department", "function", "member", "created_at", "created_by")
    list_filter = ("department", "service_day", RosterMonthFilter)
    search_fields = ("member__user__username", "member__user__profile__full_name", "function__name")
    date_hierarchy = "schedule_date"
    ordering = ("-schedule_date",)
    list_select_related = ("department", "function", "service_day", "member__user", "created_by")
    autocomplete_fields = ("department", "function", "member", "service_day", "created_by")
    readonly_fields = ("created_at",)
    list_per_page = 50

# =========================
# AuditLog
# =========================

@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action", "table", "record_id", "created_at", "author", "ip_address")
    list_filter = ("table", "action")
    search_fields = ("table", "record_id", "author__username")
    readonly_fields = ("action", "table", "record_id", "before", "after", "author", "created_at", "ip_address")
    date_hierarchy = "created_at"
    ordering = ("-created_at",)
    list_per_page = 50
