from rest_framework import serializers

from rostering.domain.models import (
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
# Cadastros
# =========================

class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = ["id","name","theme_config","created_at","updated_at"]
        read_only_fields = ("id","created_at","updated_at")

class ProfileSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    class Meta:
        model = Profile
        fields = ["id","user","username","organization","org_role","full_name","email","phone","avatar_url"]
        read_only_fields = ("id","username")

class ServiceDaySerializer(serializers.ModelSerializer):
    weekday_display = serializers.CharField(source="get_weekday_display", read_only=True)
    class Meta:
        model = ServiceDay
        fields = ["id","organization","weekday","weekday_display","name","start_time"]
        read_only_fields = ("id","weekday_display")

class DepartmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ["id","organization","name","parent","priority_order","availability_deadline_day","description"]
        read_only_fields = ("id",)

    def validate(self, attrs):
        parent = attrs.get("parent")
        org = attrs.get("organization") or getattr(self.instance, "organization", None)
        if parent is not None and org is not None and parent.organization_id != org.id:
            raise serializers.ValidationError({"parent": "O departamento pai deve ser da mesma organização."})
        if parent is not None and self.instance is not None and parent.pk == self.instance.pk:
            raise serializers.ValidationError({"parent": "Um departamento não pode ser pai de si mesmo."})
        return attrs

class DepartmentFunctionSerializer(serializers.ModelSerializer):
    department_name = serializers.CharField(source="department.name", read_only=True)
    class Meta:
        model = DepartmentFunction
        fields = ["id","department","department_name","name","description"]
        read_only_fields = ("id","department_name")

class DepartmentMemberSerializer(serializers.ModelSerializer):
    full_name = serializers.SerializerMethodField()
    function_ids = serializers.PrimaryKeyRelatedField(source="functions", many=True, read_only=True)
    class Meta:
        model = DepartmentMember
        fields = ["id","department","user","full_name","dept_role","function_ids"]
        read_only_fields = ("id","full_name","function_ids")

    def get_full_name(self, obj):
        profile = getattr(obj.user, "profile", None)
        return (profile.full_name if profile else None) or obj.user.get_full_name() or obj.user.get_username()

class MemberFunctionSerializer(serializers.ModelSerializer):
    function_name = serializers.CharField(source="function.name", read_only=True)
    class Meta:
        model = MemberFunction
        fields = ["id","member","function","function_name"]
        read_only_fields = ("id","function_name")

    def validate(self, attrs):
        member, function = attrs.get("member"), attrs.get("function")
        if member is not None and function is not None and member.department_id != function.department_id:
            raise serializers.ValidationError("A função deve pertencer ao departamento do membro.")
        return attrs

class DepartmentLeaderSerializer(serializers.ModelSerializer):
    class Meta:
        model = DepartmentLeader
        fields = ["id","department","user"]
        read_only_fields = ("id",)

# =========================
# Disponibilidade
# =========================

class AvailabilityRoutineSerializer(serializers.ModelSerializer):
    service_day_name = serializers.CharField(source="service_day.name", read_only=True)
    class Meta:
        model = AvailabilityRoutine
        fields = ["id","user","service_day","service_day_name","is_available","updated_at"]
        read_only_fields = ("id","user","service_day_name","updated_at")

class AvailabilityExceptionSerializer(serializers.ModelSerializer):
    service_day_name = serializers.CharField(source="service_day.name", read_only=True, default=None)
    class Meta:
        model = AvailabilityException
        fields = ["id","user","specific_date","service_day","service_day_name","is_available","notes","updated_at"]
        read_only_fields = ("id","user","specific_date","service_day","service_day_name","updated_at")

class RoutineInputSerializer(serializers.Serializer):
    service_day = serializers.IntegerField()
    is_available = serializers.BooleanField()

class ExceptionInputSerializer(serializers.Serializer):
    specific_date = serializers.DateField()
    service_day = serializers.IntegerField(required=False, allow_null=True)
    is_available = serializers.BooleanField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

class MonthDayInputSerializer(serializers.Serializer):
    date = serializers.DateField()
    is_available = serializers.BooleanField()

class MonthInputSerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=1)
    month = serializers.IntegerField(min_value=1, max_value=12)
    days = MonthDayInputSerializer(many=True, allow_empty=False)

# =========================
# Escala
# =========================

class RosterEntrySerializer(serializers.ModelSerializer):
    department_name = serializers.CharField(source="department.name", read_only=True)
    function_name = serializers.CharField(source="function.name", read_only=True)
    service_day_name = serializers.CharField(source="service_day.name", read_only=True)
    user_id = serializers.IntegerField(source="member.user_id", read_only=True)
    full_name = serializers.SerializerMethodField()
    class Meta:
        model = RosterEntry
        fields = [
            "id","department","department_name","function","function_name",
            "member","user_id","full_name","service_day","service_day_name",
            "schedule_date","created_by","created_at",
        ]
        read_only_fields = fields

    def get_full_name(self, obj):
        user = obj.member.user
        profile = getattr(user, "profile", None)
        return (profile.full_name if profile else None) or user.get_full_name() or user.get_username()

class AssignInputSerializer(serializers.Serializer):
    department = serializers.IntegerField()
    function = serializers.IntegerField()
    member = serializers.IntegerField()
    service_day = serializers.IntegerField()
    schedule_date = serializers.DateField()
