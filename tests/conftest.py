import pytest
from datetime import time
from django.contrib.auth.models import User

from rostering.models import (
    Department,
    DepartmentFunction,
    DepartmentMember,
    DeptRole,
    MemberFunction,
    Organization,
    OrgRole,
    Profile,
    ServiceDay,
)

# Outubro/2025: domingos 5, 12, 19, 26; quartas 1, 8, 15, 22, 29.

@pytest.fixture
def org(db):
    return Organization.objects.create(name="Igreja Central")

@pytest.fixture
def make_user(org):
    def _make(username, full_name=None, organization=None, role=OrgRole.MEMBER):
        user = User.objects.create_user(username, f"{username}@example.com", "pw")
        Profile.objects.create(
            user=user,
            organization=organization or org,
            full_name=full_name or username.title(),
            email=user.email,
            org_role=role,
        )
        return user
    return _make

@pytest.fixture
def sunday_am(org):
    return ServiceDay.objects.create(organization=org, weekday=0, name="Domingo Manhã", start_time=time(9, 0))

@pytest.fixture
def sunday_pm(org):
    return ServiceDay.objects.create(organization=org, weekday=0, name="Domingo Noite", start_time=time(19, 0))

@pytest.fixture
def wednesday(org):
    return ServiceDay.objects.create(organization=org, weekday=3, name="Culto de Quarta", start_time=time(20, 0))

@pytest.fixture
def louvor(org):
    return Department.objects.create(organization=org, name="Louvor", priority_order=0, availability_deadline_day=20)

@pytest.fixture
def som(org):
    return Department.objects.create(organization=org, name="Som", priority_order=1, availability_deadline_day=20)

@pytest.fixture
def vocal(louvor):
    return DepartmentFunction.objects.create(department=louvor, name="Vocal")

@pytest.fixture
def mesa(som):
    return DepartmentFunction.objects.create(department=som, name="Mesa de Som")

@pytest.fixture
def add_member():
    def _add(department, user, *functions, role=DeptRole.MEMBER):
        member = DepartmentMember.objects.create(department=department, user=user, dept_role=role)
        for fn in functions:
            MemberFunction.objects.create(member=member, function=fn)
        return member
    return _add
