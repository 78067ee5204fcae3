from __future__ import annotations

from datetime import time

from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from django.db import transaction

from rostering.domain.models import (
    Department,
    DepartmentFunction,
    DepartmentLeader,
    DepartmentMember,
    DeptRole,
    MemberFunction,
    Organization,
    OrgRole,
    Profile,
    ServiceDay,
)

DEFAULT_NAMES = [
    "Ana Souza", "Bruno Lima", "Carla Dias", "Davi Rocha", "Elisa Prado",
    "Felipe Melo", "Gabriela Reis", "Heitor Nunes",
]

SERVICE_DAYS = [
    (0, "Culto de Domingo (Manhã)", time(9, 0)),
    (0, "Culto de Domingo (Noite)", time(19, 0)),
    (3, "Culto de Quarta", time(20, 0)),
]

# nome, prioridade, funções
DEPARTMENTS = [
    ("Louvor", 0, ["Vocal", "Violão", "Teclado", "Bateria"]),
    ("Mídia", 1, ["Projeção", "Transmissão"]),
    ("Som", 2, ["Mesa de Som", "Auxiliar de Palco"]),
]

def _username(name: str) -> str:
    return name.lower().replace(" ", ".")

class Command(BaseCommand):
    help = "Seed demo data (admin + organização + cultos + departamentos + membros). Idempotente."

    def add_arguments(self, parser):
        parser.add_argument("--org", type=str, default="Igreja Demo", help="Nome da organização.")
        parser.add_argument(
            "--names",
            type=str,
            help="Lista de nomes separada por vírgula. Ex.: 'Ana,Beto,Caio'. "
                 "Se omitido, usa uma lista padrão.",
        )
        parser.add_argument("--admin-user", type=str, default="admin", help="Username do superusuário demo (default: admin).")
        parser.add_argument("--admin-email", type=str, default="admin@example.com", help="Email do superusuário demo.")
        parser.add_argument("--admin-pass", type=str, default="admin", help="Senha do superusuário demo (default: admin).")
        parser.add_argument("--password", type=str, default="demo", help="Senha dos voluntários demo (default: demo).")

    @transaction.atomic
    def handle(self, *args, **kwargs):
        admin_user = kwargs["admin_user"]
        names_arg = kwargs.get("names")
        names = [n.strip() for n in names_arg.split(",") if n.strip()] if names_arg else DEFAULT_NAMES

        org, _ = Organization.objects.get_or_create(name=kwargs["org"])

        admin = User.objects.filter(username=admin_user).first()
        if admin is None:
            admin = User.objects.create_superuser(admin_user, kwargs["admin_email"], kwargs["admin_pass"])
            self.stdout.write(self.style.SUCCESS(f"Created superuser {admin_user}:{kwargs['admin_pass']}"))
        else:
            self.stdout.write(self.style.WARNING(f"Superuser {admin_user} already exists."))
        Profile.objects.get_or_create(
            user=admin,
            defaults={"organization": org, "org_role": OrgRole.ADMIN, "full_name": "Administrador", "email": admin.email},
        )

        for weekday, name, start in SERVICE_DAYS:
            ServiceDay.objects.get_or_create(
                organization=org, weekday=weekday, name=name, defaults={"start_time": start}
            )

        departments = []
        for dept_name, priority, function_names in DEPARTMENTS:
            dept, _ = Department.objects.get_or_create(
                organization=org, name=dept_name, defaults={"priority_order": priority}
            )
            functions = [
                DepartmentFunction.objects.get_or_create(department=dept, name=fn)[0]
                for fn in function_names
            ]
            departments.append((dept, functions))

        created_count = 0
        for idx, full_name in enumerate(names):
            user, created = User.objects.get_or_create(
                username=_username(full_name),
                defaults={"email": f"{_username(full_name)}@example.com"},
            )
            if created:
                user.set_password(kwargs["password"])
                user.save(update_fields=["password"])
                created_count += 1
            Profile.objects.get_or_create(
                user=user,
                defaults={"organization": org, "full_name": full_name, "email": user.email},
            )

            # cada voluntário entra em um departamento (e alguns em dois)
            targets = [departments[idx % len(departments)]]
            if idx % 3 == 0:
                targets.append(departments[(idx + 1) % len(departments)])
            for dept, functions in targets:
                role = DeptRole.LEADER if idx < len(departments) and dept is targets[0][0] else DeptRole.MEMBER
                member, _ = DepartmentMember.objects.get_or_create(
                    department=dept, user=user, defaults={"dept_role": role}
                )
                if role == DeptRole.LEADER:
                    DepartmentLeader.objects.get_or_create(department=dept, user=user)
                for fn in functions[idx % len(functions):][:2]:
                    MemberFunction.objects.get_or_create(member=member, function=fn)

        self.stdout.write(self.style.SUCCESS(
            f"Seed concluído para '{org.name}': {created_count} voluntário(s) criados, "
            f"{len(departments)} departamento(s), {len(SERVICE_DAYS)} culto(s)."
        ))
