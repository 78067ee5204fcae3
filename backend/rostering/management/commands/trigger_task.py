from __future__ import annotations

from typing import Optional
from django.core.management.base import BaseCommand, CommandError

from rostering.tasks import (
    availability_deadline_reminder,
    daily_reminder,
    notify_roster_entry,
)

TASKS = ["daily_reminder", "deadline_reminder", "notify_entry", "all"]


class Command(BaseCommand):
    help = (
        "Dispara tasks do Celery manualmente para testes.\n"
        "Use --sync para executar a task no mesmo processo (sem Celery)."
    )

    def add_arguments(self, parser):
        parser.add_argument("name", choices=TASKS, help="Nome da task a enfileirar/executar.")
        parser.add_argument("--date", type=str, help="Data de referência YYYY-MM-DD (lembretes).")
        parser.add_argument("--entry", type=int, help="ID da escala (para notify_entry).")
        parser.add_argument(
            "--sync",
            action="store_true",
            help="Executa a task de forma síncrona (sem broker/worker).",
        )

    # ====== Helpers ======

    def _task_call(self, name: str, *, ref_date: Optional[str], entry: Optional[int]):
        if name == "daily_reminder":
            return daily_reminder, (ref_date,)
        if name == "deadline_reminder":
            return availability_deadline_reminder, (ref_date,)
        if name == "notify_entry":
            if entry is None:
                raise CommandError("notify_entry exige --entry.")
            return notify_roster_entry, (entry,)
        raise CommandError(f"Task desconhecida: {name}")

    def _run(self, name: str, *, ref_date: Optional[str], entry: Optional[int], sync: bool) -> None:
        task, args = self._task_call(name, ref_date=ref_date, entry=entry)
        if sync:
            result = task(*args)
            self.stdout.write(self.style.SUCCESS(f"[sync] {task.name} → {result}"))
            return
        try:
            res = task.delay(*args)
        except Exception as e:
            self.stderr.write(self.style.ERROR(f"Falha ao enfileirar '{name}': {e}"))
            self.stderr.write("Dica: use --sync para executar sem Celery.")
            raise SystemExit(2)
        self.stdout.write(self.style.SUCCESS(f"[async] enfileirada {task.name}: {res.id}"))

    # ====== Entry point ======

    def handle(self, *args, **opts):
        name: str = opts["name"]
        ref_date: Optional[str] = opts.get("date")
        entry: Optional[int] = opts.get("entry")
        sync: bool = bool(opts.get("sync"))

        names = ["daily_reminder", "deadline_reminder"] if name == "all" else [name]
        for n in names:
            self._run(n, ref_date=ref_date, entry=entry, sync=sync)
