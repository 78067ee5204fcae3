from __future__ import annotations

import logging
from typing import List

from django.apps import AppConfig
from django.core.checks import Error, Tags, register

from rostering.utils import _get_setting

log = logging.getLogger(__name__)

# =========================
# System checks (validações de settings)
# =========================

def _validate_time_string(value: str, setting_name: str, error_id: str) -> List[Error]:
    try:
        hh, mm = str(value).split(":")
        h, m = int(hh), int(mm)
        if not (0 <= h <= 23 and 0 <= m <= 59):
            raise ValueError
    except ValueError:
        return [
            Error(
                f"{setting_name} deve estar no formato HH:MM (ex.: '19:00'). Valor atual: {value!r}",
                id=error_id,
            )
        ]
    return []

def _validate_int_range(value, setting_name: str, lo: int, hi: int, error_id: str) -> List[Error]:
    if not isinstance(value, int) or not (lo <= value <= hi):
        return [
            Error(
                f"{setting_name} deve ser um inteiro entre {lo} e {hi}. Valor atual: {value!r}",
                id=error_id,
            )
        ]
    return []

@register(Tags.compatibility)
def rostering_settings_check(app_configs, **kwargs):
    """Garante que os settings essenciais estejam válidos."""
    errors: List[Error] = []

    errors += _validate_int_range(
        _get_setting("DEFAULT_AVAILABILITY_DEADLINE_DAY", 20),
        "DEFAULT_AVAILABILITY_DEADLINE_DAY", 1, 31,
        "rostering.E001",
    )
    errors += _validate_time_string(
        _get_setting("DEFAULT_SERVICE_TIME", "19:00"),
        "DEFAULT_SERVICE_TIME",
        "rostering.E002",
    )
    errors += _validate_int_range(
        _get_setting("REMINDER_DAYS_AHEAD", 7),
        "REMINDER_DAYS_AHEAD", 0, 60,
        "rostering.E003",
    )
    errors += _validate_int_range(
        _get_setting("DEADLINE_REMINDER_DAYS", 3),
        "DEADLINE_REMINDER_DAYS", 0, 31,
        "rostering.E004",
    )
    return errors

# =========================
# AppConfig
# =========================

class RosteringConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'rostering'
    verbose_name = "Escala de Voluntários"

    def ready(self):
        """Conecta os signals de auditoria do domínio."""
        from .domain import signals  # noqa: F401
        log.debug("Signals de auditoria conectados.")
