from __future__ import annotations
import json
from typing import Any, Dict, Iterable, Optional

from django.forms.models import model_to_dict

from core.middleware import get_current_ip, get_current_user
from rostering.domain.models import AuditLog

def snapshot_instance(instance, *, exclude: Iterable[str] = ("id",)) -> Dict[str, Any]:
    """Estado do registro como dicionário serializável em JSON.

    Chaves estrangeiras ficam como ids; datas e horários viram string ISO.
    """
    data = model_to_dict(instance, exclude=list(exclude))
    return json.loads(json.dumps(data, default=str))

def audit(
    action: str,
    instance, *,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Grava uma linha de AuditLog para a escrita em `instance`.

    Autor e IP vêm do request corrente (CurrentUserMiddleware); fora de um
    request, como em tasks e comandos, ficam vazios.

    Args:
        action (str): "create", "update" ou "delete".
        instance (Model): O registro afetado.
        before (Optional[Dict[str, Any]], optional): Snapshot anterior. Defaults to None.
        after (Optional[Dict[str, Any]], optional): Snapshot posterior. Defaults to None.

    Returns:
        AuditLog: O registro de auditoria criado.
    """
    return AuditLog.objects.create(
        action=action,
        table=instance._meta.db_table,
        record_id=str(instance.pk),
        before=before,
        after=after,
        author=get_current_user(),
        ip_address=get_current_ip(),
    )
