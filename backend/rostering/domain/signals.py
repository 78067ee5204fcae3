from __future__ import annotations

from typing import Dict, FrozenSet, Type

from django.db import models
from django.db.models.signals import post_delete, post_save, pre_save

from .models import (
    AvailabilityException,
    AvailabilityRoutine,
    Department,
    DepartmentLeader,
    DepartmentMember,
    MemberFunction,
    RosterEntry,
)
from rostering.services.audit import audit, snapshot_instance

# Modelos auditados e os campos que ficam fora do snapshot
AUDITED: Dict[Type[models.Model], FrozenSet[str]] = {
    RosterEntry: frozenset({"id"}),
    AvailabilityRoutine: frozenset({"id"}),
    AvailabilityException: frozenset({"id"}),
    Department: frozenset({"id"}),
    DepartmentMember: frozenset({"id", "functions"}),
    MemberFunction: frozenset({"id"}),
    DepartmentLeader: frozenset({"id"}),
}

# ========= Handlers genéricos =========

def _snapshot(instance) -> dict:
    return snapshot_instance(instance, exclude=AUDITED[type(instance)])

def _audited_pre_save(sender, instance, **kwargs) -> None:
    """Captura o estado anterior antes de salvar."""
    instance._before_snapshot = None
    if not instance.pk:
        return
    old = sender.objects.filter(pk=instance.pk).first()
    if old is not None:
        instance._before_snapshot = _snapshot(old)

def _audited_post_save(sender, instance, created: bool, raw: bool = False, **kwargs) -> None:
    if raw:
        return
    action = "create" if created else "update"
    audit(action, instance, before=getattr(instance, "_before_snapshot", None), after=_snapshot(instance))

def _audited_post_delete(sender, instance, **kwargs) -> None:
    audit("delete", instance, before=_snapshot(instance), after=None)

for _model in AUDITED:
    uid = _model._meta.label_lower
    pre_save.connect(_audited_pre_save, sender=_model, dispatch_uid=f"audit_pre_save:{uid}")
    post_save.connect(_audited_post_save, sender=_model, dispatch_uid=f"audit_post_save:{uid}")
    post_delete.connect(_audited_post_delete, sender=_model, dispatch_uid=f"audit_post_delete:{uid}")
