from __future__ import annotations

import functools
import logging
from datetime import date
from typing import Optional

from django.db import InterfaceError, OperationalError
from rest_framework import status
from rest_framework.exceptions import APIException

log = logging.getLogger(__name__)

# =========================
# Taxonomia de erros do domínio
# =========================

class RosterError(APIException):
    """Base de todos os erros de escala/disponibilidade."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Erro de escala."
    default_code = "roster_error"

class NotFound(RosterError):
    """Entidade referenciada inexistente ou fora do escopo da organização."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Registro não encontrado."
    default_code = "not_found"

class DeadlineExceeded(RosterError):
    """Escrita de disponibilidade fora do mês editável."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "O prazo para informar disponibilidade já passou."
    default_code = "deadline_exceeded"

    def __init__(self, editable_from: date, detail: Optional[str] = None):
        self.editable_from = editable_from
        if detail is None:
            detail = (
                "O prazo para informar disponibilidade já passou. "
                f"Só é possível editar a partir de {editable_from:%d/%m/%Y}."
            )
        super().__init__(detail=detail)

class SlotOccupied(RosterError):
    """Já existe uma escala para (departamento, função, data, culto)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Esta função já está preenchida neste culto. Selecione outra vaga ou outro membro."
    default_code = "slot_occupied"

class Unauthorized(RosterError):
    """Usuário sem papel de líder/admin para a operação."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Você não tem permissão para realizar esta ação."
    default_code = "unauthorized"

class TransientIO(RosterError):
    """Falha de comunicação com o banco de dados."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Serviço temporariamente indisponível. Tente novamente."
    default_code = "transient_io"

# =========================
# Helpers
# =========================

def translate_io_errors(func):
    """Converte falhas de conexão do banco em TransientIO, sem retentativas."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            log.warning("Falha de IO em %s: %s", func.__qualname__, exc)
            raise TransientIO() from exc
    return wrapper
