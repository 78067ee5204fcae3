import logging

from rest_framework.views import exception_handler as drf_exception_handler

from rostering.domain.errors import DeadlineExceeded, RosterError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """Envolve o handler padrão do DRF.

    * acrescenta status_code e o código do erro ao payload
    * informa o início do mês editável em DeadlineExceeded
    * registra erros de domínio no log
    """
    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(response.data, dict):
        response.data["status_code"] = response.status_code
        if isinstance(exc, RosterError):
            response.data["code"] = exc.default_code
        if isinstance(exc, DeadlineExceeded):
            response.data["editable_from"] = exc.editable_from.isoformat()

    if isinstance(exc, RosterError):
        view = context.get("view")
        logger.info(
            "API %s em %s: %s",
            exc.default_code,
            type(view).__name__ if view is not None else "?",
            exc.detail,
        )
    return response
