from __future__ import annotations
import threading
from typing import Optional, Any
import logging
import uuid

_local = threading.local()

def get_current_user() -> Optional[Any]:
    """Retorna o usuário atual armazenado no thread-local, ou None se não houver."""
    return getattr(_local, "user", None)

def get_current_ip() -> Optional[str]:
    """Retorna o IP do request atual, ou None fora de um request."""
    return getattr(_local, "ip", None)

def _client_ip(request) -> Optional[str]:
    xff = request.META.get("HTTP_X_FORWARDED_FOR")
    if xff:
        return xff.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


class CurrentUserMiddleware:
    """Armazena request.user e o IP num thread-local para serem lidos pelos signals de auditoria."""
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        _local.user = request.user if getattr(request, "user", None) and request.user.is_authenticated else None
        _local.ip = _client_ip(request)
        try:
            return self.get_response(request)
        finally:
            _local.user = None
            _local.ip = None

class ErrorLoggingMiddleware:
    """Registra as respostas 5xx da API com um id de request para correlação."""
    def __init__(self, get_response):
        self.get_response = get_response
        self.logger = logging.getLogger("django.request")

    def __call__(self, request):
        request_id = request.META.get("HTTP_X_REQUEST_ID") or uuid.uuid4().hex
        try:
            response = self.get_response(request)
        except Exception:
            self.logger.error("Unhandled exception | %s", self._describe(request, request_id), exc_info=True)
            raise
        if response.status_code >= 500:
            self.logger.error("%s response | %s", response.status_code, self._describe(request, request_id))
        return response

    @staticmethod
    def _describe(request, request_id: str) -> str:
        user = getattr(request, "user", None)
        who = user.pk if user is not None and user.is_authenticated else "anon"
        return f"id={request_id} {request.method} {request.path} user={who} ip={_client_ip(request)}"
