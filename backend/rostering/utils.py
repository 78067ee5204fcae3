from typing import Tuple, Any
from datetime import date
import calendar as pycal
import json

from django.http import HttpRequest
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.conf import settings

# =========================
# Helpers
# =========================

def _request_params(request: HttpRequest) -> Tuple[Any, Any]:
    """Retorna (query params, corpo) de um request Django ou DRF."""
    if hasattr(request, "query_params"):
        qp = request.query_params
        dp = getattr(request, "data", {}) or {}
    else:
        qp = getattr(request, "GET", {}) or {}
        dp = {}
        if request.META.get("CONTENT_TYPE", "").startswith("application/json"):
            try:
                dp = json.loads((request.body or b"{}").decode("utf-8")) or {}
            except ValueError:
                dp = {}
    return qp, dp

def _get_ym_from_request(request: HttpRequest, default_today: bool = True) -> Tuple[int, int, str | None]:
    """Extrai ano e mês da query string."""
    qp, dp = _request_params(request)
    y = qp.get("year") or qp.get("ano") or dp.get("year") or dp.get("ano")
    m = qp.get("month") or qp.get("mes") or dp.get("month") or dp.get("mes")

    if y is None or m is None:
        if not default_today:
            return None, None, "Parâmetros 'year/ano' e 'month/mes' são obrigatórios."
        today = timezone.localdate()
        y = y or today.year
        m = m or today.month
    try:
        y = int(y)
        m = int(m)
    except (TypeError, ValueError):
        return None, None, "Parâmetros 'year' e 'month' devem ser números inteiros."
    if not (1 <= m <= 12):
        return None, None, "Parâmetro 'month' deve estar entre 1 e 12."
    return y, m, None

def _get_date_from_request(request: HttpRequest, name: str = "date") -> Tuple[date | None, str | None]:
    """Extrai uma data ISO (YYYY-MM-DD) da query string ou do corpo."""
    qp, dp = _request_params(request)
    raw = qp.get(name) or dp.get(name)
    if not raw:
        return None, f"Parâmetro '{name}' é obrigatório (YYYY-MM-DD)."
    try:
        value = parse_date(str(raw))
    except ValueError:
        value = None
    if value is None:
        return None, f"Parâmetro '{name}' deve estar no formato YYYY-MM-DD."
    return value, None

def _get_setting(name: str, default: Any = None) -> Any:
    """Obtém uma configuração do Django settings com um valor padrão."""
    return getattr(settings, name, default)

def sunday_weekday(d: date) -> int:
    """Dia da semana com domingo=0 ... sábado=6."""
    return (d.weekday() + 1) % 7

def add_months(d: date, months: int) -> date:
    """Primeiro dia do mês deslocado `months` meses a partir de `d`."""
    idx = d.year * 12 + (d.month - 1) + months
    return date(idx // 12, idx % 12 + 1, 1)

def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Primeiro e último dia do mês."""
    last = pycal.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)
