from __future__ import annotations

from io import BytesIO
from typing import Dict, Iterable, List, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from rostering.domain.models import Department, RosterEntry
from rostering.domain.repositories import RosterRepository
from rostering.services.calendar import service_occurrences, service_start_time

MONTH_NAMES = [
    "", "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]

# =========================
# Utilidades
# =========================

def _autosize_columns(ws, max_width: int = 60):
    """Ajusta a largura das colunas com base no conteúdo.

    Args:
        ws (_type_): A planilha do Excel.
        max_width (int, optional): A largura máxima da coluna. Defaults to 60.
    """
    for col_idx, column_cells in enumerate(ws.columns, start=1):
        length = 0
        for cell in column_cells:
            v = "" if cell.value is None else str(cell.value)
            length = max(length, len(v))
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max(10, length + 2), max_width)

def _header(ws, labels: Iterable[str]):
    ws.append(list(labels))
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")
    ws.freeze_panes = "A2"

def _member_name(entry: RosterEntry) -> str:
    user = entry.member.user
    profile = getattr(user, "profile", None)
    return (profile.full_name if profile else None) or user.get_full_name() or user.get_username()

# =========================
# Export principal
# =========================

def export_department_month_xlsx(department: Department, year: int, month: int) -> bytes:
    """Exporta a escala mensal de um departamento para XLSX.

    A primeira aba lista cada escala; a segunda monta a grade culto x função,
    incluindo os cultos do mês ainda sem ninguém escalado.

    Args:
        department (Department): O departamento.
        year (int): O ano da escala.
        month (int): O mês da escala.

    Returns:
        bytes: O conteúdo do arquivo XLSX.
    """
    wb = Workbook()

    ws = wb.active
    ws.title = f"Escala ({year}-{month:02d})"
    _header(ws, ["Data", "Hora", "Culto", "Função", "Membro"])

    entries: List[RosterEntry] = list(RosterRepository.month_for_department(department.id, year, month))
    for e in entries:
        c_data = ws.cell(row=ws.max_row + 1, column=1, value=e.schedule_date)
        c_time = ws.cell(row=ws.max_row,     column=2, value=service_start_time(e.service_day))
        ws.cell(row=ws.max_row, column=3, value=e.service_day.name)
        ws.cell(row=ws.max_row, column=4, value=e.function.name)
        ws.cell(row=ws.max_row, column=5, value=_member_name(e))

        c_data.number_format = "DD/MM/YYYY"
        c_time.number_format = "HH:MM"
        c_data.alignment = Alignment(horizontal="center")
        c_time.alignment = Alignment(horizontal="center")
    _autosize_columns(ws)

    ws2 = wb.create_sheet(title="Grade")
    functions = list(department.functions.order_by("name"))
    _header(ws2, [f"{MONTH_NAMES[month]} {year}", "Culto"] + [f.name for f in functions])

    slots: Dict[Tuple, Dict[int, str]] = {}
    for key, slot_entries in RosterRepository.by_slot(entries).items():
        slots[key] = {e.function_id: _member_name(e) for e in slot_entries}

    for d, sd in service_occurrences(department.organization_id, year, month):
        names = slots.get((d, sd.id), {})
        row = ws2.max_row + 1
        c_data = ws2.cell(row=row, column=1, value=d)
        ws2.cell(row=row, column=2, value=sd.name)
        for idx, f in enumerate(functions, start=3):
            ws2.cell(row=row, column=idx, value=names.get(f.id, ""))
        c_data.number_format = "DD/MM/YYYY"

    _autosize_columns(ws2)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
