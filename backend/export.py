"""
Spreadsheet export of the admin request list.

One sheet ("Заявки"), one row per request, every coded value translated
through the label dictionaries. The workbook is built in memory.
"""
from __future__ import annotations
import io
import logging
from datetime import date
from typing import Iterable, Optional

import xlsxwriter

from labels import (
    EMPTY,
    LabelDictionary,
    area_text,
    feature_list,
    format_date,
    label_for,
    label_or_empty,
    quantity_text,
    size_text,
)
from schemas import CustomerRequest

logger = logging.getLogger("okna-export")

SHEET_NAME = "Заявки"

COLUMNS: list[tuple[str, int]] = [
    ("ID", 26),
    ("Клиент", 22),
    ("Email", 26),
    ("Телефон", 18),
    ("Сообщение", 40),
    ("Дата", 18),
    ("Статус", 14),
    ("Выбранный товар", 26),
    ("Размер", 16),
    ("Площадь", 12),
    ("Тип окна", 16),
    ("Материал", 22),
    ("Остекление", 20),
    ("Доп. функции", 36),
    ("Количество", 12),
]


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{SHEET_NAME}_{today.isoformat()}.xlsx"


def request_row(request: CustomerRequest) -> list[str]:
    calc = request.calculator_data
    head = [
        request.id,
        request.name,
        request.email,
        request.phone,
        request.message,
        format_date(request.date),
        label_for(LabelDictionary.STATUS, request.status),
    ]
    if calc is None:
        return head + [EMPTY] * (len(COLUMNS) - len(head))
    product = calc.selected_product
    return head + [
        product.name if product and product.name else EMPTY,
        size_text(calc.width, calc.height),
        area_text(calc.area),
        label_or_empty(LabelDictionary.WINDOW_TYPE, calc.window_type),
        label_or_empty(LabelDictionary.MATERIAL, calc.material),
        label_or_empty(LabelDictionary.GLAZING, calc.glazing_type),
        feature_list(calc.additional_features),
        quantity_text(calc.quantity),
    ]


def export_requests(requests: Iterable[CustomerRequest]) -> bytes:
    buf = io.BytesIO()
    wb = xlsxwriter.Workbook(buf, {"in_memory": True})
    hdr = wb.add_format({"bold": True, "bg_color": "#1E293B", "font_color": "#FFFFFF", "border": 1})
    normal = wb.add_format({"border": 1, "font_size": 10, "text_wrap": True, "valign": "top"})

    ws = wb.add_worksheet(SHEET_NAME)
    for col, (title, width) in enumerate(COLUMNS):
        ws.set_column(col, col, width)
    ws.write_row(0, 0, [title for title, _ in COLUMNS], hdr)
    ws.freeze_panes(1, 0)

    count = 0
    for count, request in enumerate(requests, start=1):
        # write_string keeps user text like "=..." from becoming a formula
        for col, value in enumerate(request_row(request)):
            ws.write_string(count, col, value, normal)

    wb.close()
    logger.info("Exported %d requests", count)
    return buf.getvalue()
