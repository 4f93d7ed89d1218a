"""
Email notification for newly created customer requests.

Subscribed to RequestCreated on the event bus. Sending happens over implicit
TLS (SMTP_SSL) in a worker thread; failures are logged and dropped.
"""
from __future__ import annotations
import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional

from config import Settings, settings as default_settings
from events import RequestCreated
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

logger = logging.getLogger("okna-notify")


def render_subject(request: CustomerRequest) -> str:
    return f"Новая заявка #{request.id} от {request.name}"


def _row(title: str, value) -> str:
    return f"<p><strong>{title}:</strong> {escape(str(value))}</p>"


def render_html(request: CustomerRequest) -> str:
    parts = [
        "<h2>Новая заявка</h2>",
        _row("ID", request.id),
        _row("Имя", request.name),
        _row("Телефон", request.phone),
        _row("Email", request.email),
        _row("Сообщение", request.message or EMPTY),
        _row("Дата", format_date(request.date, with_seconds=True)),
        _row("Статус", label_for(LabelDictionary.STATUS, request.status)),
    ]
    calc = request.calculator_data
    if calc is None:
        parts.append("<p>Данные калькулятора отсутствуют</p>")
    else:
        product = calc.selected_product
        parts += [
            "<h3>Данные калькулятора</h3>",
            _row("Выбранный товар", product.name if product and product.name else EMPTY),
            _row("Размер", size_text(calc.width, calc.height)),
            _row("Площадь", area_text(calc.area)),
            _row("Тип окна", label_or_empty(LabelDictionary.WINDOW_TYPE, calc.window_type)),
            _row("Материал", label_or_empty(LabelDictionary.MATERIAL, calc.material)),
            _row("Остекление", label_or_empty(LabelDictionary.GLAZING, calc.glazing_type)),
            _row("Доп. функции", feature_list(calc.additional_features)),
            _row("Количество", quantity_text(calc.quantity)),
        ]
    return "\n".join(parts)


class Mailer:
    """Thin SMTP sender configured from Settings."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    def build_message(self, subject: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart()
        msg["From"] = self.config.EMAIL_USER
        msg["To"] = self.config.NOTIFY_TO
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def send(self, subject: str, html: str) -> None:
        msg = self.build_message(subject, html)
        with smtplib.SMTP_SSL(self.config.SMTP_HOST, self.config.SMTP_PORT, timeout=30) as server:
            server.login(self.config.EMAIL_USER, self.config.EMAIL_PASS)
            server.send_message(msg)


class RequestNotifier:
    """Event handler: one email per created request."""

    def __init__(self, mailer: Optional[Mailer] = None):
        self.mailer = mailer or Mailer()

    async def __call__(self, event: RequestCreated) -> None:
        request = event.request
        if not self.mailer.config.notifications_enabled:
            logger.warning("Email not configured, skipping notification for request #%s", request.id)
            return
        try:
            await asyncio.to_thread(self.mailer.send, render_subject(request), render_html(request))
        except Exception:
            logger.exception("Failed to send email for request #%s", request.id)
            return
        logger.info("Email sent for request #%s", request.id, extra={"request_doc_id": request.id})
