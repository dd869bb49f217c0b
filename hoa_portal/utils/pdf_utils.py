from pathlib import Path
from textwrap import wrap
from typing import Iterable

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..config import settings

MARGIN_X = 72  # 1 inch
MARGIN_Y = 72
MAX_CHARS_PER_LINE = 90
ASSOCIATION_NAME = "Homeowners Association"


def _output_path(filename: str) -> Path:
    base = Path(settings.pdf_output_dir)
    base.mkdir(parents=True, exist_ok=True)
    return base / filename


def _write_pdf(filename: str, lines: Iterable[str]) -> str:
    path = _output_path(filename)
    pdf_canvas = canvas.Canvas(str(path), pagesize=A4)
    width, height = A4
    text_stream = pdf_canvas.beginText(MARGIN_X, height - MARGIN_Y)
    text_stream.setFont("Helvetica", 12)

    for line in lines:
        normalized = "" if line is None else str(line)
        if normalized.strip() == "":
            text_stream.textLine("")
            continue
        for chunk in wrap(normalized, MAX_CHARS_PER_LINE) or [normalized]:
            text_stream.textLine(chunk)

    pdf_canvas.drawText(text_stream)
    pdf_canvas.showPage()
    pdf_canvas.save()
    return str(path)


def generate_payment_receipt_pdf(payment, due, payer) -> str:
    reviewed = payment.reviewed_at or payment.date_paid
    lines = [
        ASSOCIATION_NAME,
        "Official Receipt",
        "",
        f"Receipt #: {payment.payment_id}",
        f"Received From: {payer.full_name if payer else 'Unknown'}",
        f"Unit: {payer.address if payer else ''}",
        "",
        f"Billing Month: {due.billing_month.strftime('%B %Y')}",
        f"Dues: PHP {due.amount:,.2f}",
        f"Penalty: PHP {due.penalty:,.2f}",
        f"Amount Paid: PHP {payment.amount:,.2f}",
        f"Payment Method: {payment.method}",
        f"Date Paid: {payment.date_paid:%Y-%m-%d %H:%M}",
        f"Verified On: {reviewed:%Y-%m-%d}",
        "",
        "Thank you for your payment.",
    ]
    return _write_pdf(f"receipt_{payment.payment_id}.pdf", lines)
