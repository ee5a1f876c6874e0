# reports.py
# Monthly PDF export of work logs (reportlab).
from __future__ import annotations

import io
from datetime import date
from typing import Sequence

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain import TimeFormat, UserProfile, WorkLog
from services import days_worked, total_earnings, total_hours
from utils import format_money, logs_to_dataframe

MARGIN = 24
HEADER_BG = colors.HexColor("#EEF1F6")
RULE = colors.HexColor("#C7CCD6")

LOG_TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, -1), 9),
    ("ALIGN", (0, 0), (-1, -1), "CENTER"),
    ("ALIGN", (-1, 1), (-1, -1), "LEFT"),  # notes
    ("LINEBELOW", (0, 0), (-1, -1), 0.25, RULE),
    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]),
])


def month_title(first_day: date) -> str:
    return first_day.strftime("%B %Y")


def _log_table(df: pd.DataFrame) -> Table:
    rows = [list(df.columns)] + df.astype(str).values.tolist()
    table = Table(rows, repeatRows=1)
    table.setStyle(LOG_TABLE_STYLE)
    return table


def _summary_box(text: str, width: float, style: ParagraphStyle) -> Table:
    box = Table([[Paragraph(text, style)]], colWidths=[width])
    box.setStyle(TableStyle([("BOX", (0, 0), (-1, -1), 0.6, RULE), ("TOPPADDING", (0, 0), (-1, -1), 6),
                             ("BOTTOMPADDING", (0, 0), (-1, -1), 6)]))
    return box


def _frame_page(canvas, doc):
    w, h = doc.pagesize
    canvas.saveState()
    canvas.setStrokeColor(RULE)
    canvas.rect(MARGIN / 2, MARGIN / 2, w - MARGIN, h - MARGIN)
    canvas.setFont("Helvetica", 8)
    canvas.drawRightString(w - MARGIN, MARGIN / 2 + 4, f"Page {doc.page}")
    canvas.restoreState()


def render_pdf(df: pd.DataFrame, title: str, summary: str | None = None) -> bytes:
    """A landscape A4 document: title, one row per log, optional totals box."""
    styles = getSampleStyleSheet()
    centered = ParagraphStyle("Centered", parent=styles["Normal"], alignment=TA_CENTER, fontSize=11)

    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=landscape(A4), title=title,
                            topMargin=MARGIN, bottomMargin=MARGIN, leftMargin=MARGIN, rightMargin=MARGIN)
    story = [Paragraph(title, styles["Title"]), Spacer(1, 8)]
    story.append(Paragraph("No work logged for this period.", centered) if df.empty else _log_table(df))
    if summary:
        story += [Spacer(1, 12), _summary_box(summary, doc.width * 0.6, centered)]
    doc.build(story, onFirstPage=_frame_page, onLaterPages=_frame_page)
    return buf.getvalue()


def build_month_pdf(logs: Sequence[WorkLog], profile: UserProfile | None, title: str) -> bytes:
    default_wage = profile.default_wage if profile else None
    time_format = profile.time_format if profile else TimeFormat.H12
    currency = profile.currency if profile else None
    df = logs_to_dataframe(logs, default_wage=default_wage, time_format=time_format)
    summary = (
        f"{total_hours(logs):.1f} h over {days_worked(logs)} days · "
        f"Earnings: {format_money(total_earnings(logs, default_wage), currency)}"
    )
    return render_pdf(df, title=title, summary=summary)
