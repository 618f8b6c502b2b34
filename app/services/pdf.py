"""
PDF export service.
Renders quote PDFs with ReportLab and issues the signed tokens that
authorize downloading them.
"""

import html
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from app.core.config import settings
from app.core.security import create_pdf_token, decode_pdf_token, PdfTokenData
from app.models.quote import Quote


class PDFService:
    """Service for quote PDFs and their download tokens."""

    def __init__(self):
        # Colors
        self.primary_color = colors.HexColor("#0E7490")  # Teal
        self.secondary_color = colors.HexColor("#155E75")
        self.gray_color = colors.HexColor("#6B7280")
        self.light_gray = colors.HexColor("#F3F4F6")
        self.border_color = colors.HexColor("#E5E7EB")

    @staticmethod
    def issue_token(quote: Quote) -> str:
        """Issue a download token bound to one quote."""
        return create_pdf_token(quote.id, quote.quote_number)

    @staticmethod
    def validate_token(token: str | None, quote_id: int) -> PdfTokenData | None:
        """Return the token payload if it authorizes ``quote_id``."""
        if not token:
            return None
        return decode_pdf_token(token, quote_id)

    @staticmethod
    def filename(quote: Quote) -> str:
        return f"cotizacion-{quote.quote_number}.pdf"

    def _get_styles(self):
        """Get custom paragraph styles."""
        styles = getSampleStyleSheet()

        styles.add(ParagraphStyle(
            name='QuoteTitle',
            parent=styles['Heading1'],
            fontSize=22,
            textColor=self.primary_color,
            spaceAfter=6*mm,
        ))
        styles.add(ParagraphStyle(
            name='Subtitle',
            parent=styles['Normal'],
            fontSize=10,
            textColor=self.gray_color,
        ))
        styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=styles['Heading2'],
            fontSize=12,
            textColor=self.secondary_color,
            spaceBefore=4*mm,
            spaceAfter=2*mm,
        ))
        styles.add(ParagraphStyle(
            name='NormalText',
            parent=styles['Normal'],
            fontSize=10,
            textColor=colors.black,
        ))
        styles.add(ParagraphStyle(
            name='SmallText',
            parent=styles['Normal'],
            fontSize=8,
            textColor=self.gray_color,
        ))
        styles.add(ParagraphStyle(
            name='RightAlign',
            parent=styles['Normal'],
            fontSize=10,
            alignment=TA_RIGHT,
        ))
        styles.add(ParagraphStyle(
            name='Bold',
            parent=styles['Normal'],
            fontSize=10,
            fontName='Helvetica-Bold',
        ))

        return styles

    def _format_currency(self, amount: Decimal) -> str:
        """Format amount as Colombian pesos."""
        return "$ " + f"{amount:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")

    def _format_date(self, d: date) -> str:
        """Format date in Spanish."""
        months = [
            "enero", "febrero", "marzo", "abril", "mayo", "junio",
            "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre"
        ]
        return f"{d.day} de {months[d.month - 1]} de {d.year}"

    async def generate_quote_pdf(self, quote: Quote) -> bytes:
        """
        Render a quote as a PDF document.

        Args:
            quote: Quote with items, lenses and patient loaded

        Returns:
            PDF file content
        """
        styles = self._get_styles()
        buffer = BytesIO()

        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=20*mm,
            leftMargin=20*mm,
            topMargin=20*mm,
            bottomMargin=20*mm,
            title=f"Cotización {quote.quote_number}",
        )

        elements = []

        # ===== HEADER =====
        header_data = [
            [
                Paragraph(f"<b>{html.escape(settings.APP_NAME)}</b>", styles['Bold']),
                Paragraph("<b>COTIZACIÓN</b>", styles['QuoteTitle']),
            ],
            [
                Paragraph("", styles['SmallText']),
                Paragraph(f"N° {quote.quote_number}", styles['Subtitle']),
            ],
            [
                Paragraph("", styles['SmallText']),
                Paragraph(f"Fecha: {self._format_date(quote.created_at.date())}", styles['SmallText']),
            ],
            [
                Paragraph("", styles['SmallText']),
                Paragraph(f"Válida hasta: {self._format_date(quote.expiration_date)}", styles['SmallText']),
            ],
        ]

        header_table = Table(header_data, colWidths=[95*mm, 75*mm])
        header_table.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ]))
        elements.append(header_table)
        elements.append(Spacer(1, 10*mm))

        # ===== PATIENT INFO =====
        patient = quote.patient
        if patient:
            elements.append(Paragraph("PACIENTE", styles['SectionHeader']))
            patient_info = (
                f"<b>{html.escape(patient.full_name)}</b><br/>"
                f"Identificación: {html.escape(patient.identification)}"
            )
            if patient.phone:
                patient_info += f"<br/>Tel: {html.escape(patient.phone)}"
            if patient.email:
                patient_info += f"<br/>Email: {html.escape(patient.email)}"
            elements.append(Paragraph(patient_info, styles['NormalText']))
            elements.append(Spacer(1, 8*mm))

        # ===== ITEMS TABLE =====
        elements.append(Paragraph("DETALLE", styles['SectionHeader']))

        items_data = [
            [
                Paragraph("<b>Lente</b>", styles['Bold']),
                Paragraph("<b>Cant.</b>", styles['Bold']),
                Paragraph("<b>Precio</b>", styles['Bold']),
                Paragraph("<b>Desc.</b>", styles['Bold']),
                Paragraph("<b>Total</b>", styles['Bold']),
            ]
        ]

        for item in quote.items:
            lens = item.lens
            label = f"<b>{html.escape(lens.identifier)}</b>"
            if lens.brand:
                label += f" - {html.escape(lens.brand)}"
            if lens.description:
                label += f"<br/>{html.escape(lens.description)}"
            items_data.append([
                Paragraph(label, styles['NormalText']),
                Paragraph(str(item.quantity), styles['RightAlign']),
                Paragraph(self._format_currency(item.price), styles['RightAlign']),
                Paragraph(self._format_currency(item.discount), styles['RightAlign']),
                Paragraph(self._format_currency(item.total), styles['RightAlign']),
            ])

        items_table = Table(
            items_data,
            colWidths=[70*mm, 18*mm, 30*mm, 27*mm, 30*mm],
            repeatRows=1,
        )
        items_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), self.primary_color),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 10),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 4*mm),
            ('TOPPADDING', (0, 0), (-1, 0), 4*mm),
            ('FONTSIZE', (0, 1), (-1, -1), 9),
            ('BOTTOMPADDING', (0, 1), (-1, -1), 3*mm),
            ('TOPPADDING', (0, 1), (-1, -1), 3*mm),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('LINEBELOW', (0, 1), (-1, -2), 0.5, self.border_color),
            ('LINEBELOW', (0, -1), (-1, -1), 1, self.border_color),
            *[('BACKGROUND', (0, i), (-1, i), self.light_gray)
              for i in range(2, len(items_data), 2)],
        ]))

        elements.append(items_table)
        elements.append(Spacer(1, 6*mm))

        # ===== TOTALS =====
        tax_percent = (settings.TAX_RATE * 100).normalize()
        totals_data = [
            ["Subtotal", self._format_currency(quote.subtotal)],
            [f"IVA ({tax_percent}%)", self._format_currency(quote.tax)],
            ["Descuento", f"- {self._format_currency(quote.discount)}"],
            ["Total", self._format_currency(quote.total)],
        ]

        totals_table = Table(totals_data, colWidths=[130*mm, 45*mm])
        totals_table.setStyle(TableStyle([
            ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TOPPADDING', (0, 0), (-1, -1), 2*mm),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 2*mm),
            ('LINEABOVE', (0, -1), (-1, -1), 1, self.primary_color),
            ('BACKGROUND', (0, -1), (-1, -1), self.light_gray),
        ]))

        elements.append(totals_table)
        elements.append(Spacer(1, 10*mm))

        elements.append(Paragraph(
            f"<b>Esta cotización es válida hasta el {self._format_date(quote.expiration_date)}</b>",
            styles['NormalText'],
        ))
        elements.append(Spacer(1, 6*mm))

        if quote.notes:
            elements.append(Paragraph("NOTAS", styles['SectionHeader']))
            elements.append(Paragraph(html.escape(quote.notes), styles['NormalText']))
            elements.append(Spacer(1, 4*mm))

        # ===== FOOTER =====
        elements.append(Spacer(1, 10*mm))
        elements.append(Paragraph(
            f"<i>Generado el {self._format_date(datetime.now().date())}</i>",
            styles['SmallText'],
        ))

        doc.build(elements)
        return buffer.getvalue()
