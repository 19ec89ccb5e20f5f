"""
PDF helpers: template inspection (pypdf) and submission rendering (reportlab).
"""

import io
import logging
from datetime import datetime
from xml.sax.saxutils import escape

from pypdf import PdfReader
from pypdf.errors import PdfReadError
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)


def inspect_pdf(source):
    """
    Read basic facts about a PDF template.

    Args:
        source: File path or binary stream

    Returns:
        Dict with ``pageCount`` and ``fieldNames`` (AcroForm fields)

    Raises:
        ValueError: If the content is not a readable PDF
    """
    try:
        reader = PdfReader(source)
        fields = reader.get_fields() or {}
        return {
            'pageCount': len(reader.pages),
            'fieldNames': sorted(fields.keys()),
        }
    except (PdfReadError, OSError) as e:
        raise ValueError(f"Invalid PDF: {e}") from e


def _display_value(field, value):
    if value is None or value == '':
        return '-'
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, list):
        return ', '.join(str(v) for v in value)
    if field.get('type') == 'signature' and isinstance(value, str) and value.startswith('data:'):
        return '[signed]'
    return str(value)


def render_submission_pdf(form, submission, job=None, submitter=None, company_name=None):
    """
    Render a form submission as a printable PDF.

    Args:
        form: Form template the submission belongs to
        submission: FormSubmission dictionary
        job: Related job dictionary, if still present
        submitter: User who submitted, if known
        company_name: Footer line

    Returns:
        PDF bytes
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=form.get('name', 'Form'))
    story = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'FormTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#1E3A8A'),
        spaceAfter=18,
        alignment=1
    )
    cell_style = ParagraphStyle('Cell', parent=styles['Normal'], fontSize=9, leading=11)

    story.append(Paragraph(escape(form.get('name', 'Form')), title_style))

    submitted_at = submission.get('submittedAt', '')
    try:
        submitted_at = datetime.fromisoformat(submitted_at.replace('Z', '+00:00')).strftime('%d %B %Y %H:%M')
    except ValueError:
        pass

    info = [
        ['Job:', (job or {}).get('title', submission.get('jobId', ''))],
        ['Claim Number:', (job or {}).get('claimNo') or '-'],
        ['Submitted By:', (submitter or {}).get('name', submission.get('submittedBy', ''))],
        ['Submitted At:', submitted_at],
        ['Submission:', f"#{submission.get('submissionNumber', 1)}"],
    ]
    info_table = Table(info, colWidths=[1.6 * inch, 4.8 * inch])
    info_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (0, -1), colors.HexColor('#555555')),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    story.append(info_table)
    story.append(Spacer(1, 0.25 * inch))

    values = submission.get('data', {})
    rows = [[Paragraph('<b>Field</b>', cell_style), Paragraph('<b>Value</b>', cell_style)]]
    for field in form.get('fields', []):
        if field.get('id') not in values:
            continue
        rows.append([
            Paragraph(escape(field.get('label', field['id'])), cell_style),
            Paragraph(escape(_display_value(field, values[field['id']])), cell_style),
        ])

    values_table = Table(rows, colWidths=[3.2 * inch, 3.2 * inch], repeatRows=1)
    values_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#E5E7EB')),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#D1D5DB')),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ]))
    story.append(values_table)

    if company_name:
        story.append(Spacer(1, 0.4 * inch))
        story.append(Paragraph(escape(company_name), styles['Italic']))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    logger.debug(f"Rendered submission {submission.get('id')} ({len(pdf_bytes)} bytes)")
    return pdf_bytes
