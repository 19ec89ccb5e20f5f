"""
Notification Service - Job completion emails.

This service handles:
- Mapping completed form ids to display names
- Fetching job photos and attaching them
- Building the HTML and plain-text bodies
- Sending through SMTP (STARTTLS) when configured
"""

import html
import logging
import re
import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

FORM_DISPLAY_NAMES = {
    'noncompliance-form': 'Non Compliance Form',
    'form-noncompliance': 'Non Compliance Form',
    'form-discovery-geyser': 'Discovery Form',
    'material-list-form': 'Material List Form',
    'form-material-list': 'Material List Form',
    'form-absa-certificate': 'ABSA Certificate',
    'form-clearance-certificate': 'Clearance Certificate',
    'form-liability-certificate': 'Enhanced Liability Waiver Form',
    'form-sahl-certificate': 'SAHL Certificate',
}


class EmailNotConfigured(Exception):
    """Raised when SMTP settings are missing"""
    pass


def form_display_name(form_id: str) -> str:
    """Human name for a form id; unknown ids become ``<words> Form``."""
    if form_id in FORM_DISPLAY_NAMES:
        return FORM_DISPLAY_NAMES[form_id]
    words = re.sub(r'form', '', form_id.replace('-', ' '), flags=re.IGNORECASE)
    return f"{' '.join(words.split())} Form"


def attachment_filename(label: Optional[str]) -> str:
    base = re.sub(r'[\\/:*?"<>|]+', '_', (label or '').strip()) or 'photo'
    return f"{base}.jpg"


class NotificationService:
    """Service for sending job completion notifications."""

    def __init__(self, smtp_host: str, smtp_port: int = 587, smtp_user: str = '',
                 smtp_password: str = '', use_tls: bool = True, from_email: str = '',
                 to_email: str = '', signature: str = '', photo_timeout: int = 15):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.use_tls = use_tls
        self.from_email = from_email
        self.to_email = to_email
        self.signature = signature
        self.photo_timeout = photo_timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            smtp_host=config.get('SMTP_HOST', ''),
            smtp_port=config.get('SMTP_PORT', 587),
            smtp_user=config.get('SMTP_USER', ''),
            smtp_password=config.get('SMTP_PASSWORD', ''),
            use_tls=config.get('SMTP_USE_TLS', True),
            from_email=config.get('FROM_EMAIL', ''),
            to_email=config.get('COMPLETION_EMAIL_TO', ''),
            signature=config.get('COMPANY_SIGNATURE', ''),
            photo_timeout=config.get('PHOTO_FETCH_TIMEOUT', 15),
        )

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.to_email)

    def fetch_photo_attachments(self, photos: List[Dict]) -> List[MIMEApplication]:
        """Download photos over HTTP; failures are logged and skipped."""
        attachments = []
        for photo in photos or []:
            url = (photo or {}).get('url')
            if not url:
                continue
            try:
                response = requests.get(url, timeout=self.photo_timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                logger.warning(f"Failed to attach photo {photo.get('id')}: {e}")
                continue
            part = MIMEApplication(response.content, _subtype='jpeg')
            part.replace_header('Content-Type', 'image/jpeg')
            part.add_header('Content-Disposition', 'attachment', filename=attachment_filename(photo.get('label')))
            attachments.append(part)
        return attachments

    def build_bodies(self, job_id: str, claim_number: str, job_title: str,
                     form_names: List[str], photo_count: int):
        """Return the (plain text, html) bodies of a completion email."""
        form_count = len(form_names)
        forms_text = ', '.join(form_names)

        text_lines = [
            'Job Completion Notification',
            '',
            f'Job Title: {job_title}',
            f'Claim Number: {claim_number}',
            f'Job ID: {job_id}',
        ]
        if form_count:
            text_lines += [f'Forms Completed: {forms_text}', f'Total Forms: {form_count}']
        if photo_count:
            text_lines.append(f'Photos Attached: {photo_count}')
        text_lines += ['', 'This job has been marked as completed by staff.']
        if form_count:
            text_lines.append('All completed forms are available in the admin dashboard for download.')
        if photo_count:
            text_lines.append('Job photos are attached to this email.')
        text_lines += ['', 'Best regards,', self.signature]

        esc = html.escape
        html_parts = [
            '<h2>Job Completion Notification</h2>',
            f'<p><strong>Job Title:</strong> {esc(str(job_title))}</p>',
            f'<p><strong>Claim Number:</strong> {esc(str(claim_number))}</p>',
            f'<p><strong>Job ID:</strong> {esc(str(job_id))}</p>',
        ]
        if form_count:
            html_parts += [
                f'<p><strong>Forms Completed:</strong> {esc(forms_text)}</p>',
                f'<p><strong>Total Forms:</strong> {form_count}</p>',
            ]
        if photo_count:
            html_parts.append(f'<p><strong>Photos Attached:</strong> {photo_count}</p>')
        html_parts += ['<hr>', '<p>This job has been marked as completed by staff.</p>']
        if form_count:
            html_parts.append('<p><em>All completed forms are available in the admin dashboard for download.</em></p>')
        if photo_count:
            html_parts.append('<p><em>Job photos are attached to this email.</em></p>')
        html_parts.append(f'<br><p>Best regards,<br>{esc(self.signature)}</p>')

        return '\n'.join(text_lines), '\n'.join(html_parts)

    def send_job_completion(self, job_id: str, claim_number: str, job_title: str = '',
                            forms: List[str] = None, photos: List[Dict] = None) -> Dict:
        """
        Send the completion email for a job.

        Args:
            job_id: Completed job id
            claim_number: Claim number used in the subject
            job_title: Job title
            forms: Ids of the forms completed on the job
            photos: ``[{id, url, label}]`` to attach

        Returns:
            Dict with the subject, recipient and number of attached photos

        Raises:
            EmailNotConfigured: If SMTP settings are missing
            smtplib.SMTPException / OSError: If delivery fails
        """
        if not self.email_enabled:
            raise EmailNotConfigured("Email is not configured (SMTP_HOST / SMTP_USER missing)")

        forms = forms or []
        photos = photos or []
        form_names = [form_display_name(form_id) for form_id in forms]
        text_body, html_body = self.build_bodies(job_id, claim_number, job_title, form_names, len(photos))

        msg = MIMEMultipart('mixed')
        msg['Subject'] = f"Job Completed - Claim {claim_number}"
        msg['From'] = self.from_email
        msg['To'] = self.to_email

        body = MIMEMultipart('alternative')
        body.attach(MIMEText(text_body, 'plain'))
        body.attach(MIMEText(html_body, 'html'))
        msg.attach(body)

        attachments = self.fetch_photo_attachments(photos)
        for part in attachments:
            msg.attach(part)

        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            if self.use_tls:
                server.starttls()
            server.login(self.smtp_user, self.smtp_password)
            server.send_message(msg)

        logger.info(f"Completion email sent for job {job_id}, claim {claim_number}")
        return {
            'subject': msg['Subject'],
            'to': self.to_email,
            'attachedPhotos': len(attachments),
            'formsCompleted': form_names,
        }
