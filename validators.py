"""
Input Validation & Sanitization Utilities
Provides validation for API requests, file uploads, and dynamic form submissions
"""
import re
import os
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename
import logging

logger = logging.getLogger(__name__)

# Allowed file extensions by category
ALLOWED_IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'bmp', 'heic'}
ALLOWED_PDF_EXTENSIONS = {'pdf'}

# Default maximum file sizes (in bytes)
MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_PDF_SIZE = 10 * 1024 * 1024  # 10MB

# Domain vocabularies
USER_ROLES = ('admin', 'staff', 'supervisor', 'apollo')
USER_CITIES = ('Johannesburg', 'Cape Town')
JOB_STATUSES = ('pending', 'in_progress', 'completed')
JOB_PRIORITIES = ('low', 'medium', 'high')
JOB_CATEGORIES = (
    'Geyser Assessment',
    'Geyser Replacement',
    'Leak Detection',
    'Drain Blockage',
    'Camera Inspection',
    'Toilet/Shower',
    'Other',
)
PRICING_TYPES = ('call-out', 'repair', 'replacement')
FIELD_TYPES = (
    'text', 'email', 'number', 'date', 'datetime-local', 'textarea',
    'select', 'checkbox', 'radio', 'signature',
)
CHOICE_FIELD_TYPES = ('select', 'radio')
JOB_TEXT_FIELDS = (
    'title', 'description', 'assignedTo', 'companyId', 'formId', 'notes',
    'categoryOther', 'address', 'rawText',
)
FORM_TEXT_FIELDS = ('name', 'description', 'pdfTemplate')

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?\d{9,15}$')
TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None or data[field] == '']

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_string_fields(data: Dict[str, Any], fields: Tuple[str, ...]) -> Tuple[bool, Optional[str]]:
    """
    Validate that the given fields hold strings wherever they are set

    Args:
        data: Dictionary of input data
        fields: Field names that must be strings when not None

    Returns:
        Tuple of (is_valid, error_message)
    """
    wrong_fields = [field for field in fields if data.get(field) is not None and not isinstance(data[field], str)]

    if wrong_fields:
        return False, f"Fields must be strings: {', '.join(wrong_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    return True, None


def validate_phone(phone: str) -> Tuple[bool, Optional[str]]:
    """
    Validate phone number format

    Args:
        phone: Phone number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not phone or not isinstance(phone, str):
        return False, "Phone must be a non-empty string"

    cleaned_phone = re.sub(r'[\s\-\(\)]', '', phone)

    if not PHONE_PATTERN.match(cleaned_phone):
        return False, "Invalid phone number format"

    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    if len(value) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def sanitize_string(value: str, max_length: int = 1000) -> str:
    """
    Sanitize string input by removing null bytes, trimming and capping length

    Args:
        value: String to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return str(value)

    sanitized = value.replace('\x00', '').strip()

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent directory traversal attacks

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    safe_name = secure_filename(filename or '')

    # If secure_filename removes everything, generate a default name
    if not safe_name:
        safe_name = 'file'

    return safe_name


def validate_file_extension(filename: str, allowed_extensions: set) -> Tuple[bool, Optional[str]]:
    """
    Validate file has an allowed extension

    Args:
        filename: Filename to check
        allowed_extensions: Set of allowed extensions (without dots)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not filename or '.' not in filename:
        return False, "File must have an extension"

    extension = filename.rsplit('.', 1)[1].lower()

    if extension not in allowed_extensions:
        return False, f"File type not allowed. Allowed types: {', '.join(sorted(allowed_extensions))}"

    return True, None


def validate_file_upload(
    file: FileStorage,
    allowed_extensions: set,
    max_size: int,
    file_type: str = "file",
    mimetype_prefix: Optional[str] = None
) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Comprehensive file upload validation

    Args:
        file: FileStorage object from request.files
        allowed_extensions: Set of allowed extensions
        max_size: Maximum file size in bytes
        file_type: Type of file for error messages
        mimetype_prefix: Required prefix of the declared content type, if any

    Returns:
        Tuple of (is_valid, error_message, sanitized_filename)
    """
    if not file or not file.filename:
        return False, f"No {file_type} uploaded", None

    safe_filename = sanitize_filename(file.filename)

    is_valid, error = validate_file_extension(safe_filename, allowed_extensions)
    if not is_valid:
        return False, error, None

    if mimetype_prefix and file.mimetype and not file.mimetype.startswith(mimetype_prefix):
        return False, f"Only {file_type} files are allowed", None

    file.seek(0, os.SEEK_END)
    file_size = file.tell()
    file.seek(0)

    if file_size > max_size:
        max_mb = max_size / (1024 * 1024)
        return False, f"{file_type.capitalize()} too large (maximum {max_mb:.1f}MB)", None

    if file_size == 0:
        return False, f"{file_type.capitalize()} is empty", None

    logger.info(f"File validation successful: {safe_filename} ({file_size} bytes)")
    return True, None, safe_filename


def validate_image_upload(file: FileStorage, max_size: int = MAX_IMAGE_SIZE) -> Tuple[bool, Optional[str], Optional[str]]:
    """Validate image file upload"""
    return validate_file_upload(file, ALLOWED_IMAGE_EXTENSIONS, max_size, "image", mimetype_prefix='image/')


def validate_pdf_upload(file: FileStorage, max_size: int = MAX_PDF_SIZE) -> Tuple[bool, Optional[str], Optional[str]]:
    """Validate PDF template upload"""
    return validate_file_upload(file, ALLOWED_PDF_EXTENSIONS, max_size, "PDF", mimetype_prefix='application/pdf')


def _validate_choice(data: Dict[str, Any], key: str, allowed: tuple) -> Tuple[bool, Optional[str]]:
    if key in data and data[key] not in allowed:
        return False, f"Invalid {key}: must be one of {', '.join(allowed)}"
    return True, None


def validate_job_fields(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate the typed job attributes present in a create or update payload

    Args:
        data: Request data dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = validate_string_fields(data, JOB_TEXT_FIELDS)
    if not is_valid:
        return False, error

    for key, allowed in (('status', JOB_STATUSES), ('priority', JOB_PRIORITIES), ('category', JOB_CATEGORIES)):
        is_valid, error = _validate_choice(data, key, allowed)
        if not is_valid:
            return False, error

    if data.get('category') == 'Other' and not (data.get('categoryOther') or '').strip():
        return False, "categoryOther is required when category is Other"

    if 'title' in data:
        is_valid, error = validate_string_length(data['title'] or '', min_length=1, max_length=200)
        if not is_valid:
            return False, f"Invalid title: {error}"

    if data.get('duration') is not None:
        if not isinstance(data['duration'], int) or isinstance(data['duration'], bool) or data['duration'] < 0:
            return False, "duration must be a non-negative number of minutes"

    pricing = data.get('pricing')
    if pricing is not None:
        if not isinstance(pricing, dict):
            return False, "pricing must be an object"
        if pricing.get('type') not in PRICING_TYPES:
            return False, f"Invalid pricing type: must be one of {', '.join(PRICING_TYPES)}"
        if not isinstance(pricing.get('amount'), (int, float)) or pricing['amount'] < 0:
            return False, "pricing amount must be a non-negative number"

    if data.get('formIds') is not None and not isinstance(data['formIds'], list):
        return False, "formIds must be an array"

    return True, None


def validate_create_job_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate job creation request data

    Args:
        data: Request data dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = validate_string_fields(data, JOB_TEXT_FIELDS)
    if not is_valid:
        return False, error

    if not (data.get('title') or '').strip():
        return False, "Job title is required"

    is_valid, error = validate_required_fields(data, ['assignedTo'])
    if not is_valid:
        return False, error

    return validate_job_fields(data)


def validate_completion_email_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate a job completion email request

    Args:
        data: Request data dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not data.get('jobId') or not data.get('claimNumber'):
        return False, "Missing required fields: jobId, claimNumber"

    is_valid, error = validate_string_fields(data, ('jobTitle',))
    if not is_valid:
        return False, error

    forms = data.get('forms') or []
    photos = data.get('photos') or []
    if not isinstance(forms, list) or not isinstance(photos, list):
        return False, "forms and photos must be arrays"

    if not all(isinstance(form_id, str) for form_id in forms):
        return False, "forms must contain form ids"

    for photo in photos:
        if not isinstance(photo, dict) or not isinstance(photo.get('url'), str):
            return False, "each photo must be an object with a url"
        if photo.get('label') is not None and not isinstance(photo['label'], str):
            return False, "photo label must be a string"

    return True, None


def validate_user_request(data: Dict[str, Any], creating: bool = True) -> Tuple[bool, Optional[str]]:
    """
    Validate user create/update request data

    Args:
        data: Request data dictionary
        creating: Whether username/password/name are mandatory

    Returns:
        Tuple of (is_valid, error_message)
    """
    if creating:
        is_valid, error = validate_required_fields(data, ['username', 'password', 'name'])
        if not is_valid:
            return False, error

    is_valid, error = _validate_choice(data, 'role', USER_ROLES)
    if not is_valid:
        return False, error

    if data.get('email'):
        is_valid, error = validate_email(data['email'])
        if not is_valid:
            return False, error

    for key in ('phone', 'emergencyPhone'):
        if data.get(key):
            is_valid, error = validate_phone(data[key])
            if not is_valid:
                return False, f"Invalid {key}: {error}"

    location = data.get('location')
    if location is not None:
        if not isinstance(location, dict) or location.get('city') not in USER_CITIES:
            return False, f"location.city must be one of {', '.join(USER_CITIES)}"

    schedule = data.get('schedule')
    if schedule is not None:
        if not isinstance(schedule, dict):
            return False, "schedule must be an object"
        for key in ('shiftStartTime', 'shiftEndTime'):
            if schedule.get(key) and not TIME_PATTERN.match(schedule[key]):
                return False, f"schedule.{key} must be HH:MM"
        if schedule.get('weekType') not in (None, 'normal', 'late'):
            return False, "schedule.weekType must be normal or late"

    return True, None


def validate_form_definition(fields: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate the field list of a form template

    Args:
        fields: List of field dictionaries

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(fields, list):
        return False, "fields must be an array"

    for idx, field in enumerate(fields):
        if not isinstance(field, dict):
            return False, f"Field {idx} must be an object"
        if field.get('type') not in FIELD_TYPES:
            return False, f"Field {idx} has invalid type: {field.get('type')}"
        if not (field.get('label') or '').strip():
            return False, f"Field {idx} requires a label"
        if field.get('type') in CHOICE_FIELD_TYPES and not field.get('options'):
            return False, f"Field {idx} ({field['label']}) requires options"

    return True, None


def is_field_visible(field: Dict[str, Any], values: Dict[str, Any]) -> bool:
    """A field guarded by dependsOn/showWhen is shown only while the controlling value matches."""
    depends_on = field.get('dependsOn')
    if not depends_on or field.get('showWhen') is None:
        return True
    return values.get(depends_on) == field['showWhen']


def _is_blank(value: Any) -> bool:
    return value is None or value is False or (isinstance(value, str) and not value.strip()) or value == []


def _validate_field_value(field: Dict[str, Any], value: Any) -> Optional[str]:
    field_type = field.get('type')

    if field_type in CHOICE_FIELD_TYPES:
        if value not in (field.get('options') or []):
            return f"must be one of {', '.join(field.get('options') or [])}"
    elif field_type == 'number':
        if isinstance(value, bool):
            return "must be a number"
        try:
            float(value)
        except (TypeError, ValueError):
            return "must be a number"
    elif field_type == 'email':
        is_valid, error = validate_email(value)
        if not is_valid:
            return error
    elif field_type == 'date':
        try:
            datetime.strptime(str(value), '%Y-%m-%d')
        except ValueError:
            return "must be a date (YYYY-MM-DD)"
    elif field_type == 'datetime-local':
        try:
            datetime.fromisoformat(str(value))
        except ValueError:
            return "must be a date and time"
    return None


def validate_form_submission(form: Dict[str, Any], values: Dict[str, Any]) -> Tuple[bool, Dict[str, str]]:
    """
    Validate submitted values against a form's field schema.

    Hidden fields (dependsOn/showWhen not satisfied) are neither required
    nor type-checked.

    Args:
        form: Form template dictionary
        values: Submitted field values keyed by field id

    Returns:
        Tuple of (is_valid, {field_id: error_message})
    """
    errors = {}

    for field in form.get('fields', []):
        field_id = field.get('id')
        if not is_field_visible(field, values):
            continue

        value = values.get(field_id)
        if _is_blank(value):
            if field.get('required') and field.get('type') != 'signature':
                errors[field_id] = f"{field.get('label', field_id)} is required"
            continue

        error = _validate_field_value(field, value)
        if error:
            errors[field_id] = f"{field.get('label', field_id)} {error}"

    return len(errors) == 0, errors


def format_validation_error(field: str, message: str) -> Dict[str, Any]:
    """
    Format validation error for consistent API responses

    Args:
        field: Field name that failed validation
        message: Error message

    Returns:
        Error response dictionary
    """
    return {
        'success': False,
        'error': message,
        'field': field,
    }
