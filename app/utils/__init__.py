"""
Utilities Package

Shared helper functions used across the application.
"""

from app.utils.helpers import (
    load_json_file,
    generate_id,
    utc_now_iso,
)

from app.utils.image_utils import (
    prepare_photo,
)

from app.utils.pdf_utils import (
    inspect_pdf,
    render_submission_pdf,
)

__all__ = [
    'load_json_file',
    'generate_id',
    'utc_now_iso',
    'prepare_photo',
    'inspect_pdf',
    'render_submission_pdf',
]
