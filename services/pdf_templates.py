"""
PDF Template Store - the folder of fillable PDF templates admins manage.
"""

import logging
import os
from datetime import datetime, timezone
from typing import List, Dict, Optional

from app.utils.pdf_utils import inspect_pdf
from validators import ValidationError, sanitize_filename

logger = logging.getLogger(__name__)


class PdfTemplateStore:
    """File operations on the PDF templates folder."""

    def __init__(self, folder: str):
        self.folder = folder

    def ensure_folder(self):
        os.makedirs(self.folder, exist_ok=True)

    def path_for(self, file_name: str) -> str:
        """Absolute path of a template, refusing names that escape the folder."""
        safe_name = os.path.basename(file_name or '')
        if not safe_name or safe_name != file_name:
            raise ValidationError("Invalid file name", field='fileName')
        return os.path.join(self.folder, safe_name)

    def exists(self, file_name: str) -> bool:
        try:
            return os.path.isfile(self.path_for(file_name))
        except ValidationError:
            return False

    def describe(self, file_name: str) -> Dict:
        """Size, modification time, and pypdf facts for one template."""
        path = self.path_for(file_name)
        stats = os.stat(path)
        info = {
            'name': file_name,
            'size': stats.st_size,
            'lastModified': datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc)
                                    .isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            'pageCount': None,
            'fieldNames': [],
        }
        try:
            info.update(inspect_pdf(path))
        except ValueError as e:
            logger.warning(f"Could not inspect PDF template {file_name}: {e}")
        return info

    def list_files(self) -> List[Dict]:
        if not os.path.isdir(self.folder):
            return []
        names = sorted(n for n in os.listdir(self.folder) if n.lower().endswith('.pdf'))
        return [self.describe(name) for name in names]

    def save(self, file_storage, file_name: str) -> Dict:
        """
        Store an uploaded template after checking pypdf can read it.

        Raises:
            ValidationError: If the upload is not a readable PDF
        """
        file_name = sanitize_filename(file_name)
        file_storage.stream.seek(0)
        try:
            inspect_pdf(file_storage.stream)
        except ValueError as e:
            raise ValidationError(str(e), field='pdf') from e
        file_storage.stream.seek(0)

        self.ensure_folder()
        path = self.path_for(file_name)
        file_storage.save(path)
        logger.info(f"Saved PDF template {file_name}")
        return self.describe(file_name)

    def rename(self, old_name: str, new_name: str) -> Optional[str]:
        """
        Rename a template.

        Returns:
            The new name, or None when ``old_name`` does not exist

        Raises:
            ValidationError: On a bad new name or a name collision
        """
        if not new_name.lower().endswith('.pdf'):
            raise ValidationError("New name must end with .pdf", field='newName')
        if not self.exists(old_name):
            return None

        new_path = self.path_for(new_name)
        if os.path.exists(new_path):
            raise ValidationError("A file with the new name already exists", field='newName')

        os.rename(self.path_for(old_name), new_path)
        logger.info(f"Renamed PDF template {old_name} -> {new_name}")
        return new_name

    def delete(self, file_name: str) -> bool:
        if not self.exists(file_name):
            return False
        os.remove(self.path_for(file_name))
        logger.info(f"Deleted PDF template {file_name}")
        return True
