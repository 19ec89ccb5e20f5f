"""
Photos Repository - metadata for job photos kept in object storage.
"""

import copy
import logging
import threading
from typing import List, Dict, Optional

from app.utils.helpers import generate_id, utc_now_iso
from validators import ValidationError

logger = logging.getLogger(__name__)


class PhotosRepository:
    """Repository for job photo records, capped per job."""

    def __init__(self, max_per_job: int = 13):
        self.max_per_job = max_per_job
        self._photos: List[Dict] = []
        self._lock = threading.RLock()

    def _find(self, photo_id: str) -> Optional[Dict]:
        return next((p for p in self._photos if p['id'] == photo_id), None)

    def new_photo_id(self) -> str:
        return generate_id('photo')

    def count_for_job(self, job_id: str) -> int:
        with self._lock:
            return sum(1 for p in self._photos if p['jobId'] == job_id)

    def list_photos(self, job_id: str) -> List[Dict]:
        """Photos for a job ordered by upload time."""
        with self._lock:
            photos = [p for p in self._photos if p['jobId'] == job_id]
            return copy.deepcopy(sorted(photos, key=lambda p: p['uploadedAt']))

    def get_photo(self, photo_id: str) -> Optional[Dict]:
        with self._lock:
            photo = self._find(photo_id)
            return copy.deepcopy(photo) if photo else None

    def ensure_capacity(self, job_id: str):
        """
        Raises:
            ValidationError: When the job already holds the maximum number of photos
        """
        if self.count_for_job(job_id) >= self.max_per_job:
            raise ValidationError(f"Maximum {self.max_per_job} photos per job", field='photo')

    def add_photo(self, photo_id: str, job_id: str, url: str, public_id: str,
                  uploaded_by: Dict, label: str = None) -> Dict:
        """
        Record an uploaded photo.

        Args:
            photo_id: Id reserved with ``new_photo_id``
            job_id: Owning job
            url: Public URL of the stored object
            public_id: Storage key, used to delete the object later
            uploaded_by: User dict of the uploader
            label: Optional label; defaults to ``Photo <n>``

        Raises:
            ValidationError: When the job is already full
        """
        with self._lock:
            self.ensure_capacity(job_id)
            position = self.count_for_job(job_id) + 1
            photo = {
                'id': photo_id,
                'jobId': job_id,
                'url': url,
                'publicId': public_id,
                'label': (label or '').strip() or f"Photo {position}",
                'uploadedBy': uploaded_by.get('id'),
                'uploadedByName': uploaded_by.get('name', ''),
                'uploadedAt': utc_now_iso(),
            }
            self._photos.append(photo)
            logger.info(f"Recorded photo {photo_id} for job {job_id} ({position}/{self.max_per_job})")
            return copy.deepcopy(photo)

    def update_label(self, photo_id: str, label: str) -> Optional[Dict]:
        with self._lock:
            photo = self._find(photo_id)
            if not photo:
                return None
            photo['label'] = label.strip()
            return copy.deepcopy(photo)

    def delete_photo(self, photo_id: str) -> Optional[Dict]:
        """Remove a photo record, returning it so the stored object can be removed too."""
        with self._lock:
            photo = self._find(photo_id)
            if not photo:
                return None
            self._photos.remove(photo)
            logger.info(f"Deleted photo record {photo_id}")
            return copy.deepcopy(photo)
