"""
Job Photos Routes Blueprint

Handles job photo upload to object storage:
- /api/jobs/<job_id>/photos: Upload/list photos (max 13 per job)
- /api/photos/<photo_id>/label: Rename a photo
- /api/photos/<photo_id>: Delete a photo and its stored object
"""

from flask import Blueprint, request, jsonify, current_app
import logging

import auth
from auth import login_required
from app.api.chat import broadcast_image_notification
from app.utils.image_utils import prepare_photo
from services.photo_storage import StorageError, StorageNotConfigured
from validators import ValidationError, validate_image_upload, sanitize_string

logger = logging.getLogger(__name__)

# Create blueprint
photos_bp = Blueprint('photos_bp', __name__)


@photos_bp.route('/api/jobs/<job_id>/photos', methods=['POST'])
@login_required
def upload_job_photo(job_id):
    """Upload a photo for a job and notify admins in chat"""
    try:
        user = auth.get_current_user()
        job = current_app.jobs_repo.get_job(job_id)
        if not job:
            return jsonify({'success': False, 'error': 'Job not found'}), 404
        if not auth.can_view_all_jobs(user) and job.get('assignedTo') != user['id']:
            return jsonify({'success': False, 'error': 'Access denied'}), 403

        file = request.files.get('photo')
        is_valid, error, _ = validate_image_upload(file, current_app.config.get('MAX_PHOTO_SIZE'))
        if not is_valid:
            return jsonify({'success': False, 'error': error}), 400

        photos_repo = current_app.photos_repo
        photos_repo.ensure_capacity(job_id)

        try:
            image_bytes, width, height = prepare_photo(
                file.read(),
                max_dimension=current_app.config.get('PHOTO_MAX_DIMENSION', 1200),
                quality=current_app.config.get('PHOTO_JPEG_QUALITY', 85),
            )
        except ValueError as e:
            return jsonify({'success': False, 'error': str(e)}), 400

        photo_id = photos_repo.new_photo_id()
        stored = current_app.photo_storage.upload(job_id, photo_id, image_bytes)

        label = sanitize_string(request.form.get('label', ''), max_length=100)
        try:
            photo = photos_repo.add_photo(photo_id, job_id, stored['url'], stored['publicId'], user, label)
        except ValidationError:
            current_app.photo_storage.delete(stored['publicId'])
            raise

        broadcast_image_notification({
            'jobId': job_id,
            'jobTitle': job.get('title') or f"Job {job_id}",
            'uploaderName': user.get('name', user['username']),
            'uploaderRole': user['role'],
            'photoCount': photos_repo.count_for_job(job_id),
        })

        logger.info(f"📸 Photo uploaded for job {job_id} by {user['username']} ({width}x{height})")
        return jsonify({'success': True, 'photo': photo, 'message': 'Photo uploaded successfully'}), 201

    except ValidationError as e:
        return jsonify({'success': False, 'error': e.message}), 400
    except StorageNotConfigured as e:
        logger.error(f"Photo storage unavailable: {e}")
        return jsonify({'success': False, 'error': 'Photo storage is not configured'}), 503
    except StorageError as e:
        return jsonify({'success': False, 'error': str(e)}), 502
    except Exception as e:
        logger.error(f"Error uploading photo: {e}")
        return jsonify({'success': False, 'error': 'Failed to upload photo'}), 500


@photos_bp.route('/api/jobs/<job_id>/photos', methods=['GET'])
@login_required
def get_job_photos(job_id):
    photos = current_app.photos_repo.list_photos(job_id)
    return jsonify({'success': True, 'photos': photos})


@photos_bp.route('/api/photos/<photo_id>/label', methods=['PUT'])
@login_required
def update_photo_label(photo_id):
    data = request.get_json(silent=True) or {}
    label = sanitize_string(data.get('label') or '', max_length=100)
    if not label:
        return jsonify({'success': False, 'error': 'Label is required'}), 400

    photo = current_app.photos_repo.update_label(photo_id, label)
    if not photo:
        return jsonify({'success': False, 'error': 'Photo not found'}), 404
    return jsonify({'success': True, 'photo': photo})


@photos_bp.route('/api/photos/<photo_id>', methods=['DELETE'])
@login_required
def delete_photo(photo_id):
    """Delete a photo (admin or the uploader)"""
    try:
        user = auth.get_current_user()
        photo = current_app.photos_repo.get_photo(photo_id)
        if not photo:
            return jsonify({'success': False, 'error': 'Photo not found'}), 404
        if not auth.is_admin(user) and photo['uploadedBy'] != user['id']:
            return jsonify({'success': False, 'error': 'Access denied'}), 403

        current_app.photo_storage.delete(photo['publicId'])
        current_app.photos_repo.delete_photo(photo_id)
        return jsonify({'success': True, 'message': 'Photo deleted successfully'})

    except StorageNotConfigured:
        return jsonify({'success': False, 'error': 'Photo storage is not configured'}), 503
    except StorageError as e:
        return jsonify({'success': False, 'error': str(e)}), 502
    except Exception as e:
        logger.error(f"Error deleting photo: {e}")
        return jsonify({'success': False, 'error': 'Failed to delete photo'}), 500
