"""
Tests for photo processing, PDF helpers, template files and S3 storage
"""
import io
import pytest
from unittest.mock import MagicMock, patch
from PIL import Image
from botocore.exceptions import ClientError
from werkzeug.datastructures import FileStorage

from app.utils.image_utils import prepare_photo
from app.utils.pdf_utils import inspect_pdf, render_submission_pdf
from app.utils.helpers import generate_id, utc_now_iso, load_json_file
from services.pdf_templates import PdfTemplateStore
from services.photo_storage import PhotoStorage, StorageError, StorageNotConfigured
from validators import ValidationError


@pytest.mark.unit
class TestHelpers:

    def test_generate_id(self):
        parts = generate_id('photo').split('-')
        assert parts[0] == 'photo'
        assert parts[1].isdigit()
        assert len(parts[2]) == 9

    def test_utc_now_iso(self):
        assert utc_now_iso().endswith('Z')

    def test_load_json_file_and_default(self, tmp_path):
        path = tmp_path / 'data.json'
        assert load_json_file(str(path)) == []
        assert load_json_file(str(path), default={}) == {}
        path.write_text('{"a": 1}', encoding='utf-8')
        assert load_json_file(str(path)) == {'a': 1}


@pytest.mark.unit
class TestPreparePhoto:
    """Tests for photo normalization"""

    def test_downscales_longest_side(self, image_bytes):
        data, width, height = prepare_photo(image_bytes(width=1600, height=3200), max_dimension=1200)
        assert (width, height) == (600, 1200)
        with Image.open(io.BytesIO(data)) as img:
            assert img.format == 'JPEG'

    def test_converts_transparent_images(self):
        buffered = io.BytesIO()
        Image.new('RGBA', (50, 50), (0, 0, 0, 0)).save(buffered, format='PNG')
        data, width, height = prepare_photo(buffered.getvalue())
        assert (width, height) == (50, 50)

    def test_unreadable(self):
        with pytest.raises(ValueError):
            prepare_photo(b'garbage')


@pytest.mark.unit
class TestPdfUtils:
    """Tests for PDF inspection and rendering"""

    def test_inspect(self, pdf_bytes):
        info = inspect_pdf(io.BytesIO(pdf_bytes(pages=3)))
        assert info == {'pageCount': 3, 'fieldNames': []}

    def test_inspect_invalid(self):
        with pytest.raises(ValueError):
            inspect_pdf(io.BytesIO(b'not a pdf'))

    def test_render_submission(self):
        form = {'name': 'Clearance Certificate', 'fields': [
            {'id': 'a', 'type': 'text', 'label': 'Client'},
            {'id': 'b', 'type': 'checkbox', 'label': 'Site clean'},
        ]}
        submission = {'id': 's1', 'jobId': 'job-1', 'submittedBy': 'staff-1',
                      'submittedAt': '2024-03-05T10:00:00.000Z', 'submissionNumber': 2,
                      'data': {'a': 'John & Sons', 'b': True}}
        pdf = render_submission_pdf(form, submission, job={'title': 'Leak', 'claimNo': '42'},
                                    submitter={'name': 'Lebo'}, company_name='BBP')
        assert pdf.startswith(b'%PDF')
        assert inspect_pdf(io.BytesIO(pdf))['pageCount'] == 1


@pytest.mark.unit
class TestPdfTemplateStore:
    """Tests for the templates folder"""

    def make_upload(self, content, name='form.pdf'):
        return FileStorage(stream=io.BytesIO(content), filename=name, content_type='application/pdf')

    def test_save_and_describe(self, tmp_path, pdf_bytes):
        store = PdfTemplateStore(str(tmp_path / 'forms'))
        info = store.save(self.make_upload(pdf_bytes()), 'form.pdf')
        assert info['name'] == 'form.pdf'
        assert info['pageCount'] == 1
        assert info['lastModified'].endswith('Z')
        assert [f['name'] for f in store.list_files()] == ['form.pdf']

    def test_save_rejects_invalid_pdf(self, tmp_path):
        store = PdfTemplateStore(str(tmp_path))
        with pytest.raises(ValidationError):
            store.save(self.make_upload(b'nope'), 'form.pdf')
        assert store.list_files() == []

    def test_path_traversal_refused(self, tmp_path):
        store = PdfTemplateStore(str(tmp_path))
        with pytest.raises(ValidationError):
            store.path_for('../secret.pdf')
        assert store.exists('../secret.pdf') is False

    def test_rename_and_delete(self, tmp_path, pdf_bytes):
        store = PdfTemplateStore(str(tmp_path))
        store.save(self.make_upload(pdf_bytes()), 'a.pdf')
        store.save(self.make_upload(pdf_bytes()), 'b.pdf')
        with pytest.raises(ValidationError):
            store.rename('a.pdf', 'b.pdf')
        assert store.rename('missing.pdf', 'c.pdf') is None
        assert store.rename('a.pdf', 'c.pdf') == 'c.pdf'
        assert store.delete('c.pdf') is True
        assert store.delete('c.pdf') is False

    def test_missing_folder_lists_nothing(self, tmp_path):
        assert PdfTemplateStore(str(tmp_path / 'absent')).list_files() == []


@pytest.mark.unit
class TestPhotoStorage:
    """Tests for the S3 wrapper"""

    @patch('services.photo_storage.boto3.client')
    def test_upload(self, boto_client):
        storage = PhotoStorage('bucket', region='af-south-1')
        result = storage.upload('job-1', 'photo-1', b'jpeg')
        boto_client.assert_called_once_with('s3', region_name='af-south-1')
        boto_client.return_value.put_object.assert_called_once_with(
            Bucket='bucket', Key='bbp-jobs/job-1/photo-1.jpg', Body=b'jpeg', ContentType='image/jpeg')
        assert result == {
            'url': 'https://bucket.s3.af-south-1.amazonaws.com/bbp-jobs/job-1/photo-1.jpg',
            'publicId': 'bbp-jobs/job-1/photo-1.jpg',
        }

    @patch('services.photo_storage.boto3.client')
    def test_public_base_url(self, boto_client):
        storage = PhotoStorage('bucket', public_base_url='https://cdn.example.com/')
        assert storage.upload('j', 'p', b'x')['url'] == 'https://cdn.example.com/bbp-jobs/j/p.jpg'

    @patch('services.photo_storage.boto3.client')
    def test_client_is_cached(self, boto_client):
        storage = PhotoStorage('bucket')
        storage.upload('j', 'p1', b'x')
        storage.delete('bbp-jobs/j/p1.jpg')
        assert boto_client.call_count == 1
        boto_client.return_value.delete_object.assert_called_once_with(Bucket='bucket', Key='bbp-jobs/j/p1.jpg')

    @patch('services.photo_storage.boto3.client')
    def test_client_errors_wrapped(self, boto_client):
        boto_client.return_value.put_object.side_effect = ClientError(
            {'Error': {'Code': 'AccessDenied', 'Message': 'denied'}}, 'PutObject')
        with pytest.raises(StorageError):
            PhotoStorage('bucket').upload('j', 'p', b'x')

    def test_not_configured(self):
        storage = PhotoStorage('')
        assert storage.is_configured is False
        with pytest.raises(StorageNotConfigured):
            storage.upload('j', 'p', b'x')

    def test_from_config(self, app_config):
        storage = PhotoStorage.from_config({
            'S3_BUCKET': app_config.S3_BUCKET, 'AWS_REGION': 'af-south-1', 'PHOTO_FOLDER_PREFIX': '/jobs/',
        })
        assert storage.bucket == 'test-bucket'
        assert storage.object_key('j', 'p') == 'jobs/j/p.jpg'
