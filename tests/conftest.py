"""
Pytest configuration and shared fixtures
"""
import io
import sys
import pytest
from pathlib import Path
from unittest.mock import MagicMock

from PIL import Image
from pypdf import PdfWriter

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def app_config():
    """Fixture providing test configuration"""
    from config import TestingConfig
    return TestingConfig


@pytest.fixture
def mock_storage():
    """S3 photo storage stand-in that records uploads and deletes"""
    storage = MagicMock()
    storage.is_configured = True

    def upload(job_id, photo_id, data, content_type='image/jpeg'):
        key = f"bbp-jobs/{job_id}/{photo_id}.jpg"
        return {'url': f"https://test-bucket.s3.af-south-1.amazonaws.com/{key}", 'publicId': key}

    storage.upload.side_effect = upload
    return storage


@pytest.fixture
def app(app_config, tmp_path, mock_storage):
    """Application built by the factory with TestingConfig and a temp PDF folder"""
    from app_init import create_app
    flask_app = create_app(app_config, {'PDF_FORMS_FOLDER': str(tmp_path / 'forms')})
    flask_app.photo_storage = mock_storage
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def socket_client_factory(app, client):
    """Create Flask-SocketIO test clients bound to the app; all are disconnected afterwards"""
    from app import socketio
    created = []

    def make():
        sio_client = socketio.test_client(app, flask_test_client=client)
        created.append(sio_client)
        return sio_client

    yield make

    for sio_client in created:
        if sio_client.is_connected():
            sio_client.disconnect()


def token_headers(user_id):
    return {'Authorization': f'Bearer mock-token-{user_id}'}


@pytest.fixture
def admin_headers():
    return token_headers('admin-1')


@pytest.fixture
def staff_headers():
    return token_headers('staff-1')


@pytest.fixture
def other_staff_headers():
    return token_headers('staff-2')


@pytest.fixture
def apollo_headers():
    return token_headers('apollo-1')


@pytest.fixture
def sample_claim_text():
    """Pasted appointment text mixing tab pairs, colon lines and label/value lines"""
    return (
        "ClaimNo\t5586306\tPolicyNo\tPL-HOC6525797942/03\n"
        "Underwriter\tDiscovery Insure\n"
        "Insured Name: John Smith\n"
        "Risk Address: 12 Main Road, Rondebosch, Cape Town\n"
        "Section: Geyser\n"
        "Peril: Burst geyser\n"
        "Sum Insured\tR 1 250 000.00\n"
        "Excess: R500\n"
        "Description of Loss\n"
        "Geyser burst in the roof and water damaged the ceiling\n"
    )


@pytest.fixture
def make_job(app):
    """Create a job directly in the repository"""
    def make(assigned_to='staff-1', **overrides):
        data = {'title': 'Burst geyser - J Smith', 'assignedTo': assigned_to}
        data.update(overrides)
        return app.jobs_repo.create_job(data, assigned_by='admin-1')
    return make


def make_image_bytes(width=100, height=80, fmt='PNG', color=(200, 30, 30)):
    buffered = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buffered, format=fmt)
    return buffered.getvalue()


def make_pdf_bytes(pages=1):
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=595, height=842)
    buffered = io.BytesIO()
    writer.write(buffered)
    return buffered.getvalue()


@pytest.fixture
def image_bytes():
    return make_image_bytes


@pytest.fixture
def pdf_bytes():
    return make_pdf_bytes
