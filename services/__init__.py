"""
Services package for JobFlow.
Contains the in-memory repositories and external service clients.
"""

from services.users_repository import UsersRepository
from services.jobs_repository import JobsRepository
from services.companies_repository import CompaniesRepository
from services.forms_repository import FormsRepository
from services.photos_repository import PhotosRepository
from services.photo_storage import PhotoStorage
from services.chat_service import ChatService
from services.notification_service import NotificationService
from services.pdf_templates import PdfTemplateStore

__all__ = [
    'UsersRepository',
    'JobsRepository',
    'CompaniesRepository',
    'FormsRepository',
    'PhotosRepository',
    'PhotoStorage',
    'ChatService',
    'NotificationService',
    'PdfTemplateStore',
]
