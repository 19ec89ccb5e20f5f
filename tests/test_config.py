"""
Tests for configuration system
"""
import os
import pytest
from unittest.mock import patch
from config import (
    Config,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config
)


@pytest.mark.unit
class TestBaseConfig:
    """Tests for base configuration"""

    def test_base_config_has_secret_key(self):
        """Test that base config has a secret key"""
        config = Config()
        assert config.SECRET_KEY is not None

    def test_base_config_has_cors_settings(self):
        """Test that base config has CORS settings"""
        config = Config()
        assert 'GET' in config.CORS_METHODS
        assert 'Authorization' in config.CORS_ALLOW_HEADERS

    def test_base_config_has_capacity_limits(self):
        """Test photo, chat and submission limits"""
        config = Config()
        assert config.MAX_PHOTOS_PER_JOB == 13
        assert config.CHAT_HISTORY_LIMIT == 1000
        assert config.CHAT_HISTORY_REPLAY == 50
        assert config.MAX_SUBMISSIONS_PER_FORM == 3

    def test_base_config_notifies_admin_and_apollo(self):
        """Test photo notifications target admins and apollo supervisors"""
        assert Config.CHAT_NOTIFY_ROLES == ['admin', 'apollo']

    def test_base_config_has_upload_limits(self):
        """Test upload size limits"""
        config = Config()
        assert config.MAX_PHOTO_SIZE == 10 * 1024 * 1024
        assert config.MAX_PDF_SIZE == 10 * 1024 * 1024
        assert config.PHOTO_MAX_DIMENSION == 1200

    def test_base_config_has_email_defaults(self):
        """Test SMTP defaults"""
        config = Config()
        assert config.SMTP_PORT == 587 or 'SMTP_PORT' in os.environ
        assert config.COMPANY_SIGNATURE == 'BBP BlockBusters & Partners (PTY) Ltd.'

    def test_predefined_forms_file_exists(self):
        """Test the seeded forms file ships with the project"""
        assert os.path.exists(Config.PREDEFINED_FORMS_FILE)


@pytest.mark.unit
class TestDevelopmentConfig:
    """Tests for development configuration"""

    def test_development_config_has_debug(self):
        config = DevelopmentConfig()
        assert config.DEBUG is True
        assert config.TESTING is False

    def test_development_config_has_debug_log_level(self):
        assert DevelopmentConfig.LOG_LEVEL == 'DEBUG'

    def test_development_config_allows_all_cors(self):
        assert '*' in DevelopmentConfig.CORS_ORIGINS


@pytest.mark.unit
class TestProductionConfig:
    """Tests for production configuration"""

    def test_production_config_has_debug_disabled(self):
        config = ProductionConfig()
        assert config.DEBUG is False
        assert config.TESTING is False

    def test_production_config_has_secure_cookies(self):
        """Test that production config has secure cookies"""
        config = ProductionConfig()
        assert config.SESSION_COOKIE_SECURE is True
        assert config.SESSION_COOKIE_HTTPONLY is True
        assert config.SESSION_COOKIE_SAMESITE == 'Lax'

    def test_production_config_has_https_scheme(self):
        assert ProductionConfig.PREFERRED_URL_SCHEME == 'https'


@pytest.mark.unit
class TestTestingConfig:
    """Tests for testing configuration"""

    def test_testing_config_has_testing_enabled(self):
        config = TestingConfig()
        assert config.TESTING is True

    def test_testing_config_has_fixed_secret_key(self):
        assert len(TestingConfig.SECRET_KEY) >= 32

    def test_testing_config_configures_external_services(self):
        """Test that storage and email are configured so readiness passes"""
        assert TestingConfig.S3_BUCKET
        assert TestingConfig.SMTP_HOST
        assert TestingConfig.SMTP_USER


@pytest.mark.unit
class TestGetConfig:
    """Tests for the FLASK_ENV based selector"""

    @patch.dict(os.environ, {'FLASK_ENV': 'production'})
    def test_get_config_production(self):
        assert get_config() is ProductionConfig

    @patch.dict(os.environ, {'FLASK_ENV': 'testing'})
    def test_get_config_testing(self):
        assert get_config() is TestingConfig

    @patch.dict(os.environ, {'FLASK_ENV': 'unknown'})
    def test_get_config_unknown_falls_back_to_development(self):
        assert get_config() is DevelopmentConfig
