"""
Unit tests for settings loading.
"""

import pytest
import yaml

from feelin_pay.config.settings import load_settings


class TestLoadSettings:

    def test_packaged_defaults(self):
        settings = load_settings(environ={})

        assert settings.external_timeout_seconds == 10.0
        assert settings.token_refresh_margin_minutes == 5
        assert settings.ledger_folder_name == "Reporte de Pagos - Feelin Pay"
        assert "https://www.googleapis.com/auth/firebase.messaging" in settings.fcm_scopes

    def test_environment_overrides(self):
        settings = load_settings(environ={
            "TOKEN_REFRESH_MARGIN_MINUTES": "7",
            "EXTERNAL_TIMEOUT_SECONDS": "2.5",
            "LEDGER_FOLDER_NAME": "Pagos",
            "GOOGLE_CLIENT_ID": "cid",
            "FIREBASE_PROJECT_ID": "proj",
        })

        assert settings.token_refresh_margin_minutes == 7
        assert settings.external_timeout_seconds == 2.5
        assert settings.ledger_folder_name == "Pagos"
        assert settings.google_client_id == "cid"
        assert settings.firebase_project_id == "proj"

    def test_invalid_override_raises(self):
        with pytest.raises(ValueError, match="TOKEN_REFRESH_MARGIN_MINUTES"):
            load_settings(environ={"TOKEN_REFRESH_MARGIN_MINUTES": "five"})

    def test_custom_defaults_file(self, tmp_path):
        path = tmp_path / "defaults.yml"
        path.write_text(yaml.dump({"token_refresh_margin_minutes": 9, "ledger": {"share_folder_with_owner": False}}))

        settings = load_settings(defaults_path=path, environ={})

        assert settings.token_refresh_margin_minutes == 9
        assert settings.share_folder_with_owner is False

    def test_missing_defaults_file_uses_dataclass_defaults(self, tmp_path):
        settings = load_settings(defaults_path=tmp_path / "absent.yml", environ={})

        assert settings.token_refresh_margin_minutes == 5
        assert settings.ledger_folder_name == "Reporte de Pagos - Feelin Pay"
