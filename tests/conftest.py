import json
from pathlib import Path

import pytest

import sheets_exporter

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

CLIENT_CONFIG = {
    'installed': {
        'client_id': 'test-client-id.apps.googleusercontent.com',
        'client_secret': 'test-secret',
        'auth_uri': 'https://accounts.google.com/o/oauth2/auth',
        'token_uri': 'https://oauth2.googleapis.com/token',
        'redirect_uris': ['urn:ietf:wg:oauth:2.0:oob', 'http://localhost'],
    }
}


def token_payload(expiry: str = '2999-01-01T00:00:00Z', token: str = 'cached-access-token') -> dict:
    return {
        'token': token,
        'refresh_token': 'cached-refresh-token',
        'token_uri': 'https://oauth2.googleapis.com/token',
        'client_id': CLIENT_CONFIG['installed']['client_id'],
        'client_secret': CLIENT_CONFIG['installed']['client_secret'],
        'scopes': SCOPES,
        'expiry': expiry,
    }


@pytest.fixture
def export_config(tmp_path: Path) -> sheets_exporter.ExportConfig:
    secret = tmp_path / 'client_secret.json'
    secret.write_text(json.dumps(CLIENT_CONFIG), encoding='utf-8')
    return sheets_exporter.ExportConfig(
        client_secret_file=str(secret),
        token_file=str(tmp_path / 'token.json'),
        scopes=list(SCOPES),
        target_folder_id='folder-123',
        log_file=str(tmp_path / 'export_log.txt'),
    )


@pytest.fixture
def write_token(export_config):
    def _write(payload) -> Path:
        path = Path(export_config.token_file)
        if isinstance(payload, dict):
            payload = json.dumps(payload)
        path.write_text(payload, encoding='utf-8')
        return path

    return _write
