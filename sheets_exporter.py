#!/usr/bin/env python3
"""
Google Sheets CSV Exporter.
This script exports a directory of CSV files into a new Google Spreadsheet,
one sheet per file, and files the result under a Google Drive folder.
"""

# Standard library imports
import csv
import importlib
import json
import logging
import os
import random
import stat
import sys
import warnings
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

# Third-party imports
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

# Constants
SCOPES = [
    'https://www.googleapis.com/auth/spreadsheets',
    'https://www.googleapis.com/auth/drive'
]

CLIENT_SECRET_FILE = 'client_secret.json'
TOKEN_FILE = 'token.json'
LOG_FILE = 'export_log.txt'
TARGET_FOLDER_ID = '144EFimPBTcoHnAzBpeoEcbqN-yeTLAqe'
OOB_REDIRECT_URI = 'urn:ietf:wg:oauth:2.0:oob'
CSV_EXTENSION = '.csv'

SUCCESS_EMOJIS = ['🎉', '✨', '🌟', '🚀', '💫', '🎯', '🌈']
WORKING_EMOJIS = ['🔨', '⚙️', '🛠️', '🔧', '💪', '🤖', '🔄']
ERROR_EMOJIS = ['😱', '🚨', '💥', '⚡', '🆘', '😅', '🤔']

logger = logging.getLogger(__name__)

# Suppress the file_cache warning
warnings.filterwarnings('ignore', message='file_cache is only supported with oauth2client<4.0.0')


class ExportError(Exception):
    """Base class for errors raised while exporting CSV files."""


class ConversionError(ExportError):
    """Raised when a CSV file cannot be read or parsed."""


class PublishError(ExportError):
    """Raised when the remote service returns an unusable response."""


@dataclass
class ExportConfig:
    """Process-wide settings for one export run."""

    client_secret_file: str = CLIENT_SECRET_FILE
    token_file: str = TOKEN_FILE
    scopes: list[str] = field(default_factory=lambda: list(SCOPES))
    target_folder_id: str = TARGET_FOLDER_ID
    redirect_uri: Optional[str] = None
    log_file: str = LOG_FILE
    file_extension: str = CSV_EXTENSION
    list_page_size: int = 10


def load_config(module_name: str = 'config') -> ExportConfig:
    """Build the export settings, applying overrides from an optional config module.

    The module is the operator's copy of config.template.py. Only the
    upper-case constants it defines are read; anything missing keeps its
    default.

    Args:
        module_name: Importable name of the operator's configuration module

    Returns:
        The resolved export configuration
    """
    export_config = ExportConfig()
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        if e.name != module_name:
            raise
        logger.debug(f"No {module_name}.py found, using default settings")
        return export_config

    overrides = {
        'CLIENT_SECRET_FILE': 'client_secret_file',
        'TOKEN_FILE': 'token_file',
        'SCOPES': 'scopes',
        'TARGET_FOLDER_ID': 'target_folder_id',
        'REDIRECT_URI': 'redirect_uri',
        'LOG_FILE': 'log_file',
    }
    for constant, attribute in overrides.items():
        if hasattr(module, constant):
            setattr(export_config, attribute, getattr(module, constant))
    return export_config


def configure_logging(log_file: str = LOG_FILE) -> None:
    """Send log records to stdout and to the export log file."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ]
    )
    # Disable unnecessary logging from google api client
    logging.getLogger('googleapiclient.discovery_cache').setLevel(logging.ERROR)


def secure_file_permissions(filepath: str) -> None:
    """Set secure permissions for sensitive files.

    Args:
        filepath: Path to the file to secure
    """
    try:
        # Set file permissions to owner read/write only (600)
        os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)
    except OSError as e:
        logger.warning(f"Could not set permissions for {filepath}: {e}")


def get_random_emoji(emoji_list: list[str]) -> str:
    """Get a random emoji from the provided list.

    Args:
        emoji_list: List of emoji strings to choose from

    Returns:
        A randomly selected emoji
    """
    return random.choice(emoji_list)


def load_client_config(client_secret_file: str) -> dict[str, Any]:
    """Read the OAuth client configuration downloaded from Google Cloud Console.

    Args:
        client_secret_file: Path to client_secret.json

    Returns:
        The parsed client configuration

    Raises:
        SystemExit: If the file is missing, unparseable or not a client configuration
    """
    try:
        with open(client_secret_file, 'r', encoding='utf-8') as f:
            client_config = json.load(f)
    except OSError as e:
        logger.error(f"Unable to read client secret file {client_secret_file}: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Unable to parse client secret file {client_secret_file}: {e}")
        sys.exit(1)

    if not isinstance(client_config, dict) or not ('installed' in client_config or 'web' in client_config):
        logger.error(f"{client_secret_file} must contain an 'installed' or 'web' client configuration")
        sys.exit(1)
    return client_config


def load_saved_credentials(token_file: str, scopes: list[str]) -> Optional[Credentials]:
    """Load a previously saved authorization grant.

    Returns:
        The stored credentials, or None when the file is absent or unreadable
    """
    try:
        with open(token_file, 'r', encoding='utf-8') as token:
            info = json.load(token)
    except OSError:
        return None
    except ValueError as e:
        logger.warning(f"Ignoring unreadable token file {token_file}: {e}")
        return None

    if not isinstance(info, dict):
        logger.warning(f"Ignoring token file {token_file}: expected a JSON object")
        return None
    try:
        return Credentials.from_authorized_user_info(info, scopes)
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Ignoring incomplete token file {token_file}: {e}")
        return None


def save_credentials(creds: Credentials, token_file: str) -> None:
    """Persist the grant so later runs skip the consent step.

    Raises:
        SystemExit: If the token file cannot be written
    """
    logger.info(f"Saving credential file to: {token_file}")
    try:
        with open(token_file, 'w', encoding='utf-8') as token:
            token.write(creds.to_json())
    except OSError as e:
        logger.error(f"Unable to cache oauth token: {e}")
        sys.exit(1)
    secure_file_permissions(token_file)


def request_authorization_code(auth_url: str) -> str:
    """Ask the operator to approve access and paste back the authorization code.

    Blocks on standard input with no timeout until the operator responds.

    Args:
        auth_url: Consent page the operator must open in a browser

    Returns:
        The authorization code as typed

    Raises:
        SystemExit: If standard input is closed or the code is empty
    """
    print("Go to the following link in your browser then type the authorization code:")
    print(auth_url)
    try:
        auth_code = input().strip()
    except EOFError as e:
        logger.error(f"Unable to read authorization code: {e}")
        sys.exit(1)
    if not auth_code:
        logger.error("Unable to read authorization code: nothing was entered")
        sys.exit(1)
    return auth_code


def _default_redirect_uri(client_config: dict[str, Any]) -> str:
    client_info = client_config.get('installed') or client_config.get('web') or {}
    redirect_uris = client_info.get('redirect_uris') or [OOB_REDIRECT_URI]
    return redirect_uris[0]


def run_consent_flow(
    client_config: dict[str, Any],
    scopes: list[str],
    redirect_uri: Optional[str] = None
) -> Credentials:
    """Obtain a new grant through the interactive authorization-code flow.

    Args:
        client_config: Parsed client_secret.json
        scopes: Permission scopes to request
        redirect_uri: Redirect registered for the client, defaults to the first one in client_config

    Returns:
        Freshly issued credentials with offline access

    Raises:
        SystemExit: If the code exchange fails
    """
    flow = Flow.from_client_config(
        client_config,
        scopes=scopes,
        redirect_uri=redirect_uri or _default_redirect_uri(client_config)
    )
    auth_url, _ = flow.authorization_url(access_type='offline', prompt='consent')
    auth_code = request_authorization_code(auth_url)

    try:
        flow.fetch_token(code=auth_code)
    except Exception as e:
        logger.error(f"Unable to retrieve token from web: {e}")
        sys.exit(1)
    return flow.credentials


def get_credentials(config: ExportConfig) -> Credentials:
    """Get valid user credentials from storage or initiate the OAuth2 flow.

    Args:
        config: Export settings naming the token and client secret files

    Returns:
        Valid Google OAuth2 credentials
    """
    client_config = load_client_config(config.client_secret_file)

    creds = load_saved_credentials(config.token_file, config.scopes)
    if creds and creds.valid:
        return creds

    if creds and creds.refresh_token:
        try:
            creds.refresh(Request())
            save_credentials(creds, config.token_file)
            return creds
        except GoogleAuthError as e:
            logger.warning(f"Error refreshing credentials, asking for a new grant: {e}")

    creds = run_consent_flow(client_config, config.scopes, config.redirect_uri)
    save_credentials(creds, config.token_file)
    return creds


def scan_files(root_path: str, extension: str = CSV_EXTENSION) -> list[str]:
    """Collect the base names of every file under root_path with the given extension.

    Entries are visited depth-first in lexical order, each subdirectory at its
    sorted position among its siblings. Only regular files match. Unreadable
    entries are skipped and a missing root yields an empty list.
    """
    def _skip(error: OSError) -> None:
        logger.debug(f"Skipping {error.filename}: {error}")

    matches = []

    def _visit(path: str) -> None:
        try:
            with os.scandir(path) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            _skip(e)
            return

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    _visit(entry.path)
                elif entry.is_file() and os.path.splitext(entry.name)[1] == extension:
                    matches.append(entry.name)
            except OSError as e:
                _skip(e)

    _visit(root_path)
    return matches


def build_rows_from_csv(csv_path: str) -> list[list[str]]:
    """Read a CSV file into rows of literal string cells.

    Args:
        csv_path: Path to the CSV file

    Returns:
        One list per record, one string per field, exactly as written in the file

    Raises:
        ConversionError: If the file cannot be opened or parsed
    """
    logger.info(f"reading {csv_path}")
    try:
        with open(csv_path, 'r', newline='', encoding='utf-8') as f:
            # Blank lines hold no record
            return [record for record in csv.reader(f) if record]
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ConversionError(f"Error reading {csv_path}: {e}") from e


def to_row_data(rows: list[list[str]]) -> list[dict[str, Any]]:
    """Convert rows of strings into Sheets API RowData."""
    return [
        {'values': [{'userEnteredValue': {'stringValue': value}} for value in row]}
        for row in rows
    ]


def build_sheet_spec(title: str, rows: list[list[str]]) -> dict[str, Any]:
    """Describe one sheet whose single grid starts at A1."""
    return {
        'properties': {'title': title},
        'data': [{'rowData': to_row_data(rows)}]
    }


def create_spreadsheet(sheets_service: Any, title: str, sheet_specs: list[dict[str, Any]]) -> str:
    """Create a new Google Spreadsheet holding the given sheets.

    Args:
        sheets_service: Google Sheets API service instance
        title: Spreadsheet title
        sheet_specs: Sheet resources built by build_sheet_spec

    Returns:
        The ID of the created spreadsheet

    Raises:
        HttpError: If the Sheets API rejects the request
        PublishError: If the response carries no spreadsheet ID
    """
    body = {
        'properties': {'title': title},
        'sheets': sheet_specs
    }
    spreadsheet = sheets_service.spreadsheets().create(
        body=body,
        fields='spreadsheetId'
    ).execute()

    spreadsheet_id = (spreadsheet or {}).get('spreadsheetId')
    if not spreadsheet_id:
        raise PublishError(f"Spreadsheet '{title}' was not created: no spreadsheetId in response")
    logger.info(
        f"{get_random_emoji(SUCCESS_EMOJIS)} Created new spreadsheet '{title}' "
        f"with {len(sheet_specs)} sheets, ID: {spreadsheet_id}"
    )
    return spreadsheet_id


def list_files(drive_service: Any, page_size: int = 10) -> list[dict[str, Any]]:
    """List the most recent Drive files, for diagnostics only."""
    response = drive_service.files().list(
        pageSize=page_size,
        fields='files(id, name)'
    ).execute()
    files = response.get('files', [])
    logger.info(f"Drive files visible to this account: {files}")
    return files


def move_to_folder(drive_service: Any, file_id: str, folder_id: str) -> dict[str, Any]:
    """Make folder_id the only parent of the file.

    Raises:
        HttpError: If the Drive API rejects either request
    """
    current = drive_service.files().get(fileId=file_id, fields='parents').execute()
    previous_parents = ','.join(current.get('parents', []))

    moved = drive_service.files().update(
        fileId=file_id,
        addParents=folder_id,
        removeParents=previous_parents,
        fields='id, parents'
    ).execute()
    logger.info(f"{get_random_emoji(SUCCESS_EMOJIS)} Moved {file_id} into folder {folder_id}")
    return moved


def spreadsheet_url(spreadsheet_id: str) -> str:
    return f"https://docs.google.com/spreadsheets/d/{spreadsheet_id}"


def publish_spreadsheet(
    sheets_service: Any,
    drive_service: Any,
    sheets: list[tuple[str, list[list[str]]]],
    config: ExportConfig
) -> str:
    """Create the dated spreadsheet and file it under the target folder.

    If moving fails the spreadsheet stays where Drive created it.

    Args:
        sheets_service: Google Sheets API service instance
        drive_service: Google Drive API service instance
        sheets: (title, rows) pairs, one per sheet, in order
        config: Export settings naming the target folder

    Returns:
        The ID of the created spreadsheet
    """
    sheet_specs = [build_sheet_spec(title, rows) for title, rows in sheets]
    title = datetime.now().strftime('%Y-%m-%d')
    spreadsheet_id = create_spreadsheet(sheets_service, title, sheet_specs)

    list_files(drive_service, config.list_page_size)

    try:
        move_to_folder(drive_service, spreadsheet_id, config.target_folder_id)
    except HttpError:
        logger.error(
            f"{get_random_emoji(ERROR_EMOJIS)} Spreadsheet was created but could not be moved, "
            f"it remains at {spreadsheet_url(spreadsheet_id)}"
        )
        raise
    return spreadsheet_id


def export_to_spreadsheet(
    root_path: str,
    repo: str = '',
    config: Optional[ExportConfig] = None,
    sheets_service: Any = None,
    drive_service: Any = None
) -> str:
    """Upload every CSV file found under root_path as a sheet of a new spreadsheet.

    Files are discovered anywhere beneath root_path and read from
    root_path/repo/<name>.

    Args:
        root_path: Directory to scan for CSV files
        repo: Sub-directory of root_path the files are read from
        config: Export settings, loaded from config.py when omitted
        sheets_service: Google Sheets API service, built from credentials when omitted
        drive_service: Google Drive API service, built from credentials when omitted

    Returns:
        The ID of the created spreadsheet
    """
    if config is None:
        config = load_config()

    if sheets_service is None or drive_service is None:
        logger.info(f"\n{get_random_emoji(WORKING_EMOJIS)} Authenticating with Google APIs...")
        creds = get_credentials(config)
        if sheets_service is None:
            sheets_service = build('sheets', 'v4', credentials=creds)
        if drive_service is None:
            drive_service = build('drive', 'v3', credentials=creds)

    report_files = scan_files(root_path, config.file_extension)
    logger.info(f"\n{get_random_emoji(WORKING_EMOJIS)} Found {len(report_files)} CSV files: {report_files}")

    sheets = []
    for index, filename in enumerate(report_files, 1):
        logger.info(f"{get_random_emoji(WORKING_EMOJIS)} Processing file {index} of {len(report_files)}: {filename}")
        rows = build_rows_from_csv(os.path.join(root_path, repo, filename))
        sheets.append((filename, rows))

    spreadsheet_id = publish_spreadsheet(sheets_service, drive_service, sheets, config)
    logger.info(f"📊 Your spreadsheet is ready at: {spreadsheet_url(spreadsheet_id)}")
    return spreadsheet_id


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the CSV to Google Sheets exporter.

    Usage: sheets_exporter.py [ROOT_PATH [REPO]]
    """
    args = sys.argv[1:] if argv is None else argv
    root_path = args[0] if len(args) > 0 else 'csv_files'
    repo = args[1] if len(args) > 1 else ''

    config = load_config()
    configure_logging(config.log_file)
    logger.info(f"\n{get_random_emoji(WORKING_EMOJIS)} Starting up the CSV to Google Sheets exporter...")

    try:
        export_to_spreadsheet(root_path, repo, config)
    except HttpError as error:
        logger.error(f"\n{get_random_emoji(ERROR_EMOJIS)} An error occurred: {error}")
        sys.exit(1)
    except ExportError as error:
        logger.error(f"\n{get_random_emoji(ERROR_EMOJIS)} {error}")
        sys.exit(1)

    logger.info(f"\n{get_random_emoji(SUCCESS_EMOJIS)} Export complete!")


if __name__ == '__main__':
    main()
