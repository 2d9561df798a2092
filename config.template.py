# Configuration constants, copy to config.py and adjust
CLIENT_SECRET_FILE = 'client_secret.json'  # OAuth client downloaded from Google Cloud Console
TOKEN_FILE = 'token.json'  # Saved authorization grant, written on first run
TARGET_FOLDER_ID = 'your_drive_folder_id_here'  # Replace with the Drive folder that receives exports
LOG_FILE = 'export_log.txt'

# If modifying these scopes, delete your previously saved token.json.
SCOPES = [
    'https://www.googleapis.com/auth/spreadsheets',
    'https://www.googleapis.com/auth/drive'
]

# Uncomment to override the first redirect URI listed in client_secret.json
# REDIRECT_URI = 'urn:ietf:wg:oauth:2.0:oob'
