"""
Configuration module for the Branch Order Portal
Environment-agnostic: Works locally, in Docker, and on Google Cloud
Loads environment variables and validates configuration
"""
import os
import tempfile
from pathlib import Path
from dotenv import load_dotenv

# Get project root directory (parent of src/)
PROJECT_ROOT = Path(__file__).parent.parent

# Load environment variables from .env file (if exists - local dev only)
env_file = PROJECT_ROOT / '.env'
if env_file.exists():
    load_dotenv(env_file)

# ═══════════════════════════════════════════════════════════════════
# ENVIRONMENT DETECTION
# ═══════════════════════════════════════════════════════════════════

def detect_environment() -> str:
    """
    Detect which environment we're running in

    Returns:
        'cloud_run', 'kubernetes', 'docker', or 'local'
    """
    # Cloud Run sets K_SERVICE
    if os.getenv('K_SERVICE'):
        return 'cloud_run'

    # Kubernetes sets KUBERNETES_SERVICE_HOST
    if os.getenv('KUBERNETES_SERVICE_HOST'):
        return 'kubernetes'

    # Docker typically has /.dockerenv file
    if Path('/.dockerenv').exists():
        return 'docker'

    if os.getenv('GOOGLE_CLOUD_PROJECT') or os.getenv('GCP_PROJECT'):
        return 'cloud_run'

    return 'local'

RUNTIME_ENVIRONMENT = detect_environment()

# ═══════════════════════════════════════════════════════════════════
# CREDENTIAL RESOLUTION - Smart multi-source loading
# ═══════════════════════════════════════════════════════════════════

_credentials_path = None  # Lazy loaded

def resolve_credentials() -> str:
    """
    Resolve Google Sheets service account credentials from multiple sources.
    Priority order:
    1. Local file (GOOGLE_SHEETS_CREDENTIALS_FILE env var or default path)
    2. JSON string in environment variable (GOOGLE_SHEETS_CREDENTIALS_JSON)
    3. Application Default Credentials (for Workload Identity)

    Returns:
        Path to credentials JSON file (may be temp file for JSON string sources)
        None if using Application Default Credentials
    """
    creds_file = os.getenv('GOOGLE_SHEETS_CREDENTIALS_FILE')
    if creds_file:
        if not os.path.isabs(creds_file):
            creds_file = str(PROJECT_ROOT / creds_file)
        if os.path.exists(creds_file):
            print(f"[CONFIG] Using credentials file: {creds_file}")
            return creds_file

    default_path = PROJECT_ROOT / 'config' / 'credentials.json'
    if default_path.exists():
        print(f"[CONFIG] Using default credentials file: {default_path}")
        return str(default_path)

    creds_json = os.getenv('GOOGLE_SHEETS_CREDENTIALS_JSON')
    if creds_json:
        temp_path = Path(tempfile.gettempdir()) / 'order_portal_credentials.json'
        temp_path.write_text(creds_json)
        print("[CONFIG] Using credentials from environment variable (GOOGLE_SHEETS_CREDENTIALS_JSON)")
        return str(temp_path)

    if RUNTIME_ENVIRONMENT in ('cloud_run', 'kubernetes'):
        print("[CONFIG] Using Application Default Credentials (Workload Identity)")
        return None  # Signal to use ADC

    raise ValueError(
        "No valid credentials source found. Set one of:\n"
        "  - GOOGLE_SHEETS_CREDENTIALS_FILE (path to JSON file)\n"
        "  - GOOGLE_SHEETS_CREDENTIALS_JSON (JSON string)\n"
        "  - Place credentials.json in config/ folder"
    )

def get_credentials_path():
    """Get credentials path (lazy loaded)"""
    global _credentials_path
    if _credentials_path is None:
        _credentials_path = resolve_credentials()
    return _credentials_path


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() == 'true'


# ═══════════════════════════════════════════════════════════════════
# CONFIGURATION VALUES
# ═══════════════════════════════════════════════════════════════════

# Master credential store: one tab per client, users in A2:Z
GOOGLE_CREDENTIALS_SHEET_ID = os.getenv('GOOGLE_CREDENTIALS_SHEET_ID')
RESERVED_CLIENT_TABS = [
    t.strip() for t in os.getenv('RESERVED_CLIENT_TABS', 'Config,Readme').split(',') if t.strip()
]
BUDGET_SHEET_ID_CELL = os.getenv('BUDGET_SHEET_ID_CELL', 'F2')
USER_CACHE_TTL_SECONDS = int(os.getenv('USER_CACHE_TTL_SECONDS', '0'))

# Per-client order data store layout
PRODUCT_CATALOG_SHEET = os.getenv('PRODUCT_CATALOG_SHEET', 'Product Catalog')
WAITING_SHEET = os.getenv('WAITING_SHEET', 'Waiting for Approval')
FINAL_ORDERS_SHEET = os.getenv('FINAL_ORDERS_SHEET', 'Final Orders')
CANCELLED_ORDERS_SHEET = os.getenv('CANCELLED_ORDERS_SHEET', 'Cancelled Orders')
SERIAL_NUMBERS_SHEET = os.getenv('SERIAL_NUMBERS_SHEET', 'Serial Numbers')

# Serial numbers (Serial Numbers!B2 holds the last issued serial)
SERIAL_PREFIX = os.getenv('SERIAL_PREFIX', 'AA')
SERIAL_COUNTER_CELL = os.getenv('SERIAL_COUNTER_CELL', 'B2')
SERIAL_FAIL_ON_READ_ERROR = _env_flag('SERIAL_FAIL_ON_READ_ERROR')

# Sheets API value options; formatted reads keep row timestamps as text
SHEETS_VALUE_RENDER_OPTION = os.getenv('SHEETS_VALUE_RENDER_OPTION', 'FORMATTED_VALUE')
SHEETS_VALUE_INPUT_OPTION = os.getenv('SHEETS_VALUE_INPUT_OPTION', 'USER_ENTERED')

# Reference calendar for the current-month window and row timestamps
BUSINESS_TIMEZONE = os.getenv('BUSINESS_TIMEZONE', 'Africa/Cairo')

# Export workbook columns: (header, width)
EXPORT_COLUMNS = [
    ('Order Serial', 15),
    ('Status', 12),
    ('Branch', 25),
    ('Requested By', 25),
    ('Order Date', 22),
    ('Product Code', 15),
    ('Product Name', 40),
    ('Category', 20),
    ('Quantity', 10),
    ('Unit Price', 14),
    ('Subtotal', 14),
]

# Monitoring Configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_DIR = os.getenv('LOG_DIR', 'logs')
LOG_FILE_MAX_MB = int(os.getenv('LOG_FILE_MAX_MB', '10'))
LOG_FILE_BACKUP_COUNT = int(os.getenv('LOG_FILE_BACKUP_COUNT', '5'))


# ═══════════════════════════════════════════════════════════════════
# REST API (FastAPI)
# ═══════════════════════════════════════════════════════════════════

API_HOST = os.getenv('API_HOST', '0.0.0.0')
API_PORT = int(os.getenv('API_PORT', '3000'))

# Cloud Run PORT override: Cloud Run sets PORT to the single port it routes
# traffic to.
_cloud_run_port = os.getenv('PORT')
if _cloud_run_port:
    API_PORT = int(_cloud_run_port)

API_CORS_ORIGINS = os.getenv('API_CORS_ORIGINS', '*').split(',')

# Frontend served by the fallback route
STATIC_DIR = os.getenv('STATIC_DIR', str(PROJECT_ROOT / 'public'))
STATIC_INDEX_FILE = os.getenv('STATIC_INDEX_FILE', 'main.html')


def validate_config():
    """Validate that all required configuration is present"""
    errors = []

    print(f"[CONFIG] Runtime environment: {RUNTIME_ENVIRONMENT}")

    if not GOOGLE_CREDENTIALS_SHEET_ID:
        errors.append("GOOGLE_CREDENTIALS_SHEET_ID is not set")

    try:
        creds_path = get_credentials_path()
        if creds_path and not os.path.exists(creds_path):
            errors.append(f"Google Sheets credentials file not found: {creds_path}")
    except ValueError as e:
        errors.append(str(e))

    try:
        from zoneinfo import ZoneInfo
        ZoneInfo(BUSINESS_TIMEZONE)
    except (KeyError, ValueError):
        errors.append(f"BUSINESS_TIMEZONE is not a known timezone: {BUSINESS_TIMEZONE}")

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join(errors))

    return True


if __name__ == "__main__":
    try:
        validate_config()
        print("[OK] Configuration validated successfully")
    except ValueError as e:
        print(f"[FAIL] Configuration validation failed:\n{e}")
