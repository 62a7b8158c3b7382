"""
Application configuration and paths.
"""
import os
from pathlib import Path

# Application identity
APP_NAME = 'Briefcast'
APP_VERSION = '0.1.0'

# Server configuration
SERVER_HOST = os.environ.get('BRIEFCAST_HOST', '127.0.0.1')
SERVER_PORT = int(os.environ.get('BRIEFCAST_PORT', '5111'))

# Data directory (database + locally stored audio)
DATA_DIR = Path(os.environ.get('BRIEFCAST_DATA_DIR', Path.home() / '.briefcast'))

# Database configuration
DATABASE_PATH = DATA_DIR / 'briefcast.db'
DATABASE_URL = os.environ.get('BRIEFCAST_DATABASE_URL', f'sqlite+aiosqlite:///{DATABASE_PATH}')

# Audio storage
AUDIO_DIR = DATA_DIR / 'audio'
PUBLIC_AUDIO_BASE_URL = os.environ.get('PUBLIC_AUDIO_BASE_URL', f'http://{SERVER_HOST}:{SERVER_PORT}/audio')

# Job store
HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT', '10'))
MAX_QUEUE_LENGTH = int(os.environ.get('MAX_QUEUE_LENGTH', '20'))
AVERAGE_JOB_SECONDS = int(os.environ.get('AVERAGE_JOB_SECONDS', '45'))

# Retry policy: redelivery after 2**attempts * RETRY_BASE_SECONDS
MAX_RETRIES = int(os.environ.get('MAX_RETRIES', '3'))
RETRY_BASE_SECONDS = int(os.environ.get('RETRY_BASE_SECONDS', '60'))

# Pipeline parameters per job type
DEFAULT_BILL_COUNT = {'daily': 3, 'weekly': 8}
SCRIPT_MAX_TOKENS = {'daily': 2000, 'weekly': 5000}
TARGET_LENGTH = {'daily': '5-7 minutes', 'weekly': '15-18 minutes'}

# MP3 at 192kbps is ~24KB per second of audio
AUDIO_BYTES_PER_SECOND = 24 * 1024

# External services
HTTP_TIMEOUT_SECONDS = float(os.environ.get('HTTP_TIMEOUT_SECONDS', '120'))

CONGRESS_API_URL = os.environ.get('CONGRESS_API_URL', 'https://api.congress.gov/v3')
CONGRESS_API_KEY = os.environ.get('CONGRESS_API_KEY', '')
CURRENT_CONGRESS = int(os.environ.get('CURRENT_CONGRESS', '119'))

ANTHROPIC_API_URL = os.environ.get('ANTHROPIC_API_URL', 'https://api.anthropic.com/v1/messages')
ANTHROPIC_API_KEY = os.environ.get('ANTHROPIC_API_KEY', '')
ANTHROPIC_MODEL = os.environ.get('ANTHROPIC_MODEL', 'claude-sonnet-4-20250514')

ELEVENLABS_API_URL = os.environ.get('ELEVENLABS_API_URL', 'https://api.elevenlabs.io/v1/text-to-dialogue')
ELEVENLABS_API_KEY = os.environ.get('ELEVENLABS_API_KEY', '')
ELEVENLABS_MODEL = os.environ.get('ELEVENLABS_MODEL', 'eleven_monolingual_v1')
ELEVENLABS_OUTPUT_FORMAT = 'mp3_44100_192'
SPEAKER_VOICES = {
    'sarah': os.environ.get('ELEVENLABS_SARAH_VOICE_ID', ''),
    'james': os.environ.get('ELEVENLABS_JAMES_VOICE_ID', ''),
}

# Notifications (empty = log only)
NOTIFY_WEBHOOK_URL = os.environ.get('NOTIFY_WEBHOOK_URL', '')

# Scheduled fan-out
CRON_SECRET = os.environ.get('CRON_SECRET', 'dev-secret')
SCHEDULER_BATCH_SIZE = 5
ACTIVE_USER_WINDOW_DAYS = 30


def ensure_directories():
    """Create required directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    AUDIO_DIR.mkdir(parents=True, exist_ok=True)
