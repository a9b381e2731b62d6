import os                     # File system and environment access
import logging.config         # Logging setup through dictConfig

from dotenv import load_dotenv  # Read secrets from a local .env file


# =============================================================================
# APPLICATION CONFIGURATION
# =============================================================================
# Get the directory where this package is located
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.dirname(BASE_DIR)

# Load .env from the project root (values already in the environment win)
load_dotenv(os.path.join(ROOT_DIR, ".env"))

APP_NAME = "PokeBlog"

# Secret key for session management and security
SECRET_KEY = os.environ.get("SECRET_KEY", "dev-pokeblog-change-me")

# Port used by the dev server and embedded in the pairing QR code
DEFAULT_PORT = int(os.environ.get("PORT", 8080))

# =============================================================================
# EXTERNAL SERVICES
# =============================================================================
# Firebase Authentication (Identity Toolkit REST API)
FIREBASE_API_KEY = os.environ.get("FIREBASE_API_KEY", "")
FIREBASE_AUTH_URL = "https://identitytoolkit.googleapis.com/v1"
AUTH_TIMEOUT = float(os.environ.get("AUTH_TIMEOUT", 10))

# Client id for the Google sign-in button (optional)
GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID", "")

# Supabase hosted database and storage
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_KEY = os.environ.get("SUPABASE_KEY", "")
POST_IMAGES_BUCKET = "post-images"

# =============================================================================
# POSTING RULES
# =============================================================================
MAX_IMAGES = 5               # Photos allowed on a single post
MIN_PASSWORD_LENGTH = 6      # Same floor as the auth provider

# Allowed file extensions for security
ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}

# Upper bound on a whole create-post request (5 photos)
MAX_CONTENT_LENGTH = 50 * 1024 * 1024

# Feed sort keys
SORT_RECENT = "recent"
SORT_POPULAR = "popular"

# =============================================================================
# QR PAIRING
# =============================================================================
QR_SIZE = 300                # Rendered width/height in pixels
QR_MARGIN = 2                # Quiet zone, in modules

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_LOGGING_CONFIGURED = False


def configure_logging(level=None):
    """
    Configure the root logger once.
    Later calls only adjust the level.
    """
    global _LOGGING_CONFIGURED

    level = (level or LOG_LEVEL).upper()
    if _LOGGING_CONFIGURED:
        logging.getLogger().setLevel(level)
        return

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "standard",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
    })
    _LOGGING_CONFIGURED = True
