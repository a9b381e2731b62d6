import time                   # Millisecond timestamps for object names
import uuid                   # Generate unique identifiers
from datetime import date     # Pull date

# Security and file handling imports
from werkzeug.utils import secure_filename  # Secure file name handling
from PIL import Image, UnidentifiedImageError  # Image validation

from pokeblog.Config import (
    ALLOWED_EXTENSIONS, MAX_IMAGES, MIN_PASSWORD_LENGTH, SORT_POPULAR, SORT_RECENT
)

# Feed ordering: (column, descending) pairs handed to the database
FEED_ORDERS = {
    SORT_RECENT: [("created_at", True)],
    SORT_POPULAR: [("like_count", True), ("created_at", True)],
}

# =============================================================================
# FORM VALIDATION
# =============================================================================

def validate_signup(email, password, confirm_password):
    """
    Check the signup form before calling the auth provider.
    Returns an error message, or None when the form is fine.
    """
    if not email or not password:
        return "Email and password required."
    if password != confirm_password:
        return "Passwords do not match"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None


def validate_post_form(title, files):
    """
    Check a new post before anything is uploaded.
    - title is required
    - between 1 and MAX_IMAGES photos, each an allowed image type
    Returns an error message, or None when the post can be created.
    """
    if not title:
        return "Title is required."
    if not files:
        return "Add at least one photo."
    if len(files) > MAX_IMAGES:
        return f"Maximum {MAX_IMAGES} images allowed"
    for file_storage in files:
        if not allowed_file(file_storage.filename):
            return "Invalid file type."
        if not is_image(file_storage):
            return "Invalid image file."
    return None


# =============================================================================
# UPLOAD HELPERS
# =============================================================================

def allowed_file(filename):
    """
    Check if a file has an allowed extension for security.
    Only allows image files: png, jpg, jpeg, gif, webp
    """
    return bool(filename) and "." in filename and \
        filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def is_image(file_storage):
    """
    Make sure Pillow can read the upload as an image.
    The stream is rewound afterwards so it can still be uploaded.
    """
    stream = file_storage.stream
    try:
        with Image.open(stream) as img:
            img.verify()
        return True
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError):
        return False
    finally:
        stream.seek(0)


def storage_name(filename):
    """Unique object name for the bucket: <millis>-<random>_<secure name>."""
    safe = secure_filename(filename) or "photo"
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}_{safe}"


def read_upload(file_storage):
    """Return (object name, bytes, content type) for one uploaded photo."""
    data = file_storage.read()
    content_type = file_storage.mimetype or "application/octet-stream"
    return storage_name(file_storage.filename), data, content_type


def uploaded_files(files, field="images"):
    """Non-empty file parts of a multipart form, in the order they were sent."""
    return [f for f in files.getlist(field) if f and f.filename]


# =============================================================================
# FEED AND PROFILE HELPERS
# =============================================================================

def normalize_sort(sort):
    """Unknown sort keys fall back to the newest-first feed."""
    return sort if sort in FEED_ORDERS else SORT_RECENT


def feed_order(sort):
    return list(FEED_ORDERS[normalize_sort(sort)])


def profile_stats(posts):
    """Totals shown in the profile header. Null counters count as 0."""
    return {
        "posts": len(posts),
        "likes": sum(post.get("like_count") or 0 for post in posts),
        "comments": sum(post.get("comment_count") or 0 for post in posts),
    }


def today_iso():
    return date.today().isoformat()
