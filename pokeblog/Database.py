import logging                # Error reporting

from flask import current_app
from supabase import create_client  # Hosted database + storage client

from pokeblog.Config import POST_IMAGES_BUCKET
from pokeblog.Errors import BackendError

logger = logging.getLogger(__name__)

# Key used to store the backend on the Flask app
EXTENSION_KEY = "pokeblog.backend"

# Columns the feed shows, with the author's email joined in
FEED_COLUMNS = "*, users ( email )"


# =============================================================================
# DATABASE HELPER CLASS
# =============================================================================

class SupabaseBackend:
    """
    Table and bucket operations used by the pages.
    - users: looked up by the auth provider's uid, created lazily
    - posts: inserted on submission, read for the feed and the profile
    - post-images bucket: one object per uploaded photo
    Provider failures are raised as BackendError.
    """

    def __init__(self, client, bucket=POST_IMAGES_BUCKET):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, url, key, bucket=POST_IMAGES_BUCKET):
        if not url or not key:
            raise BackendError("Database is not configured.")
        return cls(create_client(url, key), bucket=bucket)

    # -------------------------------------------------------------------------
    # users
    # -------------------------------------------------------------------------
    def find_user_id(self, firebase_uid):
        rows = self._execute(
            "find user",
            self.client.table("users").select("id").eq("firebase_uid", firebase_uid).limit(1),
        )
        return rows[0]["id"] if rows else None

    def get_profile(self, firebase_uid):
        rows = self._execute(
            "load profile",
            self.client.table("users").select("*").eq("firebase_uid", firebase_uid).limit(1),
        )
        return rows[0] if rows else None

    def create_user(self, firebase_uid, email):
        rows = self._execute(
            "create user",
            self.client.table("users").insert({"firebase_uid": firebase_uid, "email": email}),
        )
        if not rows:
            raise BackendError("Failed to create user")
        logger.info("Created user row %s for %s", rows[0]["id"], firebase_uid)
        return rows[0]["id"]

    def ensure_user(self, firebase_uid, email):
        """Return the user's row id, creating the row on first use."""
        user_id = self.find_user_id(firebase_uid)
        if user_id is None:
            user_id = self.create_user(firebase_uid, email)
        return user_id

    # -------------------------------------------------------------------------
    # storage
    # -------------------------------------------------------------------------
    def upload_image(self, file_name, data, content_type="application/octet-stream"):
        """Upload one photo and return its public URL."""
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(file_name, data, {"content-type": content_type})
            return bucket.get_public_url(file_name)
        except Exception as exc:
            raise BackendError(f"Failed to upload {file_name}") from exc

    # -------------------------------------------------------------------------
    # posts
    # -------------------------------------------------------------------------
    def create_post(self, user_id, title, description, images, pull_date):
        rows = self._execute("create post", self.client.table("posts").insert({
            "user_id": user_id,
            "title": title,
            "description": description,
            "images": list(images),
            "pull_date": pull_date,
        }))
        return rows[0] if rows else None

    def list_posts(self, order):
        """All posts with author email, ordered by (column, descending) pairs, nulls last."""
        query = self.client.table("posts").select(FEED_COLUMNS)
        for column, descending in order:
            query = query.order(column, desc=descending, nullsfirst=False)  # Null counters sort as 0
        return self._execute("list posts", query)

    def list_user_posts(self, user_id):
        query = (
            self.client.table("posts")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
        )
        return self._execute("list user posts", query)

    @staticmethod
    def _execute(action, query):
        try:
            response = query.execute()
        except Exception as exc:
            message = getattr(exc, "message", None) or f"Failed to {action}"
            raise BackendError(message, context={"action": action}) from exc
        return response.data or []


def get_backend():
    """
    Return the backend bound to the current app.
    Built from config on first use; tests put their own in app.extensions.
    """
    backend = current_app.extensions.get(EXTENSION_KEY)
    if backend is None:
        backend = SupabaseBackend.from_config(
            current_app.config["SUPABASE_URL"],
            current_app.config["SUPABASE_KEY"],
            bucket=current_app.config["POST_IMAGES_BUCKET"],
        )
        current_app.extensions[EXTENSION_KEY] = backend
    return backend
