import logging                # Error reporting
from dataclasses import dataclass
from functools import wraps   # Keep view names intact under the decorator

import requests               # HTTP calls to the auth provider
from flask import current_app, redirect, session, url_for

from pokeblog.Config import FIREBASE_AUTH_URL
from pokeblog.Errors import AuthError

logger = logging.getLogger(__name__)

# Key used to store the provider client on the Flask app
EXTENSION_KEY = "pokeblog.auth"

# Provider error codes turned into something a person can read
FRIENDLY_MESSAGES = {
    "EMAIL_EXISTS": "An account with this email already exists.",
    "EMAIL_NOT_FOUND": "Invalid email or password.",
    "INVALID_PASSWORD": "Invalid email or password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "INVALID_EMAIL": "Please enter a valid email address.",
    "MISSING_PASSWORD": "Password is required.",
    "WEAK_PASSWORD": "Password must be at least 6 characters",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "INVALID_IDP_RESPONSE": "Google sign-in failed. Please try again.",
    "OPERATION_NOT_ALLOWED": "This sign-in method is not enabled.",
}


@dataclass
class AuthUser:
    """The signed-in user as the auth provider reports it."""
    uid: str
    email: str
    id_token: str = ""
    refresh_token: str = ""


# =============================================================================
# AUTH PROVIDER CLIENT
# =============================================================================

class FirebaseAuth:
    """
    Thin client for the Firebase Identity Toolkit REST API.
    - sign_up / sign_in use email and password
    - sign_in_with_google exchanges a Google ID token obtained in the browser
    Every failure is raised as AuthError with a readable message.
    """

    def __init__(self, api_key, timeout=10, base_url=FIREBASE_AUTH_URL, http=None):
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()

    def sign_up(self, email, password):
        data = self._call("accounts:signUp", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return self._to_user(data, fallback_email=email)

    def sign_in(self, email, password):
        data = self._call("accounts:signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return self._to_user(data, fallback_email=email)

    def sign_in_with_google(self, id_token, request_uri="http://localhost"):
        if not id_token:
            raise AuthError("Missing Google credential.")
        data = self._call("accounts:signInWithIdp", {
            "postBody": f"id_token={id_token}&providerId=google.com",
            "requestUri": request_uri,
            "returnIdpCredential": True,
            "returnSecureToken": True,
        })
        return self._to_user(data)

    def _call(self, method, payload):
        """POST one Identity Toolkit method and return the decoded body."""
        if not self.api_key:
            raise AuthError("Authentication is not configured.")

        url = f"{self.base_url}/{method}"
        try:
            response = self.http.post(
                url, params={"key": self.api_key}, json=payload, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise AuthError("Unable to reach the authentication service") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code != 200:
            raise error_from_response(data)
        return data

    @staticmethod
    def _to_user(data, fallback_email=""):
        uid = data.get("localId")
        if not uid:
            raise AuthError("Authentication service returned no user.")
        return AuthUser(
            uid=uid,
            email=data.get("email") or fallback_email,
            id_token=data.get("idToken", ""),
            refresh_token=data.get("refreshToken", ""),
        )


def error_from_response(data):
    """
    Build an AuthError from a provider error body.
    The provider sends messages like "WEAK_PASSWORD : Password should be ...",
    only the code before the colon is looked up.
    """
    raw = ((data or {}).get("error") or {}).get("message") or ""
    code = raw.split(":", 1)[0].strip()
    if not code:
        return AuthError("Authentication failed.")
    message = FRIENDLY_MESSAGES.get(code, raw)
    return AuthError(message, code=code)


def get_auth():
    """
    Return the auth provider bound to the current app.
    Built from config on first use; tests put their own in app.extensions.
    """
    auth = current_app.extensions.get(EXTENSION_KEY)
    if auth is None:
        auth = FirebaseAuth(
            current_app.config["FIREBASE_API_KEY"],
            timeout=current_app.config["AUTH_TIMEOUT"],
        )
        current_app.extensions[EXTENSION_KEY] = auth
    return auth


# =============================================================================
# SESSION-BACKED AUTH CONTEXT
# =============================================================================

def login_user(user):
    """Start a session for a user returned by the provider."""
    session.clear()
    session["uid"] = user.uid
    session["email"] = user.email
    session["id_token"] = user.id_token
    logger.info("User %s signed in", user.uid)


def logout_user():
    """Forget the current user."""
    uid = session.get("uid")
    session.clear()
    if uid:
        logger.info("User %s signed out", uid)


def current_user():
    """
    Get the currently logged-in user from the session.
    Returns an AuthUser if logged in, None if not.
    """
    uid = session.get("uid")
    if not uid:
        return None
    return AuthUser(uid=uid, email=session.get("email", ""), id_token=session.get("id_token", ""))


def login_required(view):
    """Redirect anonymous visitors to the login page."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if current_user() is None:
            return redirect(url_for("main.login"))
        return view(*args, **kwargs)
    return wrapped
