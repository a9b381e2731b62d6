import hmac                   # Constant-time token comparison
import logging                # Error reporting

# Flask framework imports
from flask import (
    Blueprint, current_app, flash, jsonify, redirect, render_template, request, url_for
)

from pokeblog.Auth import current_user, get_auth, login_required, login_user, logout_user
from pokeblog.Database import get_backend
from pokeblog.Errors import PokeBlogError
from pokeblog.Helpers import (
    feed_order, normalize_sort, profile_stats, read_upload, today_iso,
    uploaded_files, validate_post_form, validate_signup
)
from pokeblog.Qr import pairing_payload

logger = logging.getLogger(__name__)


def _message(exc, default):
    """User-facing text for a caught failure."""
    return getattr(exc, "message", None) or default


# =============================================================================
# FLASK ROUTES - WEB PAGES AND API ENDPOINTS
# =============================================================================

main_bp = Blueprint("main", __name__, url_prefix="")

@main_bp.route("/")
def index():
    """
    Landing page with signup/login links.
    The floating QR widget is loaded from /api/qr by the page script.
    """
    return render_template("index.html", user=current_user())

@main_bp.route("/login", methods=["GET", "POST"])
def login():
    """
    User login page and authentication.
    GET: Show login form
    POST: Check email/password with the auth provider and start a session
    """
    if current_user():
        return redirect(url_for("main.dashboard"))

    if request.method == "POST":
        email = request.form.get("email", "").strip()
        password = request.form.get("password", "")

        if email == "" or password == "":
            flash("Email and password required.", "error")
        else:
            try:
                login_user(get_auth().sign_in(email, password))
                return redirect(url_for("main.dashboard"))
            except PokeBlogError as exc:
                logger.warning("Login failed for %s: %s", email, exc)
                flash(_message(exc, "Failed to log in"), "error")

    return render_template("login.html", register=False, user=None,
                           email=request.form.get("email", ""))

@main_bp.route("/login/google", methods=["POST"])
def login_google():
    """
    Finish Google sign-in.
    The browser posts the Google ID token as "credential"; it is exchanged
    with the auth provider for a session. Used by both login and signup.
    Google also sends g_csrf_token as a form field and a cookie; both must match.
    """
    credential = request.form.get("credential", "")
    back = request.values.get("next") == "signup"

    form_token = request.form.get("g_csrf_token", "")
    cookie_token = request.cookies.get("g_csrf_token", "")
    if not form_token or not hmac.compare_digest(form_token.encode(), cookie_token.encode()):
        logger.warning("Google sign-in rejected: CSRF token mismatch")
        flash("Google sign-in failed. Please try again.", "error")
        return redirect(url_for("main.signup" if back else "main.login"))

    try:
        login_user(get_auth().sign_in_with_google(credential, request.url_root))
        return redirect(url_for("main.dashboard"))
    except PokeBlogError as exc:
        logger.warning("Google sign-in failed: %s", exc)
        flash(_message(exc, "Failed to sign up with Google"), "error")
    return redirect(url_for("main.signup" if back else "main.login"))

@main_bp.route("/signup", methods=["GET", "POST"])
def signup():
    """
    User registration page and account creation.
    GET: Show registration form
    POST: Validate the form, create the account and start a session
    """
    if request.method == "POST":
        email = request.form.get("email", "").strip()
        password = request.form.get("password", "")
        confirm = request.form.get("confirm_password", "")

        # Mismatched or short passwords never reach the provider
        error = validate_signup(email, password, confirm)
        if error:
            flash(error, "error")
        else:
            try:
                login_user(get_auth().sign_up(email, password))
                return redirect(url_for("main.dashboard"))
            except PokeBlogError as exc:
                logger.warning("Signup failed for %s: %s", email, exc)
                flash(_message(exc, "Failed to create account"), "error")

    return render_template("login.html", register=True, user=None,
                           email=request.form.get("email", ""))

@main_bp.route("/logout", methods=["GET", "POST"])
def logout():
    """
    Log out the current user by clearing the session.
    Redirects to the landing page.
    """
    logout_user()
    return redirect(url_for("main.index"))

@main_bp.route("/dashboard")
@login_required
def dashboard():
    """
    Feed of every post.
    ?sort=recent (default) shows newest first, ?sort=popular most liked first.
    """
    sort = normalize_sort(request.args.get("sort"))
    posts = []
    try:
        posts = get_backend().list_posts(feed_order(sort))
    except PokeBlogError:
        logger.exception("Error fetching posts")
        flash("Failed to load posts", "error")

    return render_template("dashboard.html", posts=posts, sort=sort, user=current_user())

@main_bp.route("/create-post", methods=["GET", "POST"])
@login_required
def create_post():
    """
    Share a new pull.
    GET: Show the post form
    POST: Upload up to 5 photos to storage, then insert the post row.
    The user's row is created on their first post.
    """
    user = current_user()
    title = request.form.get("title", "").strip()
    description = request.form.get("description", "").strip()

    if request.method == "POST":
        files = uploaded_files(request.files)
        error = validate_post_form(title, files)
        if error:
            flash(error, "error")
        else:
            try:
                backend = get_backend()
                user_id = backend.ensure_user(user.uid, user.email)

                # Upload in the order chosen so the first photo is the cover
                image_urls = []
                for file_storage in files:
                    name, data, content_type = read_upload(file_storage)
                    image_urls.append(backend.upload_image(name, data, content_type))

                backend.create_post(user_id, title, description, image_urls, today_iso())
                logger.info("User %s posted %d photo(s)", user.uid, len(image_urls))
                return redirect(url_for("main.dashboard"))
            except PokeBlogError as exc:
                logger.exception("Error creating post")
                flash(_message(exc, "Failed to create post"), "error")

    return render_template("create_post.html", title=title, description=description,
                           user=user)

@main_bp.route("/profile")
@login_required
def profile():
    """
    The current user's profile: their posts plus post, like and comment totals.
    A user without a row yet simply has no posts.
    """
    user = current_user()
    backend = None
    profile_row = None
    posts = []

    try:
        backend = get_backend()
        profile_row = backend.get_profile(user.uid)
    except PokeBlogError:
        logger.exception("Error fetching profile")
        flash("Failed to load profile", "error")

    if backend is not None and profile_row is not None:
        try:
            posts = backend.list_user_posts(profile_row["id"])
        except PokeBlogError:
            logger.exception("Error fetching posts")
            flash("Failed to load posts", "error")

    return render_template("profile.html", profile=profile_row, posts=posts,
                           stats=profile_stats(posts), user=user)

@main_bp.route("/api/qr", methods=["GET"])
def qr_code():
    """
    LAN pairing code for testing on a phone.
    Returns JSON {url, qrCode, localIP, port}, or {error} with status 500.
    """
    try:
        return jsonify(pairing_payload(current_app.config["PORT"]))
    except Exception:
        logger.exception("Error generating QR code")
        return jsonify(error="Failed to generate QR code"), 500
