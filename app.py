# =============================================================================
# PokeBlog - SHARE YOUR POKEMON CARD PULLS - FLASK WEB APP                    =
# =============================================================================
# A photo-sharing app for Pokemon card pulls built with Flask.
# Features: signup/login (Firebase Authentication), posts with up to five
# photos (Supabase database + storage), a feed sorted by recency or
# popularity, a profile page, and a QR code for opening the dev server on a
# phone on the same network.
# =============================================================================
import argparse               # Argument passing through terminal

from flask import Flask

from pokeblog import Config
from pokeblog.Routing import main_bp


# =============================================================================
# APPLICATION FACTORY                                                         =
# =============================================================================
def create_app(test_config=None):
    """
    Build the Flask application.
    - test_config: mapping of config overrides (tests, alternate deployments)
    Hosted service clients are created lazily on first use.
    """
    app = Flask(__name__, template_folder=f"{Config.BASE_DIR}/templates")
    app.config.from_mapping(
        SECRET_KEY=Config.SECRET_KEY,
        PORT=Config.DEFAULT_PORT,
        FIREBASE_API_KEY=Config.FIREBASE_API_KEY,
        AUTH_TIMEOUT=Config.AUTH_TIMEOUT,
        GOOGLE_CLIENT_ID=Config.GOOGLE_CLIENT_ID,
        SUPABASE_URL=Config.SUPABASE_URL,
        SUPABASE_KEY=Config.SUPABASE_KEY,
        POST_IMAGES_BUCKET=Config.POST_IMAGES_BUCKET,
        MAX_CONTENT_LENGTH=Config.MAX_CONTENT_LENGTH,
        MAX_IMAGES=Config.MAX_IMAGES,
        LOG_LEVEL=Config.LOG_LEVEL,
    )
    if test_config:
        app.config.from_mapping(test_config)

    Config.configure_logging(app.config["LOG_LEVEL"])
    app.register_blueprint(main_bp)
    return app


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="PokeBlog - Share your Pokemon card pulls")
    parser.add_argument("--port", type=int, default=Config.DEFAULT_PORT, help="Port number to run on the web app.")
    parser.add_argument("--notlan", action="store_false", default=True, help="Only listen on localhost instead of the local network.")
    return parser.parse_args(argv)


# =============================================================================
# APPLICATION STARTUP                                                         =
# =============================================================================
if __name__ == "__main__":
    """
    Start the Flask development server.
    - host="0.0.0.0" allows phones on the same network to connect (QR code)
    - --port changes the server port (also used in the QR code)
    - --notlan keeps the server on localhost only
    """
    arg = parse_args()
    app = create_app({"PORT": arg.port})
    if arg.notlan:
        # For network access (development/testing):
        app.run(host="0.0.0.0", port=arg.port, debug=True)
    else:
        # For local development only:
        app.run(port=arg.port, debug=True)
