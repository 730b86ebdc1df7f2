"""
Flask app factory for the species detection API.

Builds the default SpeciesDetector (species table + OpenAI classifier) once
per process unless one is injected, and turns pipeline exceptions into the
JSON error shapes the mobile app expects.
"""

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config.logging_config import get_logger
from config.settings import DEBUG, HOST, PORT
from core.exception import DetectionError, log_exception, truncate_detail
from web.blueprints.detect import detect_bp

logger = get_logger(__name__)


def build_default_detector():
    from core.species_detection import SpeciesDetector
    from db.species_directory import SpeciesTableSource
    from tools.openai_utils import SpeciesClassifier

    return SpeciesDetector(SpeciesTableSource(), SpeciesClassifier())


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DetectionError)
    def handle_detection_error(e):
        if e.status_code >= 500:
            logger.error(f"detect-species failed: {e.message} {e.debug or ''}")
        return jsonify(e.to_payload()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        log_exception(e)
        return jsonify({"error": "Erreur interne", "debug": {"detail": truncate_detail(e)}}), 500


def create_app(detector=None) -> Flask:
    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.json.sort_keys = False

    app.extensions["species_detector"] = detector if detector is not None else build_default_detector()

    app.register_blueprint(detect_bp)
    app.register_blueprint(detect_bp, url_prefix="/api/v1", name="detect_v1")
    register_error_handlers(app)

    if not app.extensions["species_detector"].configured:
        logger.warning("OpenAI classifier not configured: every detection request will fail")
    return app


def main():
    app = create_app()
    logger.info(f"Starting species detection API on {HOST}:{PORT}")
    app.run(host=HOST, port=PORT, debug=DEBUG)


if __name__ == "__main__":
    main()
