"""
Species detection Blueprint.

- POST /detect-species - catch photo in, up to 3 species suggestions out
- GET  /health         - liveness + configuration flags

Mounted twice by the app factory: at the root (what the mobile app calls)
and under /api/v1.
"""

from flask import Blueprint, current_app, jsonify, request

from config.logging_config import get_logger
from core.exception import ClientFault, ConfigurationFault

logger = get_logger(__name__)

detect_bp = Blueprint("detect", __name__)


def get_detector():
    return current_app.extensions["species_detector"]


@detect_bp.route("/detect-species", methods=["POST"])
def detect_species():
    """
    Request:  {"image": "data:image/jpeg;base64,..."} or raw base64
    Response: {"suggestions": [{species, confidence, matched, source, unmatched?}]}
              or {"suggestions": [], "unmatched": true, "error": "..."}
    """
    detector = get_detector()
    if not detector.configured:
        logger.error("Missing OPENAI_API_KEY env variable")
        raise ConfigurationFault()

    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        raise ClientFault("Requete invalide")

    image = body.get("image")
    if not isinstance(image, str) or not image:
        raise ClientFault("Image obligatoire")

    return jsonify(detector.detect(image))


@detect_bp.route("/health", methods=["GET"])
def health():
    detector = get_detector()
    return jsonify({
        "status": "ok",
        "classifier_configured": detector.configured,
        "directory_configured": bool(getattr(detector.directory_source, "configured", False)),
    })
