"""Firebase Admin SDK initialization"""

import logging
import os

import firebase_admin
from firebase_admin import credentials

from scripthub.utils.environment import is_production

logger = logging.getLogger(__name__)

_firebase_app = None


def get_credentials_file() -> str:
    """FIREBASE_CREDENTIALS_FILE, else the per-environment default"""
    cred_file = os.getenv("FIREBASE_CREDENTIALS_FILE")
    if cred_file:
        return cred_file
    return "firebase-credentials.json" if is_production() else "firebase-credentials-dev.json"


def initialize_firebase() -> firebase_admin.App:
    """
    Initialize the Firebase app once and cache it.

    Raises:
        FileNotFoundError: If the credentials file is missing
    """
    global _firebase_app

    if _firebase_app is not None:
        return _firebase_app

    cred_file = get_credentials_file()
    if not os.path.exists(cred_file):
        logger.warning(f"Firebase credentials file not found: {cred_file}. Sign-in is unavailable.")
        raise FileNotFoundError(f"Firebase credentials file not found: {cred_file}")

    try:
        _firebase_app = firebase_admin.initialize_app(credentials.Certificate(cred_file))
    except Exception as e:
        logger.error(f"Failed to initialize Firebase: {e}")
        raise

    logger.info(f"Firebase initialized with credentials from: {cred_file}")
    return _firebase_app


def get_firebase_app() -> firebase_admin.App:
    return _firebase_app if _firebase_app is not None else initialize_firebase()
