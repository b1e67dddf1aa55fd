# firebase_init.py
import os, logging
from pathlib import Path

import firebase_admin
from firebase_admin import auth as fb_auth, credentials

_log = logging.getLogger(__name__)


def _service_account_path(config) -> Path | None:
    # 1) Prefer explicit config / env var
    sa_path = config.get("FIREBASE_SA_PATH") or os.environ.get("FIREBASE_SA_PATH")

    # 2) Fallback: resolve relative to this file (works regardless of cwd)
    if not sa_path:
        here = Path(__file__).resolve().parent
        sa_path = str(here / "etc" / "secrets" / "firebase-sa.json")

    p = Path(sa_path)
    return p if p.is_file() else None


def get_firebase_app(config):
    """
    Initialize the Firebase Admin app once and return it.

    Uses the service account JSON when present, otherwise application default
    credentials with FIREBASE_PROJECT_ID (enough to verify ID tokens).
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    sa = _service_account_path(config)
    project_id = config.get("FIREBASE_PROJECT_ID")
    if sa is not None:
        _log.info("[firebase] using service account %s", sa)
        return firebase_admin.initialize_app(credentials.Certificate(str(sa)))

    if not project_id:
        _log.warning("[firebase] no service account and no FIREBASE_PROJECT_ID (cwd=%s)", os.getcwd())
        raise RuntimeError("Firebase is not configured: set FIREBASE_SA_PATH or FIREBASE_PROJECT_ID")

    _log.info("[firebase] using default credentials project=%s", project_id)
    return firebase_admin.initialize_app(options={"projectId": project_id})


def verify_id_token(id_token: str, config) -> dict:
    """Decoded claims of a Firebase ID token; raises on invalid/expired tokens."""
    return fb_auth.verify_id_token(id_token, app=get_firebase_app(config))
