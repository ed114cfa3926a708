"""Session service - encrypted local storage of auth tokens and backend configuration"""
import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

import httpx
from cryptography.fernet import Fernet

from aura.core.errors import authentication_required, configuration_error
from aura.core.logging import security_logger
from aura.db.remote_store import RemoteStore
from aura.utils.encryption import decrypt, encrypt

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "sb-access-token"
REFRESH_TOKEN_KEY = "sb-refresh-token"
DATABASE_URL_KEY = "database-url"
ANON_KEY_KEY = "database-anon-key"


class EncryptedStore:
    """
    Named string values persisted to a single Fernet-encrypted JSON file.

    The whole document is re-encrypted on every write; the store only ever
    holds a handful of small values.
    """

    def __init__(self, path: Path, cipher: Fernet):
        self.path = Path(path)
        self.cipher = cipher
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        ciphertext = self.path.read_text(encoding="utf-8").strip()
        if not ciphertext:
            return {}
        try:
            return json.loads(decrypt(self.cipher, ciphertext))
        except ValueError as e:
            raise configuration_error(f"Session store {self.path} cannot be read with the configured ENCRYPTION_KEY: {e}")

    def _save(self, values: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(encrypt(self.cipher, json.dumps(values)), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._load()
            values[key] = value
            self._save(values)

    def delete(self, key: str) -> bool:
        with self._lock:
            values = self._load()
            if key not in values:
                return False
            del values[key]
            self._save(values)
            return True


class SessionStore:
    """Access/refresh tokens and relational backend configuration for the signed-in user"""

    def __init__(self, store: EncryptedStore, default_database_url: str = "", default_anon_key: str = ""):
        self.store = store
        self.default_database_url = default_database_url
        self.default_anon_key = default_anon_key

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def store_tokens(self, access_token: str, refresh_token: str) -> None:
        self.store.set(ACCESS_TOKEN_KEY, access_token)
        self.store.set(REFRESH_TOKEN_KEY, refresh_token)
        security_logger.info("Session tokens stored")

    def update_tokens(self, access_token: str, refresh_token: str) -> None:
        self.store_tokens(access_token, refresh_token)

    def get_tokens(self) -> Tuple[Optional[str], Optional[str]]:
        return self.store.get(ACCESS_TOKEN_KEY), self.store.get(REFRESH_TOKEN_KEY)

    def check_session(self) -> bool:
        """Both tokens present; says nothing about whether they are still valid"""
        access_token, refresh_token = self.get_tokens()
        return bool(access_token) and bool(refresh_token)

    def logout(self) -> None:
        self.store.delete(ACCESS_TOKEN_KEY)
        self.store.delete(REFRESH_TOKEN_KEY)
        security_logger.info("Session tokens cleared")

    # ------------------------------------------------------------------
    # Relational backend configuration
    # ------------------------------------------------------------------

    def init_database(self, database_url: str, access_token: str, anon_key: str) -> None:
        self.store.set(DATABASE_URL_KEY, database_url.rstrip("/"))
        self.store.set(ANON_KEY_KEY, anon_key)
        self.store.set(ACCESS_TOKEN_KEY, access_token)
        logger.info(f"Database configured at {database_url}")

    def database_url(self) -> Optional[str]:
        return self.store.get(DATABASE_URL_KEY) or self.default_database_url or None

    def anon_key(self) -> Optional[str]:
        return self.store.get(ANON_KEY_KEY) or self.default_anon_key or None

    def get_database_status(self) -> Dict[str, object]:
        database_url = self.database_url()
        anon_key = self.anon_key()
        has_session = self.check_session()
        configured = bool(database_url and anon_key)
        authenticated = configured and bool(self.store.get(ACCESS_TOKEN_KEY))

        if not configured:
            status = "not_configured"
        elif not authenticated:
            status = "authentication_required"
        else:
            status = "ready"

        return {
            "configured": configured,
            "has_database_url": bool(database_url),
            "has_session_tokens": has_session,
            "authenticated": authenticated,
            "status": status,
        }

    def remote_store(self, client: httpx.Client) -> RemoteStore:
        """Build a RemoteStore for the current session

        Raises:
            AuraError(CONFIGURATION): If the backend URL or anon key is missing
            AuraError(AUTHENTICATION_REQUIRED): If no access token is stored
        """
        database_url = self.database_url()
        if not database_url:
            raise configuration_error("Database not initialized")
        access_token = self.store.get(ACCESS_TOKEN_KEY)
        if not access_token:
            raise authentication_required("No authentication token found in session store")
        anon_key = self.anon_key()
        if not anon_key:
            raise configuration_error("No anon key found")
        return RemoteStore(database_url, anon_key, access_token, client)
