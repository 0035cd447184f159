# dirgate/services/credentials.py
import hmac
from typing import Optional


class CredentialStore:
    """
    The one identity allowed to log in. Comparisons are constant-time.
    """

    def __init__(self, username: str, password: str, display_name: str = ""):
        self._username = username
        self._password = password
        self._display_name = display_name or username

    def verify(self, username: str, password: str) -> Optional[str]:
        user_ok = hmac.compare_digest(username.encode(), self._username.encode())
        pass_ok = hmac.compare_digest(password.encode(), self._password.encode())
        if user_ok and pass_ok:
            return self._username
        return None

    def display_name(self, identity: str) -> str:
        return self._display_name if identity == self._username else identity
