import getpass
import os
from typing import Optional

from dotenv import load_dotenv


class CredentialManager:
    """
    Loads CMPKG_* environment variables (optionally from .env) and hands out
    the (username, password) pair used for AdminService authentication.
    """

    def __init__(self, env_prefix: str = "CMPKG_", prompt: bool = True) -> None:
        """
        :param env_prefix: Prefix used for environment variables.
        :param prompt: Ask for the password interactively when it is not set.
        """
        load_dotenv()
        self.env_prefix = env_prefix
        self.prompt = prompt
        self._password: Optional[str] = None

    # --------------------------------------------------------------------- #
    # Helper: read optional env var
    # --------------------------------------------------------------------- #
    def _env(self, key: str) -> Optional[str]:
        value = os.getenv(f"{self.env_prefix}{key}")
        if value is None or not value.strip():
            return None
        return value

    # --------------------------------------------------------------------- #
    # Public getters
    # --------------------------------------------------------------------- #
    def get_username(self) -> Optional[str]:
        return self._env("USERNAME")

    def get_password(self) -> Optional[str]:
        if self._password is None:
            self._password = self._env("PASSWORD")
        if self._password is None and self.prompt:
            self._password = getpass.getpass(
                f"Enter AdminService password for {self.get_username()}: "
            )
        return self._password

    def get_auth(self) -> Optional[tuple[str, str]]:
        """
        Returns (username, password) for NTLM authentication, or None when no
        username is configured, in which case the client authenticates as the
        logged-on Windows user (Negotiate).
        """
        username = self.get_username()
        if username is None:
            return None
        return username, self.get_password() or ""
