"""
Authentication Manager Module - Guest Check-in System

This module validates the single administrator credential pair and manages
the session marker that protected views check. The system is a
single-operator kiosk tool: there is one account, no password hashing,
no roles and no session expiry beyond the browser session.
"""

import logging
import secrets
from typing import Any, Dict, MutableMapping, Optional

SESSION_KEY = 'admin_user'


class AuthManager:
    """
    Credential check and session marker handling.
    """

    def __init__(self, admin_username: str, admin_password: str):
        """
        Args:
            admin_username (str): The only accepted username
            admin_password (str): The only accepted password
        """
        self.admin_username = admin_username
        self.admin_password = admin_password
        self.logger = logging.getLogger(__name__)

    def authenticate_user(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Check a username/password pair by exact string equality.

        Args:
            username (str): Username
            password (str): Password

        Returns:
            Dict[str, Any]: Session marker if authenticated, None otherwise
        """
        username = username or ''
        password = password or ''

        valid_user = secrets.compare_digest(username.encode(), self.admin_username.encode())
        valid_password = secrets.compare_digest(password.encode(), self.admin_password.encode())

        if valid_user and valid_password:
            self.logger.info(f"User authenticated successfully: {username}")
            return {'username': username}

        self.logger.warning(f"Authentication failed for username: {username}")
        return None

    def login(self, session: MutableMapping[str, Any], username: str, password: str) -> bool:
        """Store the session marker when the credentials are valid."""
        user = self.authenticate_user(username, password)
        if not user:
            return False

        session[SESSION_KEY] = user
        return True

    @staticmethod
    def logout(session: MutableMapping[str, Any]) -> Optional[str]:
        """Clear the session marker. Returns the username that was logged in."""
        user = session.pop(SESSION_KEY, None)
        return user.get('username') if isinstance(user, dict) else None

    @staticmethod
    def current_user(session: MutableMapping[str, Any]) -> Optional[Dict[str, Any]]:
        user = session.get(SESSION_KEY)
        if isinstance(user, dict) and user.get('username'):
            return user
        return None

    def is_authenticated(self, session: MutableMapping[str, Any]) -> bool:
        return self.current_user(session) is not None
