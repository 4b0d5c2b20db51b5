"""
User Accounts

Registration, login and password changes. Each user owns exactly one
Ledger, created at registration and kept for the process lifetime.

Passwords are never stored in clear text: werkzeug keeps a salted
PBKDF2-SHA256 hash and compares in constant time.
"""

import threading
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field
from werkzeug.security import check_password_hash, generate_password_hash

from src.config import LedgerSettings
from src.exceptions import AuthorizationError
from src.ledger import Ledger
from src.models.audit import AuditEventBuilder
from src.validation import validate_password, validate_registration

if TYPE_CHECKING:
    from src.audit import AuditLogger


HASH_METHOD = "pbkdf2:sha256"


def hash_password(password: str) -> str:
    """Return a salted 'pbkdf2:sha256:<rounds>$salt$hash' string."""
    return generate_password_hash(password, method=HASH_METHOD)


def verify_password(password: str, password_hash: str) -> bool:
    # werkzeug raises ValueError for an unknown method or a bad round count
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        return False


class User(BaseModel):
    """A registered user and their ledger."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    username: str = Field(..., min_length=1)
    password_hash: str = Field(..., min_length=1)
    wallet: Ledger

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)

    def set_password(self, password: str) -> None:
        self.password_hash = hash_password(password)


class UserRepository:
    """
    In-memory map of username -> User.

    Filled once at startup from the snapshot store and handed back to it
    at checkpoints.
    """

    def __init__(self, users: Optional[dict[str, User]] = None):
        self._lock = threading.Lock()
        self._users: dict[str, User] = dict(users or {})

    def add_if_absent(self, user: User) -> bool:
        """Insert the user unless the name is taken; True if inserted."""
        with self._lock:
            if user.username in self._users:
                return False
            self._users[user.username] = user
            return True

    def get_user(self, username: str) -> Optional[User]:
        with self._lock:
            return self._users.get(username)

    def user_exists(self, username: str) -> bool:
        with self._lock:
            return username in self._users

    def authenticate(self, username: str, password: str) -> bool:
        user = self.get_user(username)
        return user is not None and user.check_password(password)

    def get_user_count(self) -> int:
        with self._lock:
            return len(self._users)

    def as_mapping(self) -> dict[str, User]:
        with self._lock:
            return dict(self._users)


class UserService:
    """
    Account operations and the signed-in session.

    One UserService is one session: it remembers at most one current user.
    """

    def __init__(
        self,
        repository: UserRepository,
        ledger_settings: Optional[LedgerSettings] = None,
        audit_logger: Optional["AuditLogger"] = None,
    ):
        self._repository = repository
        self._ledger_settings = ledger_settings
        self._audit_logger = audit_logger
        self._current_user: Optional[User] = None

    @property
    def repository(self) -> UserRepository:
        return self._repository

    @property
    def current_user(self) -> Optional[User]:
        return self._current_user

    @property
    def is_authenticated(self) -> bool:
        return self._current_user is not None

    def require_user(self) -> User:
        """
        The signed-in user.

        Raises:
            AuthorizationError: If nobody is signed in
        """
        if self._current_user is None:
            raise AuthorizationError("User is not logged in")
        return self._current_user

    def register(self, username: str, password: str, confirm_password: str) -> User:
        """
        Create a user with an empty ledger.

        Raises:
            ValidationError: Username or password rules not met
            AuthorizationError: Username already taken
        """
        username = validate_registration(username, password, confirm_password)
        if self._repository.user_exists(username):
            raise AuthorizationError("A user with this name already exists")

        user = User(
            username=username,
            password_hash=hash_password(password),
            wallet=Ledger(username, settings=self._ledger_settings),
        )
        if not self._repository.add_if_absent(user):
            raise AuthorizationError("A user with this name already exists")

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.user_registered(username))
        return user

    def login(self, username: str, password: str) -> User:
        """
        Sign a user in.

        Raises:
            AuthorizationError: Unknown user or wrong password
        """
        if not self._repository.authenticate(username, password):
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.login_failed(username))
            raise AuthorizationError("Invalid username or password")

        self._current_user = self._repository.get_user(username)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.user_logged_in(username))
        return self._current_user

    def logout(self) -> None:
        if self._current_user is not None:
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.user_logged_out(self._current_user.username))
            self._current_user = None

    def change_password(
        self,
        old_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """
        Change the signed-in user's password.

        Raises:
            AuthorizationError: Not signed in, or the old password is wrong
            ValidationError: The new password breaks the password rules
        """
        user = self.require_user()
        if not user.check_password(old_password):
            raise AuthorizationError("Current password is incorrect")
        validate_password(new_password, confirm_password, label="New password")

        user.set_password(new_password)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.password_changed(user.username))
