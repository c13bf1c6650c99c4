import logging
from typing import List, Optional, Tuple

from sqlmodel import Session

from ..dao import UserDAO
from ..errors import DuplicateError, NotFoundError, PersistenceFailure, ValidationError
from ..models import User
from ..schemas.user import UserCreate, UserUpdate
from .security import CredentialHasher, TokenIssuer
from .task_service import TaskService

logger = logging.getLogger(__name__)


def _require(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value


class UserService:
    """Registration, profile updates and credential checks.

    Username and email uniqueness is checked before every write, but the
    check is not atomic with the insert. The unique constraints on the
    ``users`` table decide concurrent races; the DAO reports a losing
    insert as ``DuplicateError`` too.
    """

    def __init__(
        self,
        db: Session,
        hasher: Optional[CredentialHasher] = None,
        token_issuer: Optional[TokenIssuer] = None,
        task_service: Optional[TaskService] = None,
    ):
        self.users = UserDAO(db)
        self.tasks = task_service or TaskService(db)
        self.hasher = hasher or CredentialHasher()
        self.token_issuer = token_issuer or TokenIssuer()

    # ---- reads ----

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.users.find_by_id(user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        return self.users.find_by_username(username)

    def find_all(self) -> List[User]:
        return self.users.find_all()

    def get(self, user_id: int) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # ---- mutations ----

    def create(self, data: UserCreate) -> User:
        username = _require(data.username, "Username")
        email = _require(data.email, "Email")
        password = _require(data.password, "Password")

        if self.users.find_by_username(username) is not None:
            raise DuplicateError("Username already in use")
        if self.users.find_by_email(email) is not None:
            raise DuplicateError("Email already in use")

        user = User(
            username=username,
            email=email,
            hashed_password=self.hasher.hash(password),
            first_name=data.first_name,
            last_name=data.last_name,
        )
        created = self.users.create(user)
        logger.info("Registered user %s (id=%s)", created.username, created.id)
        return created

    def update(self, user_id: int, data: UserUpdate) -> User:
        user = self.get(user_id)

        if data.username is not None and data.username != user.username:
            _require(data.username, "Username")
            other = self.users.find_by_username(data.username)
            if other is not None and other.id != user_id:
                raise DuplicateError("Username already in use")

        if data.email is not None and data.email != user.email:
            _require(data.email, "Email")
            other = self.users.find_by_email(data.email)
            if other is not None and other.id != user_id:
                raise DuplicateError("Email already in use")

        if data.username is not None:
            user.username = data.username
        if data.email is not None:
            user.email = data.email
        if data.first_name is not None:
            user.first_name = data.first_name
        if data.last_name is not None:
            user.last_name = data.last_name
        if data.password:
            user.hashed_password = self.hasher.hash(data.password)

        updated = self.users.update(user)
        logger.info("Updated user id=%s", updated.id)
        return updated

    def delete(self, user_id: int) -> None:
        """Delete a user after deleting their tasks one by one.

        Each task goes through the task service, so every one of them gets
        a DELETED history entry.
        """
        self.get(user_id)
        owned = self.tasks.find_by_user_id(user_id)
        for task in owned:
            self.tasks.delete(task.id)
        self.users.delete(user_id)
        logger.info("Deleted user id=%s with %d task(s)", user_id, len(owned))

    # ---- credentials ----

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user when the credentials match, otherwise None.

        Unknown username and wrong password look the same to the caller.
        """
        user = self.users.find_by_username(username)
        if user is None:
            # Same hashing work as a wrong password.
            self.hasher.hash(password)
            logger.info("Authentication rejected")
            return None
        if not self.hasher.verify(password, user.hashed_password):
            logger.info("Authentication rejected")
            return None

        if self.hasher.needs_rehash(user.hashed_password):
            self._migrate_digest(user, password)
        return user

    def issue_token(self, user: User) -> str:
        return self.token_issuer.issue(user)

    def register(self, data: UserCreate) -> Tuple[User, str]:
        user = self.create(data)
        return user, self.issue_token(user)

    def login(self, username: str, password: str) -> Optional[Tuple[User, str]]:
        user = self.authenticate(username, password)
        if user is None:
            return None
        return user, self.issue_token(user)

    def _migrate_digest(self, user: User, password: str) -> None:
        user.hashed_password = self.hasher.hash(password)
        try:
            self.users.update(user)
        except PersistenceFailure as e:
            # Login still succeeds; the legacy digest is retried next time.
            logger.warning("Could not migrate password digest for user id=%s: %s", user.id, e)
        else:
            logger.info("Migrated password digest for user id=%s to %s", user.id, self.hasher.scheme)
