from .audit import AuditRecorder
from .security import CredentialHasher, TokenIssuer
from .task_service import TaskService
from .user_service import UserService

__all__ = ["AuditRecorder", "CredentialHasher", "TokenIssuer", "TaskService", "UserService"]
