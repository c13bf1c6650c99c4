"""Seed a demo account: python add_user.py [username] [email] [password]"""
import logging
import sys

from tasktracker.database import create_tables, get_session
from tasktracker.errors import DuplicateError
from tasktracker.logging_setup import setup_logging
from tasktracker.schemas.user import UserCreate
from tasktracker.services import UserService

setup_logging()
logger = logging.getLogger("tasktracker.add_user")


def main(argv):
    username, email, password = (argv + ["demo", "demo@example.com", "password"][len(argv):])[:3]

    # Create tables if not exist
    create_tables()

    with get_session() as session:
        users = UserService(session)
        try:
            user = users.create(UserCreate(username=username, email=email, password=password))
        except DuplicateError as e:
            logger.info("User not created: %s", e)
            return 1
        logger.info("Test user created: %s / %s (id=%s)", user.username, password, user.id)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
