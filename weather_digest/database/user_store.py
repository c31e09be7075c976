"""User records and their city subscriptions."""

from typing import Iterator, List, Sequence

from sqlalchemy import Engine, delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from weather_digest.data.models import User
from weather_digest.database.schema import users
from weather_digest.errors import ConflictError, NotFoundError, TransportError
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class UserStore:
    """Read and write user records. Credentials are stored, never checked."""

    def __init__(self, engine: Engine, batch_size: int = 500):
        self.engine = engine
        self.batch_size = batch_size

    def iter_users(self) -> Iterator[User]:
        """Stream every user with their subscribed cities."""
        try:
            with self.engine.connect() as conn:
                result = conn.execution_options(yield_per=self.batch_size).execute(
                    select(users.c.email, users.c.cities).order_by(users.c.email)
                )
                for row in result:
                    yield User(email=row.email, cities=list(row.cities or []))
        except SQLAlchemyError as e:
            logger.error(f"Error streaming users: {e}")
            raise TransportError(f"Could not read users: {e}") from e

    def exists(self, email: str) -> bool:
        try:
            with self.engine.connect() as conn:
                found = conn.execute(
                    select(users.c.email).where(users.c.email == email)
                ).first()
        except SQLAlchemyError as e:
            raise TransportError(f"Could not look up user: {e}") from e
        return found is not None

    def insert(self, email: str, password_hash: str, cities: Sequence[str]) -> None:
        """
        Insert a new user.

        Raises:
            ConflictError: If a user with this email already exists
        """
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert(users).values(
                        email=email, password_hash=password_hash, cities=list(cities)
                    )
                )
        except IntegrityError as e:
            raise ConflictError(f"User {email} already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Error inserting user {email}: {e}")
            raise TransportError(f"Could not insert user: {e}") from e

        logger.info(f"Inserted user {email}")

    def get_cities(self, email: str) -> List[str]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    select(users.c.cities).where(users.c.email == email)
                ).first()
        except SQLAlchemyError as e:
            raise TransportError(f"Could not read user: {e}") from e
        if row is None:
            raise NotFoundError(f"User {email} not found")
        return list(row.cities or [])

    def update_cities(self, email: str, cities: Sequence[str]) -> None:
        """Replace a user's city list."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(users).where(users.c.email == email).values(cities=list(cities))
                )
        except SQLAlchemyError as e:
            logger.error(f"Error updating user {email}: {e}")
            raise TransportError(f"Could not update user: {e}") from e
        if result.rowcount == 0:
            raise NotFoundError(f"User {email} not found")

    def delete(self, email: str) -> None:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(delete(users).where(users.c.email == email))
        except SQLAlchemyError as e:
            raise TransportError(f"Could not delete user: {e}") from e
        if result.rowcount == 0:
            raise NotFoundError(f"User {email} not found")
        logger.info(f"Deleted user {email}")
