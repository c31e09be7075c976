"""User account flows that grow the city registry."""

from typing import List, Sequence

from weather_digest.data.resolver import CityResolver
from weather_digest.database.user_store import UserStore
from weather_digest.errors import ConflictError, ValidationError
from weather_digest.notify.dispatcher import NotificationDispatcher
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class AccountService:
    """
    Create and edit subscriptions.

    Callers have already authenticated the user and hashed the password;
    the hash is stored as given.
    """

    def __init__(
        self,
        user_store: UserStore,
        resolver: CityResolver,
        dispatcher: NotificationDispatcher,
    ):
        self.user_store = user_store
        self.resolver = resolver
        self.dispatcher = dispatcher

    def register_user(self, email: str, password_hash: str, cities: Sequence[str]) -> bool:
        """
        Create a user subscribed to `cities` and send a welcome message.

        Returns:
            True if the user was created, False if it already existed

        Raises:
            ValidationError: If email or password hash is missing
            NotFoundError, UpstreamError, TransportError, DataError: If a
                city cannot be resolved; no user is created then
        """
        if not email or not password_hash:
            raise ValidationError("email and password are required")

        # only the email and cities are safe to log
        logger.info(f"Registering user {email} with cities {list(cities)}")

        if self.user_store.exists(email):
            logger.info(f"User {email} already exists")
            return False

        resolved = self.resolver.resolve_and_register(cities)
        try:
            self.user_store.insert(email, password_hash, resolved)
        except ConflictError:
            logger.info(f"User {email} already exists")
            return False

        # detached: the welcome email never affects the registration outcome
        self.dispatcher.send_welcome(email)

        logger.info(f"User {email} created with cities {resolved}")
        return True

    def update_cities(self, email: str, cities: Sequence[str]) -> List[str]:
        """Replace a user's subscriptions; returns the registry names stored."""
        if not email:
            raise ValidationError("email is required")
        resolved = self.resolver.resolve_and_register(cities)
        self.user_store.update_cities(email, resolved)
        logger.info(f"User {email} cities updated: {resolved}")
        return resolved

    def get_cities(self, email: str) -> List[str]:
        if not email:
            raise ValidationError("email is required")
        return self.user_store.get_cities(email)

    def delete_user(self, email: str) -> None:
        if not email:
            raise ValidationError("email is required")
        self.user_store.delete(email)
