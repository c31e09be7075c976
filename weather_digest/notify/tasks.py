"""Email task wire format shared with the delivery worker."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from weather_digest.errors import DataError

DAILY_FORECAST = "daily_forecast"
WELCOME = "welcome"

SENT_BY_META = {"sent_by": "weather_service"}

WELCOME_SUBJECT = "Welcome to WeatherService!"
WELCOME_BODY = """<html>
    <body>
        <h1>Welcome to WeatherService!</h1>
        <p>Thanks for signing up. We will send you weather updates for the cities you picked.</p>
    </body>
</html>"""


class NotificationTask(BaseModel):
    """
    One email to send.

    JSON shape: {to, subject, body, type?, meta?}. Optional fields that are
    unset are left out of the encoded document.
    """

    model_config = ConfigDict(frozen=True)

    to: str
    subject: str
    body: str
    type: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

    def encode(self) -> bytes:
        return self.model_dump_json(exclude_none=True).encode("utf-8")

    @classmethod
    def decode(cls, payload: bytes) -> "NotificationTask":
        try:
            return cls.model_validate_json(payload)
        except PydanticValidationError as e:
            raise DataError(f"Malformed notification task: {e}") from e


def welcome_task(email: str) -> NotificationTask:
    return NotificationTask(
        to=email,
        subject=WELCOME_SUBJECT,
        body=WELCOME_BODY,
        type=WELCOME,
        meta=dict(SENT_BY_META),
    )
