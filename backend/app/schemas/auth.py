from pydantic import BaseModel, field_validator


class TelegramAuthData(BaseModel):
    """Payload posted by the Telegram login widget."""

    id: int
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    photo_url: str = ""
    auth_date: int = 0
    hash: str = ""

    @field_validator("first_name", "last_name", "username", "photo_url", "hash", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name.strip(), self.last_name.strip()) if part)
        return name or self.username or f"tg{self.id}"
