"""
Request models for the entitlements HTTP surface.

Field names follow the mobile client's wire contract (camelCase).
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _require_credential(value: str, name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"No {name} provided")
    return value.strip()


class AccessTokenRequest(_Request):
    """Body of /trial and /premium."""
    access_token: str = Field(..., alias="accessToken")

    @field_validator("access_token")
    @classmethod
    def _token_present(cls, value: str) -> str:
        return _require_credential(value, "accessToken")


class NotificationContent(_Request):
    titles: Dict[str, str]
    messages: Dict[str, str]


class NotifyRequest(_Request):
    """Body of /notify."""
    access_token: str = Field(..., alias="accessToken")
    user_uids: List[str] = Field(..., alias="userUids")
    content: NotificationContent
    checklist_id: Optional[Any] = Field(None, alias="checklistId")

    @field_validator("access_token")
    @classmethod
    def _token_present(cls, value: str) -> str:
        return _require_credential(value, "accessToken")


class SuggestionsRequest(_Request):
    """Body of /ai/suggestions."""
    id_token: str = Field(..., alias="idToken")
    title: str
    items: List[Any]

    @field_validator("id_token")
    @classmethod
    def _token_present(cls, value: str) -> str:
        return _require_credential(value, "idToken")

    @field_validator("title")
    @classmethod
    def _title_long_enough(cls, value: str) -> str:
        if len(value.strip()) < 3:
            raise ValueError("Title must be at least 3 characters long.")
        return value.strip()


class ParseRequest(_Request):
    """Body of /ai/parse."""
    id_token: str = Field(..., alias="idToken")
    prompt: str

    @field_validator("id_token")
    @classmethod
    def _token_present(cls, value: str) -> str:
        return _require_credential(value, "idToken")

    @field_validator("prompt")
    @classmethod
    def _prompt_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Missing required fields: idToken or prompt.")
        return value
