"""
User schemas module.

The shape of a user's extra payload depends on its group:

- moderator: scoring service configuration (ScorerExtra)
- youtube: integration state (IntegrationExtra)
- service: service credentials (ServiceExtra)

Human groups have no defined payload and pass it through unchanged.
"""
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from moderator.models.user import (
    ENDPOINT_TYPE_API,
    ENDPOINT_TYPE_PROXY,
    UserGroup,
)
from moderator.schemas.base import BaseSchema


class ExtraSchema(BaseModel):
    """Base for extra payloads, stored with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestedAttribute(ExtraSchema):
    """Score settings for a single requested attribute."""
    score_type: Optional[str] = None
    score_threshold: Optional[float] = None


class ScorerExtra(ExtraSchema):
    """Configuration of a moderator service user's scoring endpoint."""
    endpoint_type: Literal[ENDPOINT_TYPE_PROXY, ENDPOINT_TYPE_API]
    api_key: str
    endpoint: str
    user_agent: Optional[str] = None
    attributes: Optional[Dict[str, RequestedAttribute]] = None


class ErrorInfo(ExtraSchema):
    name: str
    message: str


class IntegrationExtra(ExtraSchema):
    """State of an external integration such as YouTube."""
    token: Optional[Any] = None
    last_error: Optional[ErrorInfo] = None
    is_active: Optional[bool] = None


class ServiceExtra(ExtraSchema):
    """Credentials of a service user."""
    jwt: Any


EXTRA_SHAPES = {
    UserGroup.MODERATOR: ScorerExtra,
    UserGroup.YOUTUBE: IntegrationExtra,
    UserGroup.SERVICE: ServiceExtra,
}


def parse_extra(group, payload):
    """
    Validate an extra payload against the shape its group expects.

    Args:
        group: The user's group
        payload: Raw payload, a schema instance or None

    Returns:
        The validated schema instance, or the payload itself for groups
        without a defined shape

    Raises:
        pydantic.ValidationError: If the payload does not fit the shape
    """
    if payload is None:
        return None

    shape = EXTRA_SHAPES.get(UserGroup(group))
    if shape is None or isinstance(payload, shape):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True)
    return shape.model_validate(payload)


class UserBase(BaseModel):
    """Base user schema."""
    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = False
    avatar_url: Optional[str] = Field(None, max_length=255)


class UserCreate(UserBase):
    """Schema for user creation."""
    group: UserGroup
    name: str = Field(..., max_length=255)
    extra: Optional[Any] = None

    @model_validator(mode="after")
    def validate_extra(self):
        """Check extra against the group's payload shape."""
        self.extra = parse_extra(self.group, self.extra)
        return self


class UserUpdate(BaseModel):
    """Schema for user update. Extra is checked against the stored group."""
    group: Optional[UserGroup] = None
    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None
    avatar_url: Optional[str] = Field(None, max_length=255)
    extra: Optional[Any] = None


class User(BaseSchema, UserBase):
    """Schema for user response."""
    group: UserGroup
    name: str
    is_active: bool
    extra: Optional[Any] = None
