"""
Request and response models for lifecycle operations.

Request models carry field-level validation. Partial-update requests treat a
field that was not supplied (or supplied as ``None``) as "leave unchanged".
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Type, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from ..audit_trail import AuditEntry
from ..store.documents import PostStatus, UserRole
from ..utils import utcnow
from .exceptions import ValidationFailure

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

# Tagged scalar union for custom preference values
SettingValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]
CustomSettings = Dict[str, SettingValue]

RequestT = TypeVar("RequestT", bound=BaseModel)


def _validate_email(v: Optional[str]) -> Optional[str]:
    if v is not None and not EMAIL_PATTERN.match(v):
        raise ValueError("Email must be in valid format")
    return v


class CreateUserRequest(BaseModel):
    """Payload for creating a user profile."""

    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., min_length=3, max_length=254)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    roles: Set[UserRole] = Field(..., min_length=1)
    bio: Optional[str] = Field(None, max_length=500)
    profile_image_url: Optional[str] = Field(None, max_length=2048)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Ensure email has a plausible format."""
        return _validate_email(v)  # type: ignore[return-value]


class UpdateUserRequest(BaseModel):
    """Partial update of a user profile. Username cannot be changed."""

    email: Optional[str] = Field(None, max_length=254)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    roles: Optional[Set[UserRole]] = Field(None, min_length=1)
    bio: Optional[str] = Field(None, max_length=500)
    profile_image_url: Optional[str] = Field(None, max_length=2048)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return _validate_email(v)

    def supplied_fields(self) -> Dict[str, Any]:
        """Fields the caller supplied with a non-null value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class EngagementAction(str, Enum):
    """Engagement events applied to post counters."""

    VIEW = "VIEW"
    LIKE = "LIKE"
    UNLIKE = "UNLIKE"
    COMMENT = "COMMENT"
    UNCOMMENT = "UNCOMMENT"


class CreatePostRequest(BaseModel):
    """Payload for creating a post."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)
    image_urls: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None
    status: Optional[PostStatus] = None

    @field_validator("title", "content")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class UpdatePreferencesRequest(BaseModel):
    """Partial update of user preferences.

    ``custom_settings`` is merged key by key into the stored map; keys that
    are not supplied keep their stored value.
    """

    theme: Optional[str] = Field(None, max_length=20)
    language: Optional[str] = Field(None, max_length=20)
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    profile_visible: Optional[bool] = None
    show_email: Optional[bool] = None
    show_last_seen: Optional[bool] = None
    content_filter: Optional[str] = Field(None, max_length=20)
    custom_settings: Optional[CustomSettings] = None

    def supplied_fields(self) -> Dict[str, Any]:
        """Scalar preference fields the caller supplied with a non-null value."""
        return self.model_dump(
            exclude_unset=True, exclude_none=True, exclude={"custom_settings"}
        )


class UserProfileResponse(BaseModel):
    """Profile view returned by the service layer."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    roles: List[UserRole]
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    audit_trail: List[AuditEntry] = Field(default_factory=list)


class UserPostResponse(BaseModel):
    """Post view returned by the service layer."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    content: str
    image_urls: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_public: bool
    status: PostStatus
    view_count: int = Field(0, ge=0)
    like_count: int = Field(0, ge=0)
    comment_count: int = Field(0, ge=0)
    deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserPreferencesResponse(BaseModel):
    """Preferences view. ``id`` is None for a default view that was never saved."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    user_id: str
    theme: str
    language: str
    email_notifications: bool
    push_notifications: bool
    sms_notifications: bool
    profile_visible: bool
    show_email: bool
    show_last_seen: bool
    content_filter: str
    custom_settings: CustomSettings = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OperationAcknowledgmentResponse(BaseModel):
    """Acknowledgment for operations that return no resource."""

    message: str
    operation_type: str
    resource_id: str
    timestamp: datetime = Field(default_factory=utcnow)
    success: bool = True

    @classmethod
    def ok(
        cls, operation_type: str, resource_id: str, message: str
    ) -> "OperationAcknowledgmentResponse":
        return cls(
            message=message,
            operation_type=operation_type,
            resource_id=resource_id,
        )


def parse_request(
    model_class: Type[RequestT], data: Union[RequestT, Mapping[str, Any]]
) -> RequestT:
    """
    Validate raw request data into a request model.

    Args:
        model_class: Request model to build
        data: Model instance or mapping of raw values

    Returns:
        Validated request model

    Raises:
        ValidationFailure: If any field fails validation
    """
    if isinstance(data, model_class):
        return data

    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        errors = {
            ".".join(str(part) for part in err["loc"]) or "__root__": err["msg"]
            for err in e.errors()
        }
        raise ValidationFailure(errors) from e
