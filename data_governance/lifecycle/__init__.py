"""
Lifecycle Module - the rule engine for profiles, posts and preferences.

Provides the services that enforce uniqueness, active/inactive gating, soft
deletion with cascade and grace-period-gated hard deletion, together with
their request/response models and exceptions.
"""

from .exceptions import (
    BusinessRuleViolationException,
    ErrorResponse,
    GovernanceError,
    ResourceConflictException,
    ResourceNotFoundException,
    ValidationFailure,
    error_response_for,
)
from .models import (
    CreatePostRequest,
    CreateUserRequest,
    CustomSettings,
    EngagementAction,
    OperationAcknowledgmentResponse,
    SettingValue,
    UpdatePreferencesRequest,
    UpdateUserRequest,
    UserPostResponse,
    UserPreferencesResponse,
    UserProfileResponse,
    parse_request,
)
from .services import UserPostService, UserPreferencesService, UserProfileService

__all__ = [
    # Services
    "UserProfileService",
    "UserPostService",
    "UserPreferencesService",
    # Requests
    "CreateUserRequest",
    "UpdateUserRequest",
    "CreatePostRequest",
    "UpdatePreferencesRequest",
    "EngagementAction",
    "CustomSettings",
    "SettingValue",
    "parse_request",
    # Responses
    "UserProfileResponse",
    "UserPostResponse",
    "UserPreferencesResponse",
    "OperationAcknowledgmentResponse",
    # Exceptions
    "GovernanceError",
    "ResourceNotFoundException",
    "ResourceConflictException",
    "BusinessRuleViolationException",
    "ValidationFailure",
    "ErrorResponse",
    "error_response_for",
]
