"""
Pydantic schemas for request/response validation.

This module contains:
- Candidate models decoded from request bodies, one per operation
- Response models for API responses

Candidate fields are all optional so that a missing field reaches the
managers and fails with their error kind rather than a decoding error.
Unknown fields (e.g. an accountId sent on registration) are dropped.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from socialmedia.utils import MAX_EPOCH, MAX_ID, MIN_EPOCH, MIN_ID


# =============================================================================
# Pydantic Request Models
# =============================================================================

class AccountRegistration(BaseModel):
    """Body of POST /register."""
    username: Optional[str] = Field(None, description="Unique account name")
    password: Optional[str] = Field(None, description="Password, at least 4 characters")

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={"examples": [{"username": "alice", "password": "pass1"}]},
    )


class LoginCredentials(BaseModel):
    """Body of POST /login."""
    username: Optional[str] = Field(None, description="Account name")
    password: Optional[str] = Field(None, description="Account password")

    model_config = ConfigDict(extra="ignore")


class MessageCandidate(BaseModel):
    """Body of POST /messages."""
    message_text: Optional[str] = Field(
        None,
        alias="messageText",
        description="Message content, 1-255 characters",
    )
    posted_by: Optional[int] = Field(
        None,
        alias="postedBy",
        ge=MIN_ID,
        le=MAX_ID,
        description="accountId of the posting account",
    )
    time_posted_epoch: Optional[int] = Field(
        None,
        alias="timePostedEpoch",
        ge=MIN_EPOCH,
        le=MAX_EPOCH,
        description="Posting time in epoch seconds (defaults to server time)",
    )

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"messageText": "hello", "postedBy": 1, "timePostedEpoch": 1669947792}
            ]
        },
    )


class MessageTextUpdate(BaseModel):
    """Body of PATCH /messages/{message_id}."""
    message_text: Optional[str] = Field(None, alias="messageText", description="Replacement text")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# =============================================================================
# Pydantic Response Models
# =============================================================================

class AccountResponse(BaseModel):
    """Account as returned by /register and /login."""
    account_id: int = Field(..., alias="accountId", serialization_alias="accountId")
    username: str
    password: str

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class MessageResponse(BaseModel):
    """Message as returned by the /messages routes."""
    message_id: int = Field(..., alias="messageId", serialization_alias="messageId")
    posted_by: int = Field(..., alias="postedBy", serialization_alias="postedBy")
    message_text: str = Field(..., alias="messageText", serialization_alias="messageText")
    time_posted_epoch: int = Field(
        ...,
        alias="timePostedEpoch",
        serialization_alias="timePostedEpoch",
    )

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ErrorResponse(BaseModel):
    """Response model for error responses."""
    detail: str = Field(..., description="Error description")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
