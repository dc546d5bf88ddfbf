"""Authentication schemas for identity tokens.

This module defines Pydantic models for the token claims, the
authenticated caller and the profile returned by the user endpoints.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, EmailStr


class JWTClaims(BaseModel):
    """JWT claims extracted from an access token."""

    sub: str = Field(..., description="Subject (identity provider user ID)")
    email: Optional[EmailStr] = Field(None, description="User email")
    role: str = Field(default="authenticated", description="User role")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    iss: str = Field(..., description="Token issuer")

    aud: Optional[str] = Field(None, description="Audience")
    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")
    session_id: Optional[str] = Field(None, description="Session ID")

    model_config = ConfigDict(extra="allow")


class CurrentUser(BaseModel):
    """Current authenticated user, as carried by the token."""

    id: str = Field(..., description="Identity provider user ID")
    email: Optional[EmailStr] = Field(None, description="User email")
    role: str = Field(default="user", description="User role")
    link_id: Optional[UUID] = Field(None, description="Linked secondary identity")

    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")


class CallerIdentity(BaseModel):
    """Resolved caller: the stored user plus any linked identity."""

    id: UUID = Field(..., description="Internal user ID")
    link_id: Optional[UUID] = Field(None, description="Linked secondary identity")
    role: str = Field(default="user", description="User role")
    username: Optional[str] = Field(None, description="Display username")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class UserProfile(BaseModel):
    """User profile information for API responses."""

    id: UUID = Field(..., description="Internal user ID")
    auth_user_id: str = Field(..., description="Identity provider user ID")
    email: Optional[EmailStr] = Field(None, description="User email")
    username: Optional[str] = Field(None, description="Display username")
    role: str = Field(default="user", description="User role")
    link_id: Optional[UUID] = Field(None, description="Linked secondary identity")
    created_at: Optional[datetime] = Field(None, description="Account creation date")


__all__ = [
    "JWTClaims",
    "CurrentUser",
    "CallerIdentity",
    "UserProfile",
]
