"""Pydantic models for the user/session endpoints."""

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    """Response model for GET /user."""

    name: str | None = Field(None, description="Display name of the logged-in user")

    class Config:
        """Pydantic config."""

        json_schema_extra = {"example": {"name": "Alice"}}


class LogoutResponse(BaseModel):
    """Response model for POST /logout."""

    status: str = Field("logged_out", description="Always 'logged_out', even without a session")


class LoginErrorResponse(BaseModel):
    """Response model for GET /error."""

    message: str | None = Field(None, description="Last login failure for this browser, if any")

    class Config:
        """Pydantic config."""

        json_schema_extra = {"example": {"message": "Not in spring-projects team"}}
