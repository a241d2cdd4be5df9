"""Pydantic models for users and the sign-up / sign-in forms.

User          — one row from the users table (never carries the hash).
UserForEmail  — the projection the batch email job works with.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """An authenticated user and their investment profile."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    name: str = ""
    country: str = ""
    investment_goals: str = Field(default="", serialization_alias="investmentGoals")
    risk_tolerance: str = Field(default="", serialization_alias="riskTolerance")
    preferred_industry: str = Field(default="", serialization_alias="preferredIndustry")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")


class UserForEmail(BaseModel):
    """Minimal user record for the daily news email."""

    id: str
    email: str
    name: str


class SignUpRequest(BaseModel):
    """Body of POST /api/auth/sign-up."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str
    name: str
    country: str = ""
    investment_goals: str = Field(default="", alias="investmentGoals")
    risk_tolerance: str = Field(default="", alias="riskTolerance")
    preferred_industry: str = Field(default="", alias="preferredIndustry")


class SignInRequest(BaseModel):
    """Body of POST /api/auth/sign-in."""

    email: str
    password: str
