"""Pydantic models for authentication endpoints."""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str
    password: str


class AuthStatusResponse(BaseModel):
    authenticated: bool
