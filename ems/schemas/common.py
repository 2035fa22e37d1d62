# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Common schema types."""
from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str


class MessageResponse(BaseModel):
    """Simple message response."""

    success: bool = True
    message: str


class ActionResponse(BaseModel):
    """Uniform failure payload returned by every endpoint."""

    success: bool = False
    message: str
    code: str | None = None
    errors: dict[str, list[str]] | None = None
