"""Pydantic schemas shared across endpoint modules."""

from __future__ import annotations

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class DeleteResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: str


class ServiceInfo(BaseModel):
    message: str
    status: str
    version: str
    health: str
