"""Tracking lifecycle and outcome models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class TrackingState(StrEnum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPING = "stopping"


class RegistrationResult(StrEnum):
    REGISTERED = "registered"
    ALREADY_REGISTERED = "already_registered"


class StopResult(StrEnum):
    STOPPED = "stopped"
    NOT_REGISTERED = "not_registered"


class PersistResult(StrEnum):
    PERSISTED = "persisted"
    NOT_FOUND = "not_found"
    REMOTE_ERROR = "remote_error"


class InvocationOutcome(StrEnum):
    EMPTY_BATCH = "empty_batch"
    BATCH_ERROR = "batch_error"
    INVALID_SAMPLE = "invalid_sample"
    UNAUTHENTICATED = "unauthenticated"
    PERSISTED = "persisted"
    NOT_FOUND = "not_found"
    REMOTE_ERROR = "remote_error"


class TrackingSession(BaseModel):
    """Process-wide tracking flag, owned by the lifecycle controller."""

    active: bool = False
