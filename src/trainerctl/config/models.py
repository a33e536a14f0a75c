"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, trainerctl.toml only contains
overrides. A fresh studio needs only ``[identity] trainer_id``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from trainerctl.domain.lifecycle import PaymentMethod, SessionMode

# --- trainerctl.toml sections ---


class StudioConfig(BaseModel):
    """[studio] section."""

    model_config = {"frozen": True}

    name: str = "my-studio"
    default_currency: str = "EUR"
    default_method: PaymentMethod = PaymentMethod.CASH


class IdentityConfig(BaseModel):
    """[identity] section — the acting trainer for CLI writes."""

    model_config = {"frozen": True}

    trainer_id: str | None = None


class SessionsConfig(BaseModel):
    """[sessions] section."""

    model_config = {"frozen": True}

    default_duration_minutes: int = Field(default=60, gt=0)
    default_mode: SessionMode = SessionMode.IN_PERSON


class RemindersConfig(BaseModel):
    """[reminders] section."""

    model_config = {"frozen": True}

    minutes_before: int = Field(default=120, ge=0)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class TrainerConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    studio: StudioConfig = Field(default_factory=StudioConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)
    reminders: RemindersConfig = Field(default_factory=RemindersConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
