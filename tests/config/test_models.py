"""Tests for the config section models."""

import pytest
from pydantic import ValidationError

from trainerctl.config.models import RemindersConfig, SessionsConfig, StudioConfig, TrainerConfig


class TestTrainerConfig:
    def test_defaults(self) -> None:
        config = TrainerConfig()
        assert config.studio.name == "my-studio"
        assert config.identity.trainer_id is None
        assert config.sessions.default_duration_minutes == 60
        assert config.plugins.enabled is True

    def test_sparse_sections(self) -> None:
        config = TrainerConfig.model_validate({"studio": {"default_method": "transfer"}})
        assert config.studio.default_method == "transfer"
        assert config.studio.default_currency == "EUR"


class TestSectionValidation:
    def test_duration_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SessionsConfig(default_duration_minutes=0)

    def test_lead_time_not_negative(self) -> None:
        with pytest.raises(ValidationError):
            RemindersConfig(minutes_before=-1)

    def test_unknown_method(self) -> None:
        with pytest.raises(ValidationError):
            StudioConfig(default_method="barter")  # type: ignore[arg-type]
