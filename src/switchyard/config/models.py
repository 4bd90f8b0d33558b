"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, switchyard.toml only contains
overrides.  A fresh project needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- switchyard.toml sections ---


class SkillConfig(BaseModel):
    """[skill] section."""

    model_config = {"frozen": True}

    skill_id: str | None = None
    custom_user_agent: str | None = None


class InterceptorsConfig(BaseModel):
    """[interceptors] section — stock interceptors of the standard builder."""

    model_config = {"frozen": True}

    validate_requests: bool = True
    sanitize_slots: bool = True
    sanitize_max_length: int = Field(default=1000, gt=0)
    question_slots: tuple[str, ...] = ("question", "Query")
    log_requests: bool = True
    log_responses: bool = True


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".switchyard/plugins"

