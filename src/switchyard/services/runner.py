"""SkillRunner — CLI-facing operations over a loaded skill.

Loads a skill target, composes plugin handler sets into it, and exposes
``dispatch`` and ``routes`` as ServiceResult-returning operations.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from switchyard.domain.envelope import RequestEnvelope
from switchyard.errors import (
    NoAdapterFoundError,
    NoHandlerFoundError,
    SkillIdMismatchError,
)
from switchyard.services.loader import SkillLoadError, load_skill
from switchyard.services.result import ServiceResult

if TYPE_CHECKING:
    from switchyard.config.settings import SwitchyardSettings
    from switchyard.plugins.manager import PluginManager
    from switchyard.services.skill import Skill

logger = logging.getLogger(__name__)

_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (NoHandlerFoundError, "NO_HANDLER_FOUND"),
    (NoAdapterFoundError, "NO_ADAPTER_FOUND"),
    (SkillIdMismatchError, "SKILL_ID_MISMATCH"),
)


class SkillRunner:
    """Runs CLI operations against a skill target.

    Parameters:
        settings: Resolved settings; ``project_root`` is put on the import
            path and ``plugins`` controls handler-set composition.
        plugin_manager: Pre-built manager.  When omitted and plugins are
            enabled, one is created and discovery runs on first load.
    """

    def __init__(
        self,
        settings: SwitchyardSettings,
        *,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        self._settings = settings
        self._plugin_manager = plugin_manager

    def load(self, target: str, warnings: list[str]) -> Skill:
        """Load *target* and extend it with every plugin handler set."""
        skill = load_skill(target, search_path=self._settings.project_root)
        manager = self._plugins()
        if manager is None:
            return skill
        handler_sets = manager.collect_handler_sets(warnings)
        if handler_sets:
            logger.debug("Composing %d plugin handler set(s)", len(handler_sets))
            skill = skill.extend(*handler_sets)
        return skill

    async def dispatch(self, target: str, payload: dict[str, Any]) -> ServiceResult:
        """Invoke the skill for one request payload."""
        op = "dispatch"
        warnings: list[str] = []
        try:
            skill = self.load(target, warnings)
        except SkillLoadError as exc:
            return ServiceResult.failure(op, "LOAD_FAILED", str(exc), warnings=warnings)

        try:
            request_envelope = RequestEnvelope.model_validate(payload)
        except ValidationError as exc:
            return ServiceResult.failure(
                op,
                "INVALID_REQUEST",
                "Request payload is not a valid request envelope",
                detail={
                    "errors": [
                        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                        for err in exc.errors()
                    ]
                },
                warnings=warnings,
            )

        try:
            envelope = await skill.invoke(request_envelope)
        except Exception as exc:
            code = next((c for t, c in _ERROR_CODES if isinstance(exc, t)), "DISPATCH_FAILED")
            logger.debug("Dispatch failed", exc_info=True)
            return ServiceResult.failure(
                op,
                code,
                str(exc),
                detail={"type": type(exc).__name__},
                warnings=warnings,
            )
        return ServiceResult.success(op, envelope.to_wire(), warnings=warnings)

    def routes(self, target: str) -> ServiceResult:
        """Describe the composed configuration of *target*."""
        op = "routes"
        warnings: list[str] = []
        try:
            skill = self.load(target, warnings)
        except SkillLoadError as exc:
            return ServiceResult.failure(op, "LOAD_FAILED", str(exc), warnings=warnings)
        data = skill.configuration.describe()
        data["skill_id"] = skill.skill_id
        return ServiceResult.success(op, data, warnings=warnings)

    def _plugins(self) -> PluginManager | None:
        if not self._settings.plugins.enabled:
            return None
        if self._plugin_manager is None:
            from switchyard.plugins.manager import PluginManager

            self._plugin_manager = PluginManager()
        if not self._plugin_manager.is_loaded:
            self._plugin_manager.discover_and_load(local_dir=self._settings.plugins_dir)
        return self._plugin_manager
