"""Pluggy hook specifications for switchyard handler-set plugins.

A plugin contributes an independently built handler set.  Each set is
composed into the skill as its own request mapper, consulted after the
skill's own routes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from switchyard.dispatch.builder import Configuration, ConfigurationBuilder

hookspec = pluggy.HookspecMarker("switchyard")
hookimpl = pluggy.HookimplMarker("switchyard")


class SwitchyardHookSpec:
    """Hook specifications for the switchyard plugin system."""

    @hookspec
    def register_handler_set(self) -> Configuration | ConfigurationBuilder | None:
        """Return a handler set (built or unbuilt) to compose into the skill."""
