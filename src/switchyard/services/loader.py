"""Load a skill from a ``module:attribute`` target.

The attribute may be a :class:`Skill`, a :class:`SkillBuilder`, or a
zero-argument callable returning either.
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

from switchyard.services.skill import Skill, SkillBuilder

logger = logging.getLogger(__name__)


class SkillLoadError(Exception):
    """The target could not be imported or does not produce a Skill."""


def load_skill(target: str, *, search_path: Path | None = None) -> Skill:
    """Import *target* (``package.module:attribute``) and return a Skill.

    *search_path* is prepended to ``sys.path`` so project-local modules
    resolve the way they would under the project's own interpreter.
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise SkillLoadError(f"Expected 'module:attribute', got {target!r}")

    if search_path is not None and str(search_path) not in sys.path:
        sys.path.insert(0, str(search_path))

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise SkillLoadError(f"Cannot import {module_name!r}: {exc}") from exc
    except Exception as exc:
        raise SkillLoadError(f"Importing {module_name!r} failed: {exc}") from exc

    obj: object = module
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise SkillLoadError(f"{module_name!r} has no attribute {attribute!r}") from exc

    if not isinstance(obj, (Skill, SkillBuilder)) and callable(obj):
        try:
            obj = obj()
        except Exception as exc:
            raise SkillLoadError(f"Factory {target!r} failed: {exc}") from exc

    if isinstance(obj, SkillBuilder):
        obj = obj.create()
    if not isinstance(obj, Skill):
        raise SkillLoadError(
            f"{target!r} resolved to {type(obj).__name__}, expected Skill or SkillBuilder"
        )
    logger.debug("Loaded skill from %s", target)
    return obj
