"""Per-request and per-session attribute storage."""

from __future__ import annotations

from typing import Any

from switchyard.domain.envelope import RequestEnvelope
from switchyard.errors import AttributesError


class AttributesManager:
    """Holds request attributes and, for in-session requests, session attributes.

    Request attributes live for one dispatch only.  Session attributes are
    copied from the envelope at construction and echoed back on the
    response envelope by the skill.
    """

    def __init__(self, request_envelope: RequestEnvelope) -> None:
        self._in_session = request_envelope.session is not None
        self._session_attributes: dict[str, Any] = (
            dict(request_envelope.session.attributes) if request_envelope.session else {}
        )
        self._request_attributes: dict[str, Any] = {}

    @property
    def in_session(self) -> bool:
        return self._in_session

    def get_request_attributes(self) -> dict[str, Any]:
        return self._request_attributes

    def set_request_attributes(self, attributes: dict[str, Any]) -> None:
        self._request_attributes = attributes

    def get_session_attributes(self) -> dict[str, Any]:
        if not self._in_session:
            raise AttributesError(
                "Cannot get session attributes from out of session request!",
                scope="AttributesManager",
            )
        return self._session_attributes

    def set_session_attributes(self, attributes: dict[str, Any]) -> None:
        if not self._in_session:
            raise AttributesError(
                "Cannot set session attributes to out of session request!",
                scope="AttributesManager",
            )
        self._session_attributes = attributes
