"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from switchyard.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from switchyard.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text.assemble(("OK", "sy.ok"), (f"  {result.op}", "sy.op")))


def _field(console: Console, key: str, value: Any) -> None:
    if isinstance(value, (dict, list)):
        text = _json.dumps(value, separators=(",", ":"))
    else:
        text = str(value)
    console.print(Text.assemble((f"  {key}: ", "sy.key"), text))


def _speech_text(speech: dict[str, Any] | None) -> str:
    if not speech:
        return ""
    if speech.get("type") == "SSML":
        return str(speech.get("ssml", ""))
    return str(speech.get("text", ""))


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text.assemble(
            ("ERROR", "sy.error"), (f"  {result.op}", "sy.op"), (code, "sy.key"), f" - {msg}"
        )
    )

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Dispatch renderer ─────────────────────────────────────────────────


def _render_dispatch(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a response envelope: speech, reprompt, card, session flag."""
    _status_line(console, result)
    response = result.data.get("response") or {}

    speech = _speech_text(response.get("outputSpeech"))
    if speech:
        console.print(Text.assemble(("  speech: ", "sy.key"), (speech, "sy.speech")))
    reprompt = _speech_text((response.get("reprompt") or {}).get("outputSpeech"))
    if reprompt:
        _field(console, "reprompt", reprompt)

    card = response.get("card")
    if card:
        console.print(
            Panel(
                Text(str(card.get("content", ""))),
                title=Text(str(card.get("title", ""))),
                border_style="dim",
                expand=False,
            )
        )

    if "shouldEndSession" in response:
        _field(console, "end_session", response["shouldEndSession"])
    directives = response.get("directives")
    if directives:
        _field(console, "directives", len(directives))

    if verbose:
        for key in ("userAgent", "sessionAttributes"):
            if key in result.data:
                _field(console, key, result.data[key])


# ── Routes renderer ───────────────────────────────────────────────────


def _render_routes(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the composed configuration as one table of handler chains."""
    _status_line(console, result)
    d = result.data
    if d.get("skill_id"):
        _field(console, "skill_id", d["skill_id"])
    for key in ("request_interceptors", "response_interceptors"):
        names = d.get(key) or []
        if names:
            _field(console, key, ", ".join(names))
    error_handlers = [
        f"{h['handler']} ({h['matcher']})" if h.get("matcher") else h["handler"]
        for h in d.get("error_handlers", [])
    ]
    if error_handlers:
        _field(console, "error_handlers", ", ".join(error_handlers))
    if d.get("handler_adapters") and verbose:
        _field(console, "handler_adapters", ", ".join(d["handler_adapters"]))

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Mapper")
    table.add_column("Handler", style="sy.handler")
    table.add_column("Matcher", style="sy.matcher")
    table.add_column("Interceptors", style="sy.interceptor")

    count = 0
    for mapper in d.get("request_mappers", []):
        for chain in mapper.get("chains", []):
            count += 1
            interceptors = [
                *(f"<{n}" for n in chain.get("request_interceptors", [])),
                *(f">{n}" for n in chain.get("response_interceptors", [])),
            ]
            table.add_row(
                str(count),
                str(mapper.get("name", "")),
                str(chain.get("handler", "")),
                str(chain.get("matcher") or ""),
                " ".join(interceptors),
            )

    console.print()
    console.print(table)
    console.print(f"\n{count} routes")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "dispatch": _render_dispatch,
    "routes": _render_routes,
}
