"""Tests for Dispatcher — pipeline ordering, routing, and recovery."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from switchyard.dispatch.adapters import GenericHandlerAdapter
from switchyard.dispatch.chain import HandlerChain
from switchyard.dispatch.dispatcher import Dispatcher
from switchyard.dispatch.mappers import ErrorMapper, RequestMapper
from switchyard.errors import NoAdapterFoundError, NoHandlerFoundError


@dataclass
class Req:
    name: str
    trace: list[str] = field(default_factory=list)


@dataclass
class Out:
    value: str
    tags: list[str] = field(default_factory=list)


class Handler:
    def __init__(self, name: str, *, fail: Exception | None = None, is_async: bool = False):
        self.name = name
        self.fail = fail
        self.is_async = is_async
        self.calls = 0

    def can_handle(self, req: Req) -> bool:
        return req.name == self.name

    def handle(self, req: Req) -> Any:
        self.calls += 1
        req.trace.append(f"handler:{self.name}")
        if self.fail is not None:
            raise self.fail
        if self.is_async:

            async def produce() -> Out:
                return Out(self.name)

            return produce()
        return Out(self.name)


class Tracer:
    """Request or response interceptor appending its label to the trace."""

    def __init__(self, label: str, *, fail: Exception | None = None, is_async: bool = False):
        self.name = label
        self.fail = fail
        self.is_async = is_async

    def process(self, req: Req, *rest: Any) -> Any:
        req.trace.append(self.name)
        if self.fail is not None:
            raise self.fail
        if self.is_async:
            return asyncio.sleep(0)
        return None


class Recover:
    def __init__(self, exc_type: type[Exception], *, fail: Exception | None = None):
        self.exc_type = exc_type
        self.fail = fail
        self.seen: list[Exception] = []

    def can_handle(self, req: Req, error: Exception) -> bool:
        return isinstance(error, self.exc_type)

    def handle(self, req: Req, error: Exception) -> Out:
        self.seen.append(error)
        req.trace.append("recover")
        if self.fail is not None:
            raise self.fail
        return Out("recovered")


def _dispatcher(
    *chains: HandlerChain,
    error_handlers: list[Any] | None = None,
    request_interceptors: tuple[Any, ...] = (),
    response_interceptors: tuple[Any, ...] = (),
) -> Dispatcher:
    return Dispatcher(
        request_mappers=[RequestMapper(chains)],
        handler_adapters=[GenericHandlerAdapter()],
        error_mapper=ErrorMapper(error_handlers) if error_handlers is not None else None,
        request_interceptors=request_interceptors,
        response_interceptors=response_interceptors,
    )


class TestPipelineOrder:
    async def test_interceptor_order_around_handler(self) -> None:
        chain = HandlerChain(
            Handler("a"),
            request_interceptors=[Tracer("lreq1"), Tracer("lreq2")],
            response_interceptors=[Tracer("lresp1"), Tracer("lresp2")],
        )
        dispatcher = _dispatcher(
            chain,
            request_interceptors=(Tracer("greq1"), Tracer("greq2")),
            response_interceptors=(Tracer("gresp1"), Tracer("gresp2")),
        )
        req = Req("a")
        out = await dispatcher.dispatch(req)
        assert out.value == "a"
        assert req.trace == [
            "greq1",
            "greq2",
            "lreq1",
            "lreq2",
            "handler:a",
            "lresp1",
            "lresp2",
            "gresp1",
            "gresp2",
        ]

    async def test_sync_and_async_stages_mix(self) -> None:
        chain = HandlerChain(
            Handler("a", is_async=True),
            request_interceptors=[Tracer("lreq", is_async=True)],
            response_interceptors=[Tracer("lresp")],
        )
        dispatcher = _dispatcher(
            chain,
            request_interceptors=(Tracer("greq"),),
            response_interceptors=(Tracer("gresp", is_async=True),),
        )
        req = Req("a")
        out = await dispatcher.dispatch(req)
        assert out.value == "a"
        assert req.trace == ["greq", "lreq", "handler:a", "lresp", "gresp"]

    async def test_returns_handler_output_instance(self) -> None:
        produced = Out("same")

        class Fixed:
            def can_handle(self, req: Req) -> bool:
                return True

            def handle(self, req: Req) -> Out:
                return produced

        out = await _dispatcher(HandlerChain(Fixed())).dispatch(Req("x"))
        assert out is produced

    async def test_response_interceptors_mutate_output_in_place(self) -> None:
        class Tagger:
            def __init__(self, tag: str) -> None:
                self.tag = tag

            def process(self, req: Req, out: Out) -> str:
                out.tags.append(self.tag)
                return "ignored"

        chain = HandlerChain(Handler("a"), response_interceptors=[Tagger("local")])
        dispatcher = _dispatcher(chain, response_interceptors=(Tagger("global"),))
        out = await dispatcher.dispatch(Req("a"))
        assert out.value == "a"
        assert out.tags == ["local", "global"]


class TestRouting:
    async def test_first_matching_chain_wins(self) -> None:
        first = Handler("a")
        second = Handler("a")
        await _dispatcher(HandlerChain(first), HandlerChain(second)).dispatch(Req("a"))
        assert first.calls == 1
        assert second.calls == 0

    async def test_later_predicates_not_evaluated(self) -> None:
        evaluated: list[str] = []

        class Spy:
            def __init__(self, name: str, accept: bool) -> None:
                self.name = name
                self.accept = accept

            def can_handle(self, req: Req) -> bool:
                evaluated.append(self.name)
                return self.accept

            def handle(self, req: Req) -> Out:
                return Out(self.name)

        dispatcher = _dispatcher(
            HandlerChain(Spy("p1", False)),
            HandlerChain(Spy("p2", True)),
            HandlerChain(Spy("p3", True)),
        )
        out = await dispatcher.dispatch(Req("any"))
        assert out.value == "p2"
        assert evaluated == ["p1", "p2"]

    @pytest.mark.parametrize("name", ["a", "b", "c"])
    async def test_order_irrelevant_for_exclusive_matchers(self, name: str) -> None:
        chains = [HandlerChain(Handler(n)) for n in ("a", "b", "c")]
        forward = await _dispatcher(*chains).dispatch(Req(name))
        backward = await _dispatcher(*reversed(chains)).dispatch(Req(name))
        assert forward.value == backward.value == name

    async def test_async_predicate(self) -> None:
        class AsyncMatcher:
            async def can_handle(self, req: Req) -> bool:
                return req.name == "b"

            def handle(self, req: Req) -> Out:
                return Out("async-matcher")

        out = await _dispatcher(HandlerChain(AsyncMatcher())).dispatch(Req("b"))
        assert out.value == "async-matcher"

    async def test_mappers_consulted_in_order(self) -> None:
        dispatcher = Dispatcher(
            request_mappers=[
                RequestMapper([HandlerChain(Handler("a"))]),
                RequestMapper([HandlerChain(Handler("b"))]),
            ],
            handler_adapters=[GenericHandlerAdapter()],
        )
        assert (await dispatcher.dispatch(Req("b"))).value == "b"

    async def test_no_handler_found(self) -> None:
        req = Req("missing")
        with pytest.raises(NoHandlerFoundError) as exc_info:
            await _dispatcher(HandlerChain(Handler("a"))).dispatch(req)
        assert exc_info.value.scope == "Dispatcher"
        assert "suitable request handler" in str(exc_info.value)

    async def test_empty_mappers_raise_no_handler(self) -> None:
        dispatcher = Dispatcher(request_mappers=[], handler_adapters=[GenericHandlerAdapter()])
        with pytest.raises(NoHandlerFoundError):
            await dispatcher.dispatch(Req("a"))

    async def test_no_adapter_found_after_routing(self) -> None:
        class NoHandleMethod:
            # Routable but lacks a callable ``handle``.
            handle = None

            def can_handle(self, req: Req) -> bool:
                return True

        interceptor = Tracer("lreq")
        chain = HandlerChain(NoHandleMethod(), request_interceptors=[interceptor])
        req = Req("a")
        with pytest.raises(NoAdapterFoundError):
            await _dispatcher(chain).dispatch(req)
        assert req.trace == []


class TestRecovery:
    async def test_handler_failure_recovered(self) -> None:
        boom = ValueError("boom")
        recover = Recover(ValueError)
        dispatcher = _dispatcher(
            HandlerChain(Handler("a", fail=boom), response_interceptors=[Tracer("lresp")]),
            error_handlers=[recover],
            response_interceptors=(Tracer("gresp"),),
        )
        req = Req("a")
        out = await dispatcher.dispatch(req)
        assert out.value == "recovered"
        assert recover.seen == [boom]
        assert req.trace == ["handler:a", "recover"]

    async def test_request_interceptor_failure_skips_handler(self) -> None:
        handler = Handler("a")
        recover = Recover(RuntimeError)
        dispatcher = _dispatcher(
            HandlerChain(handler),
            error_handlers=[recover],
            request_interceptors=(Tracer("greq", fail=RuntimeError("rejected")),),
        )
        out = await dispatcher.dispatch(Req("a"))
        assert out.value == "recovered"
        assert handler.calls == 0

    async def test_no_handler_found_is_recoverable(self) -> None:
        recover = Recover(NoHandlerFoundError)
        out = await _dispatcher(error_handlers=[recover]).dispatch(Req("nothing"))
        assert out.value == "recovered"
        assert isinstance(recover.seen[0], NoHandlerFoundError)

    async def test_unmatched_error_reraised_same_instance(self) -> None:
        boom = KeyError("k")
        dispatcher = _dispatcher(
            HandlerChain(Handler("a", fail=boom)),
            error_handlers=[Recover(ValueError)],
        )
        with pytest.raises(KeyError) as exc_info:
            await dispatcher.dispatch(Req("a"))
        assert exc_info.value is boom

    async def test_without_error_mapper_reraises(self) -> None:
        boom = ValueError("boom")
        with pytest.raises(ValueError) as exc_info:
            await _dispatcher(HandlerChain(Handler("a", fail=boom))).dispatch(Req("a"))
        assert exc_info.value is boom

    async def test_first_matching_error_handler_wins(self) -> None:
        declining = Recover(KeyError)
        first = Recover(ValueError)
        second = Recover(ValueError)
        dispatcher = _dispatcher(
            HandlerChain(Handler("a", fail=ValueError("x"))),
            error_handlers=[declining, first, second],
        )
        out = await dispatcher.dispatch(Req("a"))
        assert out.value == "recovered"
        assert declining.seen == []
        assert len(first.seen) == 1
        assert second.seen == []

    async def test_recovery_failure_propagates_without_recursion(self) -> None:
        second_failure = ValueError("recovery broke")
        recover = Recover(ValueError, fail=second_failure)
        dispatcher = _dispatcher(
            HandlerChain(Handler("a", fail=ValueError("first"))),
            error_handlers=[recover],
        )
        with pytest.raises(ValueError) as exc_info:
            await dispatcher.dispatch(Req("a"))
        assert exc_info.value is second_failure
        assert len(recover.seen) == 1

    async def test_global_response_interceptor_failure_recovered(self) -> None:
        recover = Recover(RuntimeError)
        dispatcher = _dispatcher(
            HandlerChain(Handler("a")),
            error_handlers=[recover],
            response_interceptors=(Tracer("gresp", fail=RuntimeError("late")),),
        )
        req = Req("a")
        out = await dispatcher.dispatch(req)
        assert out.value == "recovered"
        assert req.trace == ["handler:a", "gresp", "recover"]

    async def test_cancellation_is_not_recovered(self) -> None:
        class CatchEverything:
            def __init__(self) -> None:
                self.called = False

            def can_handle(self, req: Req, error: Exception) -> bool:
                self.called = True
                return True

            def handle(self, req: Req, error: Exception) -> Out:
                return Out("nope")

        catch_all = CatchEverything()
        dispatcher = _dispatcher(
            HandlerChain(Handler("a", fail=asyncio.CancelledError())),  # type: ignore[arg-type]
            error_handlers=[catch_all],
        )
        with pytest.raises(asyncio.CancelledError):
            await dispatcher.dispatch(Req("a"))
        assert catch_all.called is False


class TestStatelessness:
    async def test_concurrent_dispatches_do_not_interfere(self) -> None:
        class Slow:
            def can_handle(self, req: Req) -> bool:
                return True

            async def handle(self, req: Req) -> Out:
                await asyncio.sleep(0)
                return Out(req.name)

        dispatcher = _dispatcher(HandlerChain(Slow()))
        outs = await asyncio.gather(*(dispatcher.dispatch(Req(f"r{i}")) for i in range(5)))
        assert [o.value for o in outs] == [f"r{i}" for i in range(5)]
