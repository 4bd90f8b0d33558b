"""Dispatcher — the two-tier interceptor pipeline around one handler.

Pipeline per dispatch, strictly sequential::

    global request interceptors
      -> route (first mapper returning a chain)
      -> adapter selection
      -> local request interceptors
      -> handler
      -> local response interceptors
      -> global response interceptors

Any ``Exception`` raised by a stage short-circuits to recovery through the
error mapper.  Recovery runs at most once: a failure raised while
recovering propagates to the caller untouched.

INVARIANT: The dispatcher holds no per-request state.  Everything a
stage needs travels on the caller-supplied input and output objects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from switchyard.dispatch.capabilities import component_name, resolve
from switchyard.errors import NoAdapterFoundError, NoHandlerFoundError

if TYPE_CHECKING:
    from switchyard.dispatch.adapters import HandlerAdapter
    from switchyard.dispatch.builder import Configuration
    from switchyard.dispatch.chain import HandlerChain
    from switchyard.dispatch.mappers import ErrorMapper, RequestMapper

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes one input to one handler and returns exactly one output.

    Parameters:
        request_mappers: Tried in order; the first non-``None`` chain wins.
        handler_adapters: Tried in order; the first supporting adapter runs
            the handler.
        error_mapper: Optional recovery routes.  ``None`` means every
            failure is re-raised.
        request_interceptors: Global interceptors run before routing.
        response_interceptors: Global interceptors run after the chain.
    """

    def __init__(
        self,
        *,
        request_mappers: Iterable[RequestMapper],
        handler_adapters: Iterable[HandlerAdapter],
        error_mapper: ErrorMapper | None = None,
        request_interceptors: Iterable[Any] = (),
        response_interceptors: Iterable[Any] = (),
    ) -> None:
        self._request_mappers: tuple[RequestMapper, ...] = tuple(request_mappers)
        self._handler_adapters: tuple[HandlerAdapter, ...] = tuple(handler_adapters)
        self._error_mapper = error_mapper
        self._request_interceptors: tuple[Any, ...] = tuple(request_interceptors)
        self._response_interceptors: tuple[Any, ...] = tuple(response_interceptors)

    @classmethod
    def from_configuration(cls, configuration: Configuration) -> Dispatcher:
        return cls(
            request_mappers=configuration.request_mappers,
            handler_adapters=configuration.handler_adapters,
            error_mapper=configuration.error_mapper,
            request_interceptors=configuration.request_interceptors,
            response_interceptors=configuration.response_interceptors,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def dispatch(self, handler_input: Any) -> Any:
        """Run the full pipeline for *handler_input* and return its output.

        Raises:
            NoHandlerFoundError: No chain accepted the input and no error
                handler recovered.
            NoAdapterFoundError: No adapter supports the resolved handler
                and no error handler recovered.
            Exception: Any unrecovered interceptor or handler failure,
                re-raised as the same object.
        """
        try:
            await self._run_request_interceptors(self._request_interceptors, handler_input)
            output = await self._dispatch_request(handler_input)
            await self._run_response_interceptors(
                self._response_interceptors, handler_input, output
            )
        except Exception as exc:
            error_handler = await self._match_error_handler(handler_input, exc)
            if error_handler is None:
                raise
            logger.debug(
                "Recovering from %s via %s",
                type(exc).__name__,
                component_name(error_handler),
            )
            return await resolve(error_handler.handle(handler_input, exc))
        return output

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _dispatch_request(self, handler_input: Any) -> Any:
        chain = await self._route(handler_input)
        handler = chain.handler
        adapter = self._select_adapter(handler)

        await self._run_request_interceptors(chain.request_interceptors, handler_input)
        output = await resolve(adapter.execute(handler_input, handler))
        await self._run_response_interceptors(chain.response_interceptors, handler_input, output)
        return output

    async def _route(self, handler_input: Any) -> HandlerChain:
        for mapper in self._request_mappers:
            chain = await mapper.match(handler_input)
            if chain is not None:
                logger.debug("Routed request to %s", chain.name)
                return chain
        raise NoHandlerFoundError(
            "Unable to find a suitable request handler.",
            scope=self.__class__.__name__,
        )

    def _select_adapter(self, handler: object) -> HandlerAdapter:
        for adapter in self._handler_adapters:
            if adapter.supports(handler):
                return adapter
        raise NoAdapterFoundError(
            f"Unable to find a suitable handler adapter for {component_name(handler)}.",
            scope=self.__class__.__name__,
        )

    async def _match_error_handler(self, handler_input: Any, error: Exception) -> Any | None:
        if self._error_mapper is None:
            return None
        return await self._error_mapper.match(handler_input, error)

    @staticmethod
    async def _run_request_interceptors(interceptors: Sequence[Any], handler_input: Any) -> None:
        for interceptor in interceptors:
            await resolve(interceptor.process(handler_input))

    @staticmethod
    async def _run_response_interceptors(
        interceptors: Sequence[Any], handler_input: Any, output: Any
    ) -> None:
        # Return values are ignored; interceptors mutate output in place.
        for interceptor in interceptors:
            await resolve(interceptor.process(handler_input, output))
