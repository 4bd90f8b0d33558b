"""Dispatch core — routing, adapters, interceptor pipeline, recovery.

This layer depends only on stdlib and :mod:`switchyard.errors`.
It knows nothing about request envelopes, skills, plugins or the CLI.
"""

from switchyard.dispatch.adapters import GenericHandlerAdapter, HandlerAdapter
from switchyard.dispatch.builder import (
    Configuration,
    ConfigurationBuilder,
    Identifier,
    Predicate,
    merge_configurations,
)
from switchyard.dispatch.capabilities import (
    ErrorHandler,
    FunctionInterceptor,
    RequestHandler,
    RequestInterceptor,
    ResponseInterceptor,
)
from switchyard.dispatch.chain import HandlerChain
from switchyard.dispatch.dispatcher import Dispatcher
from switchyard.dispatch.mappers import ErrorMapper, RequestMapper

__all__ = [
    "Configuration",
    "ConfigurationBuilder",
    "Dispatcher",
    "ErrorHandler",
    "ErrorMapper",
    "FunctionInterceptor",
    "GenericHandlerAdapter",
    "HandlerAdapter",
    "HandlerChain",
    "Identifier",
    "Predicate",
    "RequestHandler",
    "RequestInterceptor",
    "RequestMapper",
    "ResponseInterceptor",
    "merge_configurations",
]
