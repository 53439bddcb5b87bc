"""Routing — ordered entries, the Router builder, and the Dispatcher walk.

Entries are mounted during setup and frozen into an immutable
Dispatcher when the router is built.
"""

from switchyard.routing.dispatcher import Dispatcher, Outcome
from switchyard.routing.entry import Entry, ErrorHandler, NormalHandler
from switchyard.routing.pattern import PathMatch, PathPattern
from switchyard.routing.proceed import Proceed
from switchyard.routing.router import Router

__all__ = [
    "Dispatcher",
    "Entry",
    "ErrorHandler",
    "NormalHandler",
    "Outcome",
    "PathMatch",
    "PathPattern",
    "Proceed",
    "Router",
]
