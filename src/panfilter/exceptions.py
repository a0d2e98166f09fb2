#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the panfilter library.

This module defines the error taxonomy for reading documents, compiling
selectors, addressing metadata and running filters. Every error aborts a
filter run before any output is written; none of them are retried.

Exception Hierarchy
-------------------
- PanfilterError (base exception)

  - MalformedInputError (invalid JSON, missing keys, unsupported layout)
    - UnknownNodeKindError (structural kind outside the vocabulary)

  - SelectorSyntaxError (invalid selector text)

  - PathNotFoundError (metadata path cannot be resolved for mutation)

  - FilterError (raised by filter logic, or wrapping an action failure)

The early-stop signal is not an exception; see ``panfilter.filter.FilterSignal``.

"""

from __future__ import annotations


class PanfilterError(Exception):
    """Base exception class for all panfilter-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class MalformedInputError(PanfilterError):
    """Exception raised when an input document cannot be decoded.

    This covers invalid JSON, a missing ``meta``/``blocks`` key, a top-level
    layout matching neither wire schema, and payloads that do not fit the
    shape their kind requires. It is also raised for metadata text that is
    not valid YAML.

    Parameters
    ----------
    message : str
        Description of the problem
    original_error : Exception, optional
        The underlying parse error

    """


class UnknownNodeKindError(MalformedInputError):
    """Exception raised for a block or inline tag outside the vocabulary.

    Unknown metadata tags are dropped silently instead; only structural
    tags are a hard failure.

    Parameters
    ----------
    kind : str
        The offending tag
    message : str, optional
        Custom error message

    Attributes
    ----------
    kind : str
        The offending tag

    """

    def __init__(self, kind: str, message: str | None = None):
        """Initialize the error with the unknown tag."""
        if message is None:
            message = f"Unknown node kind: {kind!r}"
        super().__init__(message)
        self.kind = kind


class SelectorSyntaxError(PanfilterError):
    """Exception raised when a selector string cannot be compiled.

    Parameters
    ----------
    message : str
        Description of the syntax problem
    selector : str, optional
        The selector text being compiled

    """

    def __init__(self, message: str, selector: str | None = None):
        """Initialize the selector error."""
        if selector is not None:
            message = f"{message} in selector {selector!r}"
        super().__init__(message)
        self.selector = selector


class PathNotFoundError(PanfilterError):
    """Exception raised when a metadata path cannot be resolved for mutation.

    Parameters
    ----------
    message : str
        Description of the failure
    path : str, optional
        The dot-separated path

    """

    def __init__(self, message: str, path: str | None = None):
        """Initialize the path error."""
        super().__init__(message)
        self.path = path


class FilterError(PanfilterError):
    """Exception raised to abort a filter run.

    Filter code raises this directly to stop with a message. The runtime
    also wraps unexpected exceptions from actions in it.

    Parameters
    ----------
    message : str
        Description of the failure
    selector : str, optional
        Selector of the rule whose action failed
    original_error : Exception, optional
        The exception raised by the action

    """

    def __init__(self, message: str, selector: str | None = None, original_error: Exception | None = None):
        """Initialize the filter error."""
        super().__init__(message, original_error)
        self.selector = selector
