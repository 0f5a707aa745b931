"""
Custom exceptions for FinEngine.

Purpose
-------
Provides a unified exception hierarchy for the few failures the engine
reports loudly. Degenerate numeric input (zero income, zero limit, no
deadline) is NOT an error: those paths return sentinel values instead.
All exceptions inherit from FinEngineError, enabling catch-all handling.

Exception Hierarchy
-------------------
FinEngineError (base)
├── ConfigurationError - Invalid configuration or parameters
├── ValidationError - Record validation failures
│   └── SplitError - Unknown or malformed split method
└── TemplateNotFoundError - Plan template id does not resolve

Usage
-----
>>> from finengine.exceptions import TemplateNotFoundError
>>>
>>> try:
...     generator.create_plan("unknown", risk, obligations, started_at=now)
... except TemplateNotFoundError as e:
...     print(f"Cannot start plan: {e}")
"""


class FinEngineError(Exception):
    """
    Base exception for all FinEngine errors.

    Examples
    --------
    >>> try:
    ...     load_catalog(path)
    ... except FinEngineError as e:
    ...     logger.error(f"Catalog rejected: {e}")
    """
    pass


class ConfigurationError(FinEngineError):
    """
    Invalid configuration or parameters.

    Raised when engine configuration is internally inconsistent, such as:
    - A forecast confidence level other than 80 or 95
    - An input file missing its required top-level section

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "confidence_level must be 80 or 95, got 90."
    ... )
    """
    pass


class ValidationError(FinEngineError):
    """
    Record validation failures.

    Raised when a financial record cannot be interpreted, such as:
    - A shared transaction whose split map references unknown members
    - A schedule request with inconsistent dates

    Examples
    --------
    >>> raise ValidationError(
    ...     "next_payday (2025-01-01) must be after payday (2025-01-10)."
    ... )
    """
    pass


class SplitError(ValidationError):
    """
    Unknown or malformed split method on a shared transaction.

    Examples
    --------
    >>> raise SplitError(
    ...     "Unsupported split method 'ratio'. "
    ...     "Use one of: equal, weighted, exact, percentage."
    ... )
    """
    pass


class TemplateNotFoundError(FinEngineError):
    """
    Plan template id does not resolve in the catalog.

    Every other fallback in the plan generator (blueprint -> example tasks,
    rule blueprint -> category rules) is an intentional degradation; a
    missing template is not, so it is raised instead of masked.

    Examples
    --------
    >>> raise TemplateNotFoundError(
    ...     "Template 'reserve_first_10k' not found. "
    ...     "Available templates: ['debt_avalanche', 'stability_audit']"
    ... )
    """

    def __init__(self, template_id: str, available=()):
        self.template_id = template_id
        message = f"Template {template_id!r} not found."
        if available:
            message += f" Available templates: {sorted(available)}"
        super().__init__(message)
