"""Exception types.

Only configuration problems are exceptions. A missing brace match, snippet or
calltip is a normal outcome and is reported as ``None`` or ``False``.
"""


class SciEditError(Exception):
    """Base class for sciedit errors."""

    pass


class ConfigurationError(SciEditError):
    """Raised for invalid preferences, snippet templates or lexer ids."""

    pass


class SnippetError(ConfigurationError):
    """A snippet template could not be parsed."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Snippet '{name}': {reason}")
