"""ContextKey: (security context, authenticator id) <-> token origin string."""

from __future__ import annotations

from dataclasses import dataclass

from apcore_guard.constants import AUTHENTICATOR_ID_PATTERN, CONTEXT_KEY_SEPARATOR


def validate_context_name(context_name: str) -> str:
    """Return *context_name* unchanged, or raise ``ValueError`` if unusable."""
    if not isinstance(context_name, str):
        raise ValueError(f"Context name must be a string, got {type(context_name).__name__}")
    if not context_name:
        raise ValueError("Context name must not be empty")
    if context_name != context_name.strip():
        raise ValueError(f"Context name {context_name!r} must not have surrounding whitespace")
    return context_name


def validate_authenticator_id(authenticator_id: str) -> str:
    """Return *authenticator_id* unchanged, or raise ``ValueError`` if malformed."""
    if not isinstance(authenticator_id, str) or not AUTHENTICATOR_ID_PATTERN.match(authenticator_id):
        raise ValueError(
            f"Invalid authenticator id {authenticator_id!r}: must match pattern "
            f"{AUTHENTICATOR_ID_PATTERN.pattern} (the separator "
            f"{CONTEXT_KEY_SEPARATOR!r} is reserved)"
        )
    return authenticator_id


@dataclass(frozen=True)
class ContextKey:
    """Identity of the authenticator that produced a pre-authentication token.

    The wire form is ``"<context_name>_<authenticator_id>"``. Authenticator
    ids cannot contain ``_``, so splitting on the last separator is the exact
    inverse of rendering, even when the context name contains ``_``:

    - ``ContextKey("fw", "1")``   <-> ``"fw_1"``
    - ``ContextKey("fw_b", "0")`` <-> ``"fw_b_0"``

    Examples:
        >>> str(ContextKey("my_firewall", "0"))
        'my_firewall_0'
        >>> ContextKey.parse("my_firewall_0")
        ContextKey(context_name='my_firewall', authenticator_id='0')
        >>> ContextKey.parse("no-separator") is None
        True
    """

    context_name: str
    authenticator_id: str

    def __post_init__(self) -> None:
        validate_context_name(self.context_name)
        validate_authenticator_id(self.authenticator_id)

    def __str__(self) -> str:
        return f"{self.context_name}{CONTEXT_KEY_SEPARATOR}{self.authenticator_id}"

    @classmethod
    def parse(cls, raw: object) -> ContextKey | None:
        """Split a wire-form key into its parts. Returns None when malformed."""
        if not isinstance(raw, str):
            return None
        context_name, separator, authenticator_id = raw.rpartition(CONTEXT_KEY_SEPARATOR)
        if not separator:
            return None
        try:
            return cls(context_name, authenticator_id)
        except ValueError:
            return None
