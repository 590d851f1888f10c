# Overview: Caller classes and the request caller carried through access checks.

from __future__ import annotations

from dataclasses import dataclass


class CallerClass:
    """Authorization tiers a rule can be granted to."""
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


@dataclass(frozen=True)
class Caller:
    """
    Who is making the request.

    user_id is the account id (equal to the customer id for customer
    accounts). role is the claimed role from the account; only "admin"
    is meaningful to the rule set.
    """
    user_id: str | None = None
    role: str | None = None

    @classmethod
    def anonymous(cls) -> "Caller":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == "admin"

    @property
    def classes(self) -> frozenset[str]:
        # An admin is also an authenticated caller.
        if not self.is_authenticated:
            return frozenset({CallerClass.ANONYMOUS})
        if self.is_admin:
            return frozenset({CallerClass.AUTHENTICATED, CallerClass.ADMIN})
        return frozenset({CallerClass.AUTHENTICATED})

    @property
    def label(self) -> str:
        if self.is_admin:
            return CallerClass.ADMIN
        if self.is_authenticated:
            return CallerClass.AUTHENTICATED
        return CallerClass.ANONYMOUS
