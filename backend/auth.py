# booking-backend/auth.py
"""
Caller identity and the admin capability.

Authentication itself happens upstream: the identity provider in front of
this API forwards the signed-in user's id and verified email addresses in
the X-User-Id / X-User-Emails headers. Here we only decide whether that
caller may use the admin endpoints.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from fastapi import Depends, Header

from config import ADMIN_EMAILS, normalize_email
from errors import AuthenticationRequired, Forbidden


@dataclass(frozen=True)
class Caller:
    user_id: Optional[str] = None
    emails: Tuple[str, ...] = ()

    @property
    def signed_in(self) -> bool:
        return bool(self.user_id)


class AdminAuthorizer:
    """Admin capability = one of the caller's verified addresses is on the allow-list."""

    def __init__(self, admin_emails: Iterable[str]):
        self.admin_emails = frozenset(
            normalize_email(e) for e in admin_emails if e and e.strip()
        )

    def is_admin(self, caller: Caller) -> bool:
        if not caller.signed_in:
            return False
        return any(normalize_email(e) in self.admin_emails for e in caller.emails)

    def require_admin(self, caller: Caller) -> Caller:
        if not caller.signed_in:
            raise AuthenticationRequired("Unauthorized")
        if not self.is_admin(caller):
            raise Forbidden("Forbidden")
        return caller


_authorizer = AdminAuthorizer(ADMIN_EMAILS)


def get_authorizer() -> AdminAuthorizer:
    return _authorizer


def get_caller(
    x_user_id: Optional[str] = Header(None),
    x_user_emails: Optional[str] = Header(None),
) -> Caller:
    user_id = (x_user_id or "").strip() or None
    emails = tuple(e.strip() for e in (x_user_emails or "").split(",") if e.strip())
    return Caller(user_id=user_id, emails=emails)


def require_user(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.signed_in:
        raise AuthenticationRequired("Unauthorized")
    return caller


def require_admin(
    caller: Caller = Depends(get_caller),
    authorizer: AdminAuthorizer = Depends(get_authorizer),
) -> Caller:
    return authorizer.require_admin(caller)
