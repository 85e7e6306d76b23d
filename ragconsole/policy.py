"""Failure recovery policy.

Maps a normalized ``ApiError`` to what the console does about it.  Two
contexts exist:

- ``MOUNT``: the batch of calls a view issues when it mounts.  authn signs
  out, authz sends the caller home, everything else stays inline.
- ``ACTION``: a form submission.  Only authn leaves the view; the server
  decides per-action scope (e.g. uploads disabled), so authz is shown inline.

Nothing is retried automatically.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ragconsole.credentials import CredentialStore
from ragconsole.errors import ApiError, ErrorKind

LOGIN_PATH = "/login"
HOME_PATH = "/"


class Context(str, Enum):
    MOUNT = "mount"
    ACTION = "action"


class Action(str, Enum):
    SIGN_OUT = "sign_out"
    REDIRECT_HOME = "redirect_home"
    INLINE = "inline"


@dataclass(frozen=True)
class Recovery:
    action: Action
    message: str
    redirect_to: Optional[str] = None


def classify(error: ApiError, context: Context = Context.MOUNT, *, at_home: bool = False) -> Recovery:
    """Decide the recovery for ``error``.

    ``at_home`` marks a view that already is the caller's home surface; an
    authz failure there is shown inline instead of redirecting onto itself.
    """
    if error.kind is ErrorKind.AUTHN:
        return Recovery(Action.SIGN_OUT, error.message, LOGIN_PATH)
    if error.kind is ErrorKind.AUTHZ and context is Context.MOUNT and not at_home:
        return Recovery(Action.REDIRECT_HOME, error.message, HOME_PATH)
    return Recovery(Action.INLINE, error.message)


def apply(recovery: Recovery, credentials: CredentialStore) -> Optional[str]:
    """Carry out the credential side of a recovery; return the redirect target."""
    if recovery.action is Action.SIGN_OUT:
        credentials.clear()
    return recovery.redirect_to
