from __future__ import annotations

from .base import SigningAccount
from .local import LocalSigningAccount

__all__ = ["LocalSigningAccount", "SigningAccount"]
