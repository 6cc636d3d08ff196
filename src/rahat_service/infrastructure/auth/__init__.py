"""Identity provider adapters."""

from .client import AuthServiceClient, Member

__all__ = ["AuthServiceClient", "Member"]
