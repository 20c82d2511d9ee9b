from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import MemberId


@dataclass(frozen=True)
class RequestContext:
    """Identity of the member acting on a request."""

    member_id: MemberId
    member_name: Optional[str] = None

    def is_self(self, member_id: MemberId) -> bool:
        return self.member_id == member_id


__all__ = ["RequestContext"]
