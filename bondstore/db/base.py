"""Import every model so ``Base.metadata`` and the relationship registry are complete."""

from __future__ import annotations

from .session import Base
from ..models import distribution as _distribution  # noqa: F401
from ..models import inventory as _inventory  # noqa: F401
from ..models import month as _month  # noqa: F401
from ..models import seafarer as _seafarer  # noqa: F401

__all__ = ["Base"]
