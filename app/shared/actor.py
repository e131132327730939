"""Acting operator identity for admin endpoints"""

from typing import Optional

from fastapi import Header

from .errors import ValidationError


def get_actor_header(x_actor_id: Optional[str] = Header(None)) -> Optional[str]:
    """X-Actor-Id header, set by the gateway that authenticated the operator"""
    if x_actor_id and x_actor_id.strip():
        return x_actor_id.strip()
    return None


def require_actor(body_actor: Optional[str], header_actor: Optional[str]) -> str:
    """Body value wins over the header; one of them must be present"""
    actor = (body_actor or "").strip() or header_actor
    if not actor:
        raise ValidationError("actor_id is required", code="missing_actor")
    return actor
