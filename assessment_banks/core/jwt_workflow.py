"""
Registry of named JWT workflows.

A workflow names a slice of state that a downstream service needs from this
application. Each registered workflow carries a builder that projects
``(db, context, user)`` into a small dict; the merged dicts travel inside a
short-lived service token.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from assessment_banks.core.auth import decode_token, encode_token
from assessment_banks.core.config import settings

logger = logging.getLogger(__name__)

StateBuilder = Callable[[Session, Any, Any], Dict[str, Any]]


@dataclass(frozen=True)
class JWTWorkflow:
    name: str
    builder: StateBuilder
    requires_context: bool = False
    requires_symmetric_encryption: bool = False

    def state_for(self, db: Session, context: Any, user: Any) -> Dict[str, Any]:
        if self.requires_context and context is None:
            raise ValueError(f"workflow {self.name!r} requires a context")
        return self.builder(db, context, user)


_workflows: Dict[str, JWTWorkflow] = {}


def register(name: str, requires_context: bool = False, requires_symmetric_encryption: bool = False):
    """Decorator registering ``fn`` as the state builder for workflow ``name``."""
    def wrap(fn: StateBuilder) -> StateBuilder:
        _workflows[name] = JWTWorkflow(
            name=name,
            builder=fn,
            requires_context=requires_context,
            requires_symmetric_encryption=requires_symmetric_encryption,
        )
        return fn
    return wrap


def get(name: str) -> Optional[JWTWorkflow]:
    return _workflows.get(name)


def registered() -> List[str]:
    return sorted(_workflows)


def _resolve(workflows: Iterable[str]) -> List[JWTWorkflow]:
    found = []
    for name in workflows:
        workflow = _workflows.get(name)
        if workflow is None:
            logger.debug("ignoring unknown jwt workflow %s", name)
            continue
        found.append(workflow)
    return found


def state_for(db: Session, workflows: Iterable[str], context: Any, user: Any) -> Dict[str, Any]:
    state: Dict[str, Any] = {}
    for workflow in _resolve(workflows):
        state.update(workflow.state_for(db, context, user))
    return state


def requires_symmetric_encryption(workflows: Iterable[str]) -> bool:
    return any(w.requires_symmetric_encryption for w in _resolve(workflows))


def create_service_token(db: Session, user: Any, workflows: Iterable[str], context: Any = None,
                         ttl_minutes: Optional[int] = None) -> str:
    workflows = list(workflows)
    claims: Dict[str, Any] = {
        "workflows": workflows,
        "workflow_state": state_for(db, workflows, context, user),
    }
    if user is not None:
        claims["sub"] = str(user.id)
    if context is not None:
        claims["context_type"] = type(context).__name__
        claims["context_id"] = context.id
    return encode_token(claims, ttl_minutes or settings.SERVICE_TOKEN_TTL_MINUTES)


def decode_service_token(token: str) -> Dict[str, Any]:
    return decode_token(token)
