from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from sqlalchemy.orm import Session
from assessment_banks.core import jwt_workflow
from assessment_banks.core.auth import get_current_db_user
from assessment_banks.core.database import get_db
from assessment_banks.models.contexts import Account, Course, Group, User
import assessment_banks.services.editor_workflows  # noqa: F401  registers the editor workflows

router = APIRouter()

CONTEXT_MODELS = {"Account": Account, "Course": Course, "Group": Group}

class TokenRequest(BaseModel):
    workflows: List[str] = Field(min_length=1)
    context_type: Optional[Literal["Account", "Course", "Group"]] = None
    context_id: Optional[int] = None

class ServiceToken(BaseModel):
    token: str
    requires_symmetric_encryption: bool

@router.post("", response_model=ServiceToken, status_code=201)
def create_jwt(payload: TokenRequest, user: User = Depends(get_current_db_user), db: Session = Depends(get_db)):
    unknown = [w for w in payload.workflows if jwt_workflow.get(w) is None]
    if unknown: raise HTTPException(400, f"Unknown workflows: {', '.join(unknown)}")
    context = None
    if payload.context_type:
        context = db.get(CONTEXT_MODELS[payload.context_type], payload.context_id) if payload.context_id is not None else None
        if context is None: raise HTTPException(404, "Context not found")
    try:
        token = jwt_workflow.create_service_token(db, user, payload.workflows, context)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return ServiceToken(token=token, requires_symmetric_encryption=jwt_workflow.requires_symmetric_encryption(payload.workflows))
