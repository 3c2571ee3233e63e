"""
JWT workflows consumed by the embedded rich content editor.

Importing this module registers the ``rich_content`` and ``ui`` workflows.
Keep the state small: it travels with every request the editor makes.
"""
from assessment_banks.core import jwt_workflow
from assessment_banks.models.contexts import Group
from assessment_banks.services.policy import MANAGE_FILES_ADD, MANAGE_WIKI_CREATE, grants_capability

RICH_CONTENT = "rich_content"
UI = "ui"


@jwt_workflow.register(RICH_CONTENT, requires_context=True, requires_symmetric_encryption=True)
def rich_content_state(db, context, user):
    tool_context = context.context if isinstance(context, Group) else context
    return {
        "usage_rights_required": bool(getattr(tool_context, "usage_rights_required", False)),
        "can_upload_files": bool(
            user is not None and context is not None
            and grants_capability(db, user, context, MANAGE_FILES_ADD)
        ),
        "can_create_pages": bool(
            user is not None and context is not None
            and getattr(context, "wiki_id", None)
            and grants_capability(db, user, context, MANAGE_WIKI_CREATE)
        ),
    }


@jwt_workflow.register(UI)
def ui_state(db, context, user):
    return {"use_high_contrast": user.prefers_high_contrast if user is not None else None}
