"""Access control evaluation for documents

Pure functions deciding read/write eligibility from document metadata and the
caller's AccessContext.

Read:
    PUBLIC      -> anyone
    uploader    -> always, regardless of level
    RESTRICTED  -> caller in allowed_user_ids, or any caller role in allowed_roles
    PRIVATE     -> uploader only

Write (only for callers who can read):
    uploader, or any caller role in allowed_roles
"""

from .models import AccessContext, DocumentAccessLevel, DocumentMetadata


def is_owner(metadata: DocumentMetadata, context: AccessContext) -> bool:
    return metadata.uploaded_by == context.user_id


def has_allowed_role(metadata: DocumentMetadata, context: AccessContext) -> bool:
    return not context.roles.isdisjoint(metadata.allowed_roles)


def has_read_access(metadata: DocumentMetadata, context: AccessContext) -> bool:
    level = metadata.access_level

    if level is DocumentAccessLevel.PUBLIC:
        return True
    if is_owner(metadata, context):
        return True
    if level is DocumentAccessLevel.RESTRICTED:
        return (
            context.user_id in metadata.allowed_user_ids
            or has_allowed_role(metadata, context)
        )
    if level is DocumentAccessLevel.PRIVATE:
        return False

    raise ValueError(f"Unhandled access level: {level!r}")


def has_write_access(metadata: DocumentMetadata, context: AccessContext) -> bool:
    if not has_read_access(metadata, context):
        return False
    return is_owner(metadata, context) or has_allowed_role(metadata, context)
