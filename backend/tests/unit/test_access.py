"""Unit tests for document access evaluation"""

import pytest

from domain.documents.access import has_read_access, has_write_access
from domain.documents.models import AccessContext, DocumentAccessLevel, DocumentMetadata


def make_metadata(access_level, allowed_user_ids=(), allowed_roles=()):
    return DocumentMetadata(
        title="Deed",
        uploaded_by="owner",
        access_level=access_level,
        allowed_user_ids=list(allowed_user_ids),
        allowed_roles=list(allowed_roles),
    )


OWNER = AccessContext.of("owner")
STRANGER = AccessContext.of("stranger")
LISTED_USER = AccessContext.of("listed")
REVIEWER = AccessContext.of("someone", roles=["reviewer"])


class TestReadAccess:
    """Read access matrix"""

    @pytest.mark.parametrize("level", list(DocumentAccessLevel))
    def test_owner_always_reads(self, level):
        assert has_read_access(make_metadata(level), OWNER) is True

    def test_public_readable_by_anyone(self):
        assert has_read_access(make_metadata(DocumentAccessLevel.PUBLIC), STRANGER) is True

    def test_private_not_readable_by_others(self):
        metadata = make_metadata(
            DocumentAccessLevel.PRIVATE, allowed_user_ids=["listed"], allowed_roles=["reviewer"]
        )
        # Allow-lists are ignored for PRIVATE documents
        assert has_read_access(metadata, LISTED_USER) is False
        assert has_read_access(metadata, REVIEWER) is False
        assert has_read_access(metadata, STRANGER) is False

    def test_restricted_readable_by_listed_user(self):
        metadata = make_metadata(DocumentAccessLevel.RESTRICTED, allowed_user_ids=["listed"])
        assert has_read_access(metadata, LISTED_USER) is True
        assert has_read_access(metadata, STRANGER) is False

    def test_restricted_readable_by_role(self):
        metadata = make_metadata(DocumentAccessLevel.RESTRICTED, allowed_roles=["reviewer"])
        assert has_read_access(metadata, REVIEWER) is True
        assert has_read_access(metadata, AccessContext.of("x", roles=["viewer"])) is False

    def test_restricted_with_empty_lists_is_owner_only(self):
        metadata = make_metadata(DocumentAccessLevel.RESTRICTED)
        assert has_read_access(metadata, OWNER) is True
        assert has_read_access(metadata, STRANGER) is False


class TestWriteAccess:
    """Write access: owner or allowed role, and only for readers"""

    @pytest.mark.parametrize("level", list(DocumentAccessLevel))
    def test_owner_writes(self, level):
        assert has_write_access(make_metadata(level), OWNER) is True

    @pytest.mark.parametrize("level", [DocumentAccessLevel.PUBLIC, DocumentAccessLevel.RESTRICTED])
    def test_allowed_role_writes(self, level):
        metadata = make_metadata(level, allowed_roles=["reviewer"])
        assert has_write_access(metadata, REVIEWER) is True

    def test_allowed_role_cannot_write_private(self):
        metadata = make_metadata(DocumentAccessLevel.PRIVATE, allowed_roles=["reviewer"])
        assert has_read_access(metadata, REVIEWER) is False
        assert has_write_access(metadata, REVIEWER) is False

    def test_public_not_writable_by_stranger(self):
        assert has_write_access(make_metadata(DocumentAccessLevel.PUBLIC), STRANGER) is False

    def test_allowed_user_id_does_not_grant_write(self):
        metadata = make_metadata(DocumentAccessLevel.RESTRICTED, allowed_user_ids=["listed"])
        assert has_read_access(metadata, LISTED_USER) is True
        assert has_write_access(metadata, LISTED_USER) is False


class TestAccessContext:

    def test_roles_coerced_to_frozenset(self):
        context = AccessContext(user_id="u", roles=["a", "b"])
        assert context.roles == frozenset({"a", "b"})

    def test_default_roles_empty(self):
        assert AccessContext(user_id="u").roles == frozenset()
