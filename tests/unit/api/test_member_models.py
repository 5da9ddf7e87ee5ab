"""Unit tests for api/models.py — decoding list_file_members responses."""

from datetime import UTC, datetime

import pytest

from dropbox_members.api.client import DecodingError
from dropbox_members.api.models import (
    AccessLevel,
    FileMembers,
    FileMembersPage,
    GroupManagementType,
    GroupType,
    InviteeKind,
    MemberAction,
    PermissionDeniedReason,
    PlatformType,
    parse_file_members_page,
)

# ---------------------------------------------------------------------------
# Sample payloads (shapes from the Dropbox sharing API documentation)
# ---------------------------------------------------------------------------

USER_ENTRY = {
    "access_type": {".tag": "owner"},
    "user": {
        "account_id": "dbid:AAH4f99T0taONIb-OurWxbNQ6ywGRopQngc",
        "email": "bob@example.com",
        "display_name": "Robert Smith",
        "same_team": True,
        "team_member_id": "dbmid:abcd1234",
    },
    "permissions": [],
    "is_inherited": False,
    "time_last_seen": "2016-01-20T00:00:00Z",
    "platform_type": {".tag": "unknown"},
}

GROUP_ENTRY = {
    "access_type": {".tag": "editor"},
    "group": {
        "group_name": "Test group",
        "group_id": "g:e2db7665347abcd600000000001a2b3c",
        "group_management_type": {".tag": "user_managed"},
        "group_type": {".tag": "user_managed"},
        "is_member": False,
        "is_owner": False,
        "same_team": True,
        "member_count": 10,
    },
    "permissions": [],
    "is_inherited": False,
}

INVITEE_ENTRY = {
    "access_type": {".tag": "viewer"},
    "invitee": {".tag": "email", "email": "jessica@example.com"},
    "permissions": [],
    "is_inherited": False,
}


# ---------------------------------------------------------------------------
# parse_file_members_page tests
# ---------------------------------------------------------------------------


class TestParseFileMembersPage:
    def test_parses_documented_example(self) -> None:
        page = parse_file_members_page(
            {
                "users": [USER_ENTRY],
                "groups": [GROUP_ENTRY],
                "invitees": [INVITEE_ENTRY],
            }
        )

        assert page.cursor is None
        user = page.users[0]
        assert user.access_type is AccessLevel.OWNER
        assert user.user.account_id == "dbid:AAH4f99T0taONIb-OurWxbNQ6ywGRopQngc"
        assert user.user.display_name == "Robert Smith"
        assert user.user.team_member_id == "dbmid:abcd1234"
        assert user.time_last_seen == datetime(2016, 1, 20, tzinfo=UTC)
        assert user.platform_type is PlatformType.UNKNOWN

        group = page.groups[0]
        assert group.access_type is AccessLevel.EDITOR
        assert group.group.group_management_type is GroupManagementType.USER_MANAGED
        assert group.group.group_type is GroupType.USER_MANAGED
        assert group.group.member_count == 10

        invitee = page.invitees[0]
        assert invitee.access_type is AccessLevel.VIEWER
        assert invitee.invitee.kind is InviteeKind.EMAIL
        assert invitee.invitee.email == "jessica@example.com"
        assert invitee.user is None

    def test_cursor_is_kept(self) -> None:
        page = parse_file_members_page({"users": [], "groups": [], "invitees": [], "cursor": "abc"})
        assert page.cursor == "abc"

    def test_empty_cursor_means_terminal_page(self) -> None:
        page = parse_file_members_page({"users": [], "groups": [], "invitees": [], "cursor": ""})
        assert page.cursor is None

    def test_missing_lists_default_to_empty(self) -> None:
        page = parse_file_members_page({})
        assert page == FileMembersPage()

    def test_unknown_access_tag_decodes_to_other(self) -> None:
        entry = {**USER_ENTRY, "access_type": {".tag": "super_admin"}}
        page = parse_file_members_page({"users": [entry]})
        assert page.users[0].access_type is AccessLevel.OTHER

    def test_unknown_platform_tag_decodes_to_other(self) -> None:
        entry = {**USER_ENTRY, "platform_type": {".tag": "smart_fridge"}}
        page = parse_file_members_page({"users": [entry]})
        assert page.users[0].platform_type is PlatformType.OTHER

    def test_optional_user_fields_absent(self) -> None:
        entry = {
            "access_type": {".tag": "viewer"},
            "user": {
                "account_id": "dbid:x",
                "email": "x@example.com",
                "display_name": "X",
                "same_team": False,
            },
            "permissions": [],
            "is_inherited": True,
        }
        user = parse_file_members_page({"users": [entry]}).users[0]
        assert user.is_inherited is True
        assert user.time_last_seen is None
        assert user.platform_type is None
        assert user.user.team_member_id is None

    def test_parses_permissions(self) -> None:
        entry = {
            **GROUP_ENTRY,
            "permissions": [
                {"action": {".tag": "remove"}, "allow": True},
                {
                    "action": {".tag": "make_owner"},
                    "allow": False,
                    "reason": {".tag": "target_is_indirect_member"},
                },
            ],
        }
        perms = parse_file_members_page({"groups": [entry]}).groups[0].permissions
        assert perms[0].action is MemberAction.REMOVE
        assert perms[0].allow is True
        assert perms[0].reason is None
        assert perms[1].action is MemberAction.MAKE_OWNER
        assert perms[1].reason is PermissionDeniedReason.TARGET_IS_INDIRECT_MEMBER

    def test_non_email_invitee_has_no_email(self) -> None:
        entry = {**INVITEE_ENTRY, "invitee": {".tag": "other"}}
        invitee = parse_file_members_page({"invitees": [entry]}).invitees[0]
        assert invitee.invitee.kind is InviteeKind.OTHER
        assert invitee.invitee.email is None

    def test_invitee_with_resolved_user(self) -> None:
        entry = {**INVITEE_ENTRY, "user": USER_ENTRY["user"]}
        invitee = parse_file_members_page({"invitees": [entry]}).invitees[0]
        assert invitee.user is not None
        assert invitee.user.email == "bob@example.com"


# ---------------------------------------------------------------------------
# Shape errors
# ---------------------------------------------------------------------------


class TestParseErrors:
    def test_non_object_body(self) -> None:
        with pytest.raises(DecodingError):
            parse_file_members_page(["users"])

    def test_users_not_a_list(self) -> None:
        with pytest.raises(DecodingError, match="users"):
            parse_file_members_page({"users": {"a": 1}})

    def test_missing_access_type(self) -> None:
        entry = {k: v for k, v in USER_ENTRY.items() if k != "access_type"}
        with pytest.raises(DecodingError, match="access_type"):
            parse_file_members_page({"users": [entry]})

    def test_access_type_without_tag(self) -> None:
        entry = {**USER_ENTRY, "access_type": {}}
        with pytest.raises(DecodingError, match=r"\.tag"):
            parse_file_members_page({"users": [entry]})

    def test_wrong_field_type(self) -> None:
        group = {**GROUP_ENTRY["group"], "member_count": "ten"}  # type: ignore[dict-item]
        with pytest.raises(DecodingError, match="member_count"):
            parse_file_members_page({"groups": [{**GROUP_ENTRY, "group": group}]})

    def test_boolean_is_not_an_integer(self) -> None:
        group = {**GROUP_ENTRY["group"], "member_count": True}  # type: ignore[dict-item]
        with pytest.raises(DecodingError):
            parse_file_members_page({"groups": [{**GROUP_ENTRY, "group": group}]})

    def test_bad_timestamp(self) -> None:
        entry = {**USER_ENTRY, "time_last_seen": "yesterday"}
        with pytest.raises(DecodingError, match="timestamp"):
            parse_file_members_page({"users": [entry]})

    def test_cursor_not_a_string(self) -> None:
        with pytest.raises(DecodingError, match="cursor"):
            parse_file_members_page({"cursor": 42})


# ---------------------------------------------------------------------------
# FileMembers tests
# ---------------------------------------------------------------------------


class TestFileMembers:
    def test_extend_appends_in_order(self) -> None:
        first = parse_file_members_page({"users": [USER_ENTRY], "groups": [GROUP_ENTRY]})
        second = parse_file_members_page({"invitees": [INVITEE_ENTRY], "users": [USER_ENTRY]})

        members = FileMembers()
        members.extend(first)
        members.extend(second)

        assert members.users == first.users + second.users
        assert members.groups == first.groups
        assert members.invitees == second.invitees
        assert members.total == 4

    def test_empty_defaults(self) -> None:
        members = FileMembers()
        assert members.users == []
        assert members.total == 0
