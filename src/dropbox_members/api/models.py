"""Data models for Dropbox file membership listings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, TypeVar

from dropbox_members.api.client import DecodingError

# Dropbox API JSON field names
FIELD_TAG = ".tag"
FIELD_FILE = "file"
FIELD_INCLUDE_INHERITED = "include_inherited"
FIELD_LIMIT = "limit"
FIELD_CURSOR = "cursor"
FIELD_USERS = "users"
FIELD_GROUPS = "groups"
FIELD_INVITEES = "invitees"
FIELD_USER = "user"
FIELD_GROUP = "group"
FIELD_INVITEE = "invitee"
FIELD_ACCESS_TYPE = "access_type"
FIELD_PERMISSIONS = "permissions"
FIELD_IS_INHERITED = "is_inherited"
FIELD_TIME_LAST_SEEN = "time_last_seen"
FIELD_PLATFORM_TYPE = "platform_type"
FIELD_ACTION = "action"
FIELD_ALLOW = "allow"
FIELD_REASON = "reason"
FIELD_EMAIL = "email"

# Sharing endpoints, relative to the API base URL
LIST_FILE_MEMBERS_PATH = "sharing/list_file_members"
LIST_FILE_MEMBERS_CONTINUE_PATH = "sharing/list_file_members/continue"


class TaggedEnum(StrEnum):
    """Closed set of `.tag` values; unknown tags decode to the OTHER member."""

    @classmethod
    def _missing_(cls, value: object) -> TaggedEnum:
        return cls("other")


class AccessLevel(TaggedEnum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"
    VIEWER_NO_COMMENT = "viewer_no_comment"
    TRAVERSE = "traverse"
    NO_ACCESS = "no_access"
    OTHER = "other"


class PlatformType(TaggedEnum):
    WEB = "web"
    DESKTOP = "desktop"
    MOBILE_IOS = "mobile_ios"
    MOBILE_ANDROID = "mobile_android"
    API = "api"
    UNKNOWN = "unknown"
    OTHER = "other"


class GroupManagementType(TaggedEnum):
    USER_MANAGED = "user_managed"
    COMPANY_MANAGED = "company_managed"
    SYSTEM_MANAGED = "system_managed"
    OTHER = "other"


class GroupType(TaggedEnum):
    TEAM = "team"
    USER_MANAGED = "user_managed"
    OTHER = "other"


class InviteeKind(TaggedEnum):
    EMAIL = "email"
    OTHER = "other"


class MemberAction(TaggedEnum):
    LEAVE_A_COPY = "leave_a_copy"
    MAKE_EDITOR = "make_editor"
    MAKE_OWNER = "make_owner"
    MAKE_VIEWER = "make_viewer"
    MAKE_VIEWER_NO_COMMENT = "make_viewer_no_comment"
    REMOVE = "remove"
    OTHER = "other"


class PermissionDeniedReason(TaggedEnum):
    USER_NOT_SAME_TEAM_AS_OWNER = "user_not_same_team_as_owner"
    USER_NOT_ALLOWED_BY_OWNER = "user_not_allowed_by_owner"
    TARGET_IS_INDIRECT_MEMBER = "target_is_indirect_member"
    TARGET_IS_OWNER = "target_is_owner"
    TARGET_IS_SELF = "target_is_self"
    TARGET_NOT_ACTIVE = "target_not_active"
    FOLDER_IS_LIMITED_TEAM_FOLDER = "folder_is_limited_team_folder"
    OWNER_NOT_ON_TEAM = "owner_not_on_team"
    PERMISSION_DENIED = "permission_denied"
    RESTRICTED_BY_TEAM = "restricted_by_team"
    USER_ACCOUNT_TYPE = "user_account_type"
    USER_NOT_ON_TEAM = "user_not_on_team"
    FOLDER_IS_INSIDE_SHARED_FOLDER = "folder_is_inside_shared_folder"
    RESTRICTED_BY_PARENT_FOLDER = "restricted_by_parent_folder"
    INSUFFICIENT_PLAN = "insufficient_plan"
    OTHER = "other"


@dataclass(frozen=True)
class MemberPermission:
    """Whether the current user may perform an action on a member."""

    action: MemberAction
    allow: bool
    reason: PermissionDeniedReason | None = None


@dataclass(frozen=True)
class UserInfo:
    account_id: str
    email: str
    display_name: str
    same_team: bool
    team_member_id: str | None = None


@dataclass(frozen=True)
class UserMembershipInfo:
    """A Dropbox account with access to the file.

    Attributes:
        access_type: Access level granted to the user.
        user: Account details.
        permissions: Actions the caller may perform on this membership.
        is_inherited: True when access comes from a parent folder.
        time_last_seen: Last time the user viewed the file, if known.
        platform_type: Platform the file was last seen on, if known.
    """

    access_type: AccessLevel
    user: UserInfo
    permissions: list[MemberPermission] = field(default_factory=list)
    is_inherited: bool = False
    time_last_seen: datetime | None = None
    platform_type: PlatformType | None = None


@dataclass(frozen=True)
class GroupInfo:
    group_id: str
    group_name: str
    group_management_type: GroupManagementType
    group_type: GroupType
    is_member: bool
    is_owner: bool
    same_team: bool
    member_count: int | None = None
    group_external_id: str | None = None


@dataclass(frozen=True)
class GroupMembershipInfo:
    access_type: AccessLevel
    group: GroupInfo
    permissions: list[MemberPermission] = field(default_factory=list)
    is_inherited: bool = False


@dataclass(frozen=True)
class InviteeInfo:
    """Target of a pending invitation; email is None for non-email invitees."""

    kind: InviteeKind
    email: str | None = None


@dataclass(frozen=True)
class InviteeMembershipInfo:
    access_type: AccessLevel
    invitee: InviteeInfo
    permissions: list[MemberPermission] = field(default_factory=list)
    is_inherited: bool = False
    user: UserInfo | None = None


@dataclass
class FileMembersPage:
    """One response of list_file_members or its continuation.

    A cursor of None marks the terminal page.
    """

    users: list[UserMembershipInfo] = field(default_factory=list)
    groups: list[GroupMembershipInfo] = field(default_factory=list)
    invitees: list[InviteeMembershipInfo] = field(default_factory=list)
    cursor: str | None = None


@dataclass
class FileMembers:
    """All members of a file, accumulated across pages in fetch order."""

    users: list[UserMembershipInfo] = field(default_factory=list)
    groups: list[GroupMembershipInfo] = field(default_factory=list)
    invitees: list[InviteeMembershipInfo] = field(default_factory=list)

    def extend(self, page: FileMembersPage) -> None:
        """Append a page's entries after the entries already accumulated."""
        self.users.extend(page.users)
        self.groups.extend(page.groups)
        self.invitees.extend(page.invitees)

    @property
    def total(self) -> int:
        return len(self.users) + len(self.groups) + len(self.invitees)


# ----------------------------------------------------------------------
# Decoding
# ----------------------------------------------------------------------

_T = TypeVar("_T")
_E = TypeVar("_E", bound=TaggedEnum)


def parse_file_members_page(raw: Any) -> FileMembersPage:
    """Decode a list_file_members (or continue) response body.

    Args:
        raw: Decoded JSON response body.

    Returns:
        FileMembersPage with typed member records.

    Raises:
        DecodingError: If the body does not have the documented shape.
    """
    body = _as_object(raw, "response")
    cursor = _optional(body, FIELD_CURSOR, str)
    return FileMembersPage(
        users=[_parse_user_membership(u) for u in _optional(body, FIELD_USERS, list, [])],
        groups=[_parse_group_membership(g) for g in _optional(body, FIELD_GROUPS, list, [])],
        invitees=[
            _parse_invitee_membership(i) for i in _optional(body, FIELD_INVITEES, list, [])
        ],
        cursor=cursor or None,
    )


def _parse_user_membership(raw: Any) -> UserMembershipInfo:
    entry = _as_object(raw, FIELD_USER)
    last_seen = _optional(entry, FIELD_TIME_LAST_SEEN, str)
    platform = _optional(entry, FIELD_PLATFORM_TYPE, dict)
    return UserMembershipInfo(
        access_type=_tag(_require(entry, FIELD_ACCESS_TYPE, dict), AccessLevel),
        user=_parse_user_info(_require(entry, FIELD_USER, dict)),
        permissions=_parse_permissions(entry),
        is_inherited=_optional(entry, FIELD_IS_INHERITED, bool, False),
        time_last_seen=_parse_timestamp(last_seen) if last_seen is not None else None,
        platform_type=_tag(platform, PlatformType) if platform is not None else None,
    )


def _parse_user_info(raw: dict[str, Any]) -> UserInfo:
    return UserInfo(
        account_id=_require(raw, "account_id", str),
        email=_require(raw, "email", str),
        display_name=_require(raw, "display_name", str),
        same_team=_require(raw, "same_team", bool),
        team_member_id=_optional(raw, "team_member_id", str),
    )


def _parse_group_membership(raw: Any) -> GroupMembershipInfo:
    entry = _as_object(raw, FIELD_GROUP)
    group = _require(entry, FIELD_GROUP, dict)
    return GroupMembershipInfo(
        access_type=_tag(_require(entry, FIELD_ACCESS_TYPE, dict), AccessLevel),
        group=GroupInfo(
            group_id=_require(group, "group_id", str),
            group_name=_require(group, "group_name", str),
            group_management_type=_tag(
                _require(group, "group_management_type", dict), GroupManagementType
            ),
            group_type=_tag(_require(group, "group_type", dict), GroupType),
            is_member=_require(group, "is_member", bool),
            is_owner=_require(group, "is_owner", bool),
            same_team=_require(group, "same_team", bool),
            member_count=_optional(group, "member_count", int),
            group_external_id=_optional(group, "group_external_id", str),
        ),
        permissions=_parse_permissions(entry),
        is_inherited=_optional(entry, FIELD_IS_INHERITED, bool, False),
    )


def _parse_invitee_membership(raw: Any) -> InviteeMembershipInfo:
    entry = _as_object(raw, FIELD_INVITEE)
    invitee = _require(entry, FIELD_INVITEE, dict)
    kind = _tag(invitee, InviteeKind)
    user = _optional(entry, FIELD_USER, dict)
    return InviteeMembershipInfo(
        access_type=_tag(_require(entry, FIELD_ACCESS_TYPE, dict), AccessLevel),
        invitee=InviteeInfo(
            kind=kind,
            email=_require(invitee, FIELD_EMAIL, str) if kind is InviteeKind.EMAIL else None,
        ),
        permissions=_parse_permissions(entry),
        is_inherited=_optional(entry, FIELD_IS_INHERITED, bool, False),
        user=_parse_user_info(user) if user is not None else None,
    )


def _parse_permissions(entry: dict[str, Any]) -> list[MemberPermission]:
    permissions: list[MemberPermission] = []
    for raw in _optional(entry, FIELD_PERMISSIONS, list, []):
        perm = _as_object(raw, FIELD_PERMISSIONS)
        reason = _optional(perm, FIELD_REASON, dict)
        permissions.append(
            MemberPermission(
                action=_tag(_require(perm, FIELD_ACTION, dict), MemberAction),
                allow=_require(perm, FIELD_ALLOW, bool),
                reason=_tag(reason, PermissionDeniedReason) if reason is not None else None,
            )
        )
    return permissions


def _parse_timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise DecodingError(f"Invalid timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _tag(raw: dict[str, Any], enum_cls: type[_E]) -> _E:
    tag = raw.get(FIELD_TAG)
    if not isinstance(tag, str):
        raise DecodingError(f"Missing '{FIELD_TAG}' for {enum_cls.__name__}: {raw!r}")
    return enum_cls(tag)


def _as_object(raw: Any, context: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise DecodingError(f"Expected a JSON object for {context}, got {type(raw).__name__}")
    return raw


def _require(raw: dict[str, Any], key: str, kind: type[_T]) -> _T:
    if key not in raw:
        raise DecodingError(f"Missing required field '{key}'")
    value = raw[key]
    if not _matches(value, kind):
        raise DecodingError(f"Field '{key}' should be {kind.__name__}, got {type(value).__name__}")
    return value


def _optional(raw: dict[str, Any], key: str, kind: type[_T], default: Any = None) -> Any:
    value = raw.get(key)
    if value is None:
        return default
    if not _matches(value, kind):
        raise DecodingError(f"Field '{key}' should be {kind.__name__}, got {type(value).__name__}")
    return value


def _matches(value: Any, kind: type) -> bool:
    # bool is an int subclass; keep JSON true/false out of integer fields.
    if kind is int and isinstance(value, bool):
        return False
    return isinstance(value, kind)
