"""Paginated listing of the members of a shared Dropbox file."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from dropbox_members.api.client import (
    CancelledError,
    DropboxClient,
    InvalidArgumentError,
    PaginationLimitError,
    dropbox_client_from_config,
)
from dropbox_members.api.models import (
    FIELD_CURSOR,
    FIELD_FILE,
    FIELD_INCLUDE_INHERITED,
    FIELD_LIMIT,
    LIST_FILE_MEMBERS_CONTINUE_PATH,
    LIST_FILE_MEMBERS_PATH,
    FileMembers,
    FileMembersPage,
    parse_file_members_page,
)

if TYPE_CHECKING:
    import threading

    from dropbox_members.config import AppConfig

logger = logging.getLogger(__name__)


class FileMembersLister:
    """Lists every member of a file, following list_file_members cursors."""

    def __init__(
        self,
        client: DropboxClient,
        max_pages: int = 1000,
        max_duration: float = 300.0,
    ) -> None:
        """Initialise the lister.

        Args:
            client: Authenticated DropboxClient instance.
            max_pages: Upper bound on pages fetched for one query.
            max_duration: Upper bound in seconds on the wall-clock time of one query.
        """
        self._client = client
        self._max_pages = max_pages
        self._max_duration = max_duration

    def list_file_members(
        self,
        file_id: str,
        include_inherited: bool = True,
        limit: int = 100,
        *,
        cancel_event: threading.Event | None = None,
    ) -> FileMembers:
        """Fetch all users, groups and invitees with access to a file.

        Calls sharing/list_file_members, then sharing/list_file_members/continue
        with each returned cursor until a page arrives without one. Entries are
        accumulated in the order pages were fetched. Any failure aborts the
        whole listing; partial results are never returned.

        Args:
            file_id: File ID ("id:...") or path of the shared file.
            include_inherited: Whether to include members who only have access
                through a parent folder.
            limit: Number of members per page. The provider caps this server side.
            cancel_event: Optional event; when set, the listing is aborted before
                the next request is sent.

        Returns:
            FileMembers with the entries of every page.

        Raises:
            InvalidArgumentError: If file_id is empty or limit is not a positive int.
            CancelledError: If cancel_event is set before a request.
            PaginationLimitError: If the server repeats a cursor or the page or
                time bound is exceeded.
            DropboxError: Any client error from the initial or a continuation call.
        """
        _validate_query(file_id, limit)

        started = time.monotonic()
        members = FileMembers()
        seen_cursors: set[str] = set()

        self._check_cancelled(cancel_event)
        page = self._fetch_page(
            LIST_FILE_MEMBERS_PATH,
            {FIELD_FILE: file_id, FIELD_INCLUDE_INHERITED: include_inherited, FIELD_LIMIT: limit},
        )
        members.extend(page)
        page_count = 1

        cursor = page.cursor
        while cursor is not None:
            if cursor in seen_cursors:
                logger.error(
                    "[list_file_members] server repeated a cursor; file:%s;page_count:%d",
                    file_id,
                    page_count,
                )
                raise PaginationLimitError(
                    f"Cursor repeated after {page_count} pages while listing {file_id}"
                )
            if page_count >= self._max_pages:
                raise PaginationLimitError(
                    f"Exceeded {self._max_pages} pages while listing {file_id}"
                )
            if time.monotonic() - started > self._max_duration:
                raise PaginationLimitError(
                    f"Exceeded {self._max_duration}s while listing {file_id}"
                )
            self._check_cancelled(cancel_event)

            seen_cursors.add(cursor)
            page = self._fetch_page(LIST_FILE_MEMBERS_CONTINUE_PATH, {FIELD_CURSOR: cursor})
            members.extend(page)
            page_count += 1
            cursor = page.cursor

        logger.info(
            "[list_file_members] listing complete; file:%s;pages:%d;"
            "users:%d;groups:%d;invitees:%d",
            file_id,
            page_count,
            len(members.users),
            len(members.groups),
            len(members.invitees),
        )
        return members

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _fetch_page(self, path: str, body: dict[str, Any]) -> FileMembersPage:
        page = parse_file_members_page(self._client.post(path, body))
        logger.info(
            "[_fetch_page] fetched page; path:%s;users:%d;groups:%d;invitees:%d;has_more:%s",
            path,
            len(page.users),
            len(page.groups),
            len(page.invitees),
            page.cursor is not None,
        )
        return page

    @staticmethod
    def _check_cancelled(cancel_event: threading.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning("[list_file_members] listing cancelled by caller")
            raise CancelledError("list_file_members was cancelled")


def _validate_query(file_id: str, limit: int) -> None:
    if not isinstance(file_id, str) or not file_id.strip():
        raise InvalidArgumentError("file_id must be a non-empty string")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidArgumentError(f"limit must be a positive integer, got {limit!r}")


def file_members_lister_from_config(config: AppConfig) -> FileMembersLister:
    """Construct a FileMembersLister from application configuration.

    Creates a DropboxClient from the config and applies the configured
    pagination bounds.

    Args:
        config: Application configuration instance.

    Returns:
        Configured FileMembersLister instance.
    """
    return FileMembersLister(
        client=dropbox_client_from_config(config),
        max_pages=config.max_pages,
        max_duration=config.max_duration_seconds,
    )
