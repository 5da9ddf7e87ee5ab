"""HTTP trigger blueprint — health check and file member listing endpoints."""

import json
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any

import azure.functions as func

from dropbox_members import __version__
from dropbox_members.api.client import ApiError, InvalidArgumentError
from dropbox_members.api.members import file_members_lister_from_config
from dropbox_members.config import load_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint. Returns service status and version."""
    logger.info("[health_check] health check requested")

    try:
        body = json.dumps({"status": "ok", "version": __version__})
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        return _error_response(500, "Internal server error")


@bp.route(route="members", methods=["GET"], auth_level=func.AuthLevel.FUNCTION)
def list_members(req: func.HttpRequest) -> func.HttpResponse:
    """List every member of a shared file.

    Query parameters:
        file: Dropbox file ID ("id:...") or path. Required.
        include_inherited: "true"/"false", defaults to true.
        limit: Page size sent to Dropbox, defaults to DBX_PAGE_LIMIT.

    Requires a function key. The access token comes from the environment.
    """
    logger.info("[list_members] member listing requested")

    try:
        config = load_config()
        file_id = req.params.get("file", "")
        include_inherited = _parse_bool(req.params.get("include_inherited"), default=True)
        limit = _parse_int(req.params.get("limit"), default=config.page_limit)

        lister = file_members_lister_from_config(config)
        members = lister.list_file_members(file_id, include_inherited, limit)

        body = json.dumps(
            {"status": "ok", "total": members.total, "members": asdict(members)},
            default=_json_default,
        )
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except InvalidArgumentError as exc:
        logger.warning("[list_members] invalid request; error:%s", exc)
        return _error_response(400, str(exc))

    except ApiError as exc:
        logger.error("[list_members] dropbox rejected request; status:%d", exc.status_code)
        return _error_response(502, exc.message)

    except Exception:
        logger.error("[list_members] member listing failed", exc_info=True)
        return _error_response(500, "Internal server error")


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise InvalidArgumentError(f"include_inherited must be true or false, got {value!r}")


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"limit must be an integer, got {value!r}") from exc


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _error_response(status_code: int, message: str) -> func.HttpResponse:
    error_body = json.dumps({"status": "error", "message": message})
    return func.HttpResponse(error_body, status_code=status_code, mimetype="application/json")
