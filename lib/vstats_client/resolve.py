from __future__ import annotations

import logging
from typing import Callable, Protocol, TypeVar

from .errors import NotFoundError, VstatsClientError
from .models import Server, WebInstance

logger = logging.getLogger(__name__)


class _Named(Protocol):
    id: str
    name: str


R = TypeVar("R", bound=_Named)


def resolve_by_name_or_id(
        ref: str,
        *,
        kind: str,
        get_one: Callable[[str], R],
        list_all: Callable[[], list[R]],
) -> R:
    """Fetch ``ref`` as an id first, then fall back to an exact name scan of the full listing.

    Failures from either stage are reported as a single :class:`NotFoundError`
    naming ``ref``, so callers never see the internal lookup errors.
    """
    value = str(ref or "")
    if not value.strip():
        raise NotFoundError(kind, value)
    try:
        return get_one(value)
    except VstatsClientError as e:
        logger.debug("%s %r is not an id (%s); scanning by name", kind, value, e)

    try:
        items = list_all()
    except VstatsClientError as e:
        logger.debug("listing %ss failed: %s", kind, e)
        raise NotFoundError(kind, value) from None

    for item in items:
        if item.name == value:
            return item
    raise NotFoundError(kind, value)


def find_server_by_name_or_id(client, server_ref: str) -> Server:
    return resolve_by_name_or_id(
        server_ref,
        kind="server",
        get_one=client.server_get,
        list_all=client.servers_list,
    )


def find_web_instance_by_name_or_id(client, instance_ref: str) -> WebInstance:
    return resolve_by_name_or_id(
        instance_ref,
        kind="web instance",
        get_one=client.web_instance_get,
        list_all=client.web_instances_list,
    )
