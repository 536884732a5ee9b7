"""Self-administered control commands for the access filter."""

from __future__ import annotations

import logging

from remotelog.access import AccessFilter
from remotelog.exceptions import ForeignControlError
from remotelog.models.address import Address
from remotelog.models.requests import ControlAction, ControlRequest

_logger = logging.getLogger(__name__)


def handle_control_request(
    our: Address,
    source: Address,
    request: ControlRequest,
    access: AccessFilter,
) -> None:
    """Apply *request* to *access*; only the service itself may send one."""
    if source != our:
        raise ForeignControlError(f"rejecting control request from remote address {source}", source=str(source))

    action = request.action
    if action == ControlAction.ADD_ALLOWED_PACKAGE:
        access.add_allowed_package(request.package_id)
    elif action == ControlAction.REMOVE_ALLOWED_PACKAGE:
        access.remove_allowed_package(request.package_id)
    elif action == ControlAction.WHITELIST_NODE:
        access.whitelist_node(request.target)
    elif action == ControlAction.UNWHITELIST_NODE:
        access.unwhitelist_node(request.target)
    elif action == ControlAction.BLACKLIST_NODE:
        access.blacklist_node(request.target)
    elif action == ControlAction.UNBLACKLIST_NODE:
        access.unblacklist_node(request.target)

    _logger.info(
        "Applied %s target=%s allowed_packages=%d whitelist=%d blacklist=%d",
        action.value,
        request.target,
        len(access.allowed_packages),
        len(access.whitelist),
        len(access.blacklist),
    )
