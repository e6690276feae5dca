"""
Assigned-user counting for Entra ID groups.
"""

from __future__ import annotations

import logging
from typing import Optional

from .graph_client import GraphClient

DEFAULT_GROUP_DEPTH = 1


def resolve_assigned_user_count(
    client: GraphClient,
    group_id: str,
    max_depth: int = DEFAULT_GROUP_DEPTH,
    logger: Optional[logging.Logger] = None,
) -> int:
    """
    Count the user members of a group, expanding nested groups up to max_depth levels.

    With the default depth of 1, users in groups directly inside group_id are
    counted, while groups nested below those are ignored. A user reachable
    through several groups is counted once per path.

    Args:
        client: GraphClient used to list members
        group_id: Entra ID object id of the group
        max_depth: How many levels of nested groups to expand (0 = direct users only)
        logger: Optional logger instance

    Returns:
        Number of user members found

    Raises:
        RemoteFetchError: If listing members fails at any level
        ValueError: If max_depth is negative
    """
    if max_depth < 0:
        raise ValueError(f"Invalid group expansion depth: {max_depth}. Depth must be zero or greater.")
    log = logger or logging.getLogger(__name__)

    count = 0
    for member in client.get_group_members(group_id):
        if member.member_type == "user":
            count += 1
        elif member.member_type == "group" and max_depth > 0:
            log.debug("Expanding nested group %s of %s", member.member_id, group_id)
            count += resolve_assigned_user_count(client, member.member_id, max_depth - 1, logger=log)
    return count
