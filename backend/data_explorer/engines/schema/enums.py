"""
Enum registry: ``table.column`` -> ``{label: raw_value}``.

The host application knows what its integer codes mean; the catalog attaches
the reversed mapping (raw value -> label) to matching columns. A default set
of well-known codes ships here and a JSON file (EXPLORER_ENUMS_FILE) can add
or override entries::

    {"notifications.notification_type": {"mentioned": 1, "replied": 2}}
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

_log = logging.getLogger(__name__)

TRUST_LEVELS = {"newuser": 0, "basic": 1, "member": 2, "regular": 3, "leader": 4}

NOTIFICATION_TYPES = {
    "mentioned": 1,
    "replied": 2,
    "quoted": 3,
    "edited": 4,
    "liked": 5,
    "private_message": 6,
    "invited_to_private_message": 7,
    "invitee_accepted": 8,
    "posted": 9,
    "moved_post": 10,
    "linked": 11,
    "granted_badge": 12,
    "invited_to_topic": 13,
    "custom": 14,
    "group_mentioned": 15,
}

POST_ACTION_TYPES = {
    "bookmark": 1,
    "like": 2,
    "off_topic": 3,
    "inappropriate": 4,
    "vote": 5,
    "notify_user": 6,
    "notify_moderators": 7,
    "spam": 8,
}

DEFAULT_ENUMS: dict[str, dict[str, Any]] = {
    "category_groups.permission_type": {"full": 1, "create_post": 2, "readonly": 3},
    "directory_items.period_type": {
        "all": 1,
        "yearly": 2,
        "monthly": 3,
        "weekly": 4,
        "daily": 5,
    },
    "groups.alias_level": {
        "nobody": 0,
        "only_admins": 1,
        "mods_and_admins": 2,
        "members_mods_and_admins": 3,
        "everyone": 99,
    },
    "groups.id": {
        "everyone": 0,
        "admins": 1,
        "moderators": 2,
        "staff": 3,
        "trust_level_0": 10,
        "trust_level_1": 11,
        "trust_level_2": 12,
        "trust_level_3": 13,
        "trust_level_4": 14,
    },
    "notifications.notification_type": NOTIFICATION_TYPES,
    "posts.cook_method": {"regular": 1, "raw_html": 2, "email": 3},
    "posts.hidden_reason_id": {
        "flag_threshold_reached": 1,
        "flag_threshold_reached_again": 2,
        "new_user_spam_threshold_reached": 3,
        "flagged_by_tl3_user": 4,
    },
    "posts.post_type": {"regular": 1, "moderator_action": 2, "small_action": 3},
    "post_actions.post_action_type_id": POST_ACTION_TYPES,
    "post_action_types.id": POST_ACTION_TYPES,
    "queued_posts.state": {"new": 1, "approved": 2, "rejected": 3},
    "topic_users.notification_level": {
        "muted": 0,
        "regular": 1,
        "tracking": 2,
        "watching": 3,
    },
    "topic_users.notifications_reason_id": {
        "created_topic": 1,
        "user_changed": 2,
        "user_interacted": 3,
        "created_post": 4,
        "auto_watch": 5,
        "auto_watch_category": 6,
        "auto_mute_category": 7,
        "auto_track_category": 8,
        "plugin_changed": 9,
    },
    "users.trust_level": TRUST_LEVELS,
}


class EnumRegistry:
    """Registered enums, stored already reversed for lookup by column."""

    def __init__(self, enums: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._reversed: dict[str, dict[Any, str]] = {}
        for key, mapping in (enums or {}).items():
            self.register(key, mapping)

    def register(self, full_column: str, mapping: Mapping[str, Any]) -> None:
        """Register ``{label: raw_value}`` for ``table.column`` (replaces any previous entry)."""
        self._reversed[full_column] = {raw: label for label, raw in mapping.items()}

    def lookup(self, full_column: str) -> dict[Any, str] | None:
        """Reversed mapping (raw value -> label) or None."""
        found = self._reversed.get(full_column)
        return dict(found) if found is not None else None

    def __contains__(self, full_column: object) -> bool:
        return full_column in self._reversed

    def __len__(self) -> int:
        return len(self._reversed)


def load_enums_file(path: str | Path) -> dict[str, dict[str, Any]]:
    """Read an enums JSON file; raises ValueError when the shape is wrong."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
        raise ValueError(f"{path}: expected an object of objects")
    return data


def build_registry(enums_file: str | None = None) -> EnumRegistry:
    """Default enums, plus overrides from ``enums_file`` when given."""
    registry = EnumRegistry(DEFAULT_ENUMS)
    if enums_file:
        extra = load_enums_file(enums_file)
        for key, mapping in extra.items():
            registry.register(key, mapping)
        _log.info("Loaded %d enum mappings from %s", len(extra), enums_file)
    return registry
