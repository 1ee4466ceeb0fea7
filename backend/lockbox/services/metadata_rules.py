"""Save-time rules for items carrying encrypted (v5) metadata.

Folders and resources share these checks. Each rule is a small predicate
over a ``RuleContext``; ``check_rules`` runs the ones that apply to the
operation and returns the field-level error map (empty when all pass).
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core import armor
from ..core.auth import UserAccessControl
from ..core.config import settings
from ..models.folder import METADATA_KEY_TYPE_SHARED, METADATA_KEY_TYPE_USER
from ..repositories.folders_relation_repository import FoldersRelationRepository
from ..repositories.gpgkey_repository import GpgkeyRepository
from ..repositories.metadata_key_repository import MetadataKeyRepository

ON_CREATE = "create"
ON_UPDATE = "update"


@dataclass
class RuleContext:
    """Values a rule may look at.

    ``values`` holds the metadata fields as they will be saved (request values
    merged over the stored ones); ``entity`` is the stored item on update.
    """

    db: Session
    uac: UserAccessControl
    item_label: str
    values: Dict[str, Any]
    entity: Optional[Any] = None


@dataclass(frozen=True)
class Rule:
    name: str
    error_field: str
    message: str
    check: Callable[[RuleContext], bool]
    on: tuple = (ON_CREATE, ON_UPDATE)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def _key_type_allowed_by_settings(ctx: RuleContext) -> bool:
    if ctx.values.get("metadata_key_type") == METADATA_KEY_TYPE_USER:
        return settings.allow_usage_of_personal_keys
    return True


def _metadata_key_exists(ctx: RuleContext) -> bool:
    key_id = ctx.values.get("metadata_key_id")
    if key_id is None:
        return False
    key_type = ctx.values.get("metadata_key_type")
    if key_type == METADATA_KEY_TYPE_USER:
        return GpgkeyRepository(ctx.db).get_active_for_user(ctx.uac.user_id, key_id) is not None
    if key_type == METADATA_KEY_TYPE_SHARED:
        return MetadataKeyRepository(ctx.db).get_not_deleted(key_id) is not None
    return (
        MetadataKeyRepository(ctx.db).get_not_deleted(key_id) is not None
        or GpgkeyRepository(ctx.db).get_active_for_user(ctx.uac.user_id, key_id) is not None
    )


def _shared_key_not_expired(ctx: RuleContext) -> bool:
    if ctx.values.get("metadata_key_type") != METADATA_KEY_TYPE_SHARED:
        return True
    key = MetadataKeyRepository(ctx.db).get_not_deleted(ctx.values.get("metadata_key_id"))
    return key is None or key.expired is None


def _shared_key_unique_active(ctx: RuleContext) -> bool:
    if ctx.values.get("metadata_key_type") != METADATA_KEY_TYPE_SHARED:
        return True
    return MetadataKeyRepository(ctx.db).active_key_ids() == [ctx.values.get("metadata_key_id")]


def _valid_encrypted_metadata(ctx: RuleContext) -> bool:
    metadata = ctx.values.get("metadata")
    return metadata is not None and armor.is_encrypted_message(metadata)


def _personal_key_on_personal_item(ctx: RuleContext) -> bool:
    if ctx.values.get("metadata_key_type") != METADATA_KEY_TYPE_USER:
        return True
    return FoldersRelationRepository(ctx.db).count_for_item(ctx.entity.id) <= 1


def _v4_to_v5_upgrade_allowed(ctx: RuleContext) -> bool:
    if ctx.entity is None or ctx.entity.metadata_ is not None:
        return True
    return settings.allow_v4_v5_upgrade


def _v5_to_v4_downgrade_allowed(ctx: RuleContext) -> bool:
    if ctx.entity is None or ctx.entity.metadata_ is None:
        return True
    return settings.allow_v5_v4_downgrade


def _v4_creation_allowed(ctx: RuleContext) -> bool:
    if ctx.item_label == "folder":
        return settings.allow_creation_of_v4_folders
    return True


def _v5_creation_allowed(ctx: RuleContext) -> bool:
    if ctx.item_label == "folder":
        return settings.allow_creation_of_v5_folders
    return True


# ---------------------------------------------------------------------------
# Rule sets
# ---------------------------------------------------------------------------

V4_RULES: List[Rule] = [
    Rule(
        "isV4CreationAllowed",
        "name",
        "The settings selected by your administrator prevent from creating v4 {item}s.",
        _v4_creation_allowed,
        on=(ON_CREATE,),
    ),
    Rule(
        "v5_to_v4_downgrade_allowed",
        "name",
        "The settings selected by your administrator prevent from downgrading {item}.",
        _v5_to_v4_downgrade_allowed,
        on=(ON_UPDATE,),
    ),
]

V5_RULES: List[Rule] = [
    Rule(
        "isV5CreationAllowed",
        "metadata",
        "The settings selected by your administrator prevent from creating v5 {item}s.",
        _v5_creation_allowed,
        on=(ON_CREATE,),
    ),
    Rule(
        "isMetadataKeyTypeAllowedBySettings",
        "metadata_key_type",
        "The settings selected by your administrator prevent from using that key type.",
        _key_type_allowed_by_settings,
    ),
    Rule("metadata_key_exists", "metadata_key_id", "The metadata key does not exist.", _metadata_key_exists),
    Rule(
        "isMetadataKeyNotExpired",
        "metadata_key_id",
        "The metadata key is marked as expired.",
        _shared_key_not_expired,
    ),
    Rule(
        "isSharedMetadataKeyUniqueActive",
        "metadata_key_id",
        "The shared metadata key should be unique.",
        _shared_key_unique_active,
    ),
    Rule(
        "isValidEncryptedMetadata",
        "metadata",
        "The {item} metadata provided cannot be decrypted.",
        _valid_encrypted_metadata,
    ),
    Rule(
        "isMetadataKeyTypeSharedOnSharedItem",
        "metadata_key_type",
        "A {item} of type personal cannot be shared with other users or a group.",
        _personal_key_on_personal_item,
        on=(ON_UPDATE,),
    ),
    Rule(
        "v4_to_v5_upgrade_allowed",
        "metadata",
        "The settings selected by your administrator prevent from upgrading v4 to v5.",
        _v4_to_v5_upgrade_allowed,
        on=(ON_UPDATE,),
    ),
]


def check_rules(rules: List[Rule], ctx: RuleContext, operation: str) -> Dict[str, Dict[str, str]]:
    """Run the *rules* applying to *operation*; return ``{field: {rule: message}}``."""
    errors: Dict[str, Dict[str, str]] = {}
    for rule in rules:
        if operation not in rule.on:
            continue
        if not rule.check(ctx):
            errors.setdefault(rule.error_field, {})[rule.name] = rule.message.format(item=ctx.item_label)
    return errors
