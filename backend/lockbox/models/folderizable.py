"""Folderizable behavior: decorates folders and resources with their place in a user's tree.

Two read-only attributes are added to every folderizable entity:

``folder_parent_id``
    The parent folder of the item in a given user's tree (NULL at the root).
``personal``
    Tri-state: True when the item has exactly one folder relation (only one
    user can see it), False when it has more than one, None when it has none.

They are filled in two ways:

* Queries: ``FolderizableBehavior.format_results(stmt, user_id)`` attaches both
  values as SQL expressions. A select executed with the
  ``folder_parent_user_id`` execution option is rewritten automatically by the
  ``do_orm_execute`` hook (the index finder).
* Saves: after a flush, saved entities are decorated for their creator when
  the configured ``after_save`` moments (``always``, ``new``, ``existing``)
  match.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import Boolean, case, event, false, func, select, true, type_coerce
from sqlalchemy.orm import Session, declared_attr, query_expression, with_expression
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.sql import Select

from ..core.config import settings

logger = logging.getLogger(__name__)

FIND_OPTION = "folder_parent_user_id"

WHEN_ALWAYS = "always"
WHEN_NEW = "new"
WHEN_EXISTING = "existing"
_WHEN_VALUES = (WHEN_ALWAYS, WHEN_NEW, WHEN_EXISTING)

EVENT_AFTER_SAVE = "after_save"
EVENT_FIND_INDEX_BEFORE = "find_index_before"

_SAVED_KEY = "folderizable_saved"


class Folderizable:
    """Declarative mixin carrying the computed folder attributes."""

    @declared_attr
    def folder_parent_id(cls):
        return query_expression()

    @declared_attr
    def personal(cls):
        return query_expression()


class FolderizableBehavior:
    """Query decoration and save hooks for one folderizable model."""

    FINDER_NAME = "folder_parent"
    FOLDER_PARENT_ID_PROPERTY = "folder_parent_id"
    PERSONAL_PROPERTY = "personal"

    DEFAULT_EVENTS: Dict[str, Sequence[str]] = {
        EVENT_AFTER_SAVE: (WHEN_NEW,),
        EVENT_FIND_INDEX_BEFORE: (WHEN_ALWAYS,),
    }

    _registry: Dict[type, "FolderizableBehavior"] = {}

    def __init__(self, model: type, events: Optional[Dict[str, Sequence[str]]] = None):
        self.model = model
        self.events: Dict[str, Sequence[str]] = dict(self.DEFAULT_EVENTS)
        if events is not None:
            self.events.update(events)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    @classmethod
    def attach(cls, model: type, events: Optional[Dict[str, Sequence[str]]] = None) -> "FolderizableBehavior":
        behavior = cls(model, events)
        cls._registry[model] = behavior
        return behavior

    @classmethod
    def for_model(cls, model: type) -> Optional["FolderizableBehavior"]:
        return cls._registry.get(model)

    def implemented_events(self) -> List[str]:
        return list(self.events.keys())

    # ------------------------------------------------------------------
    # Query decoration
    # ------------------------------------------------------------------

    def folder_parent_expression(self, user_id: str):
        """Parent folder id of each row in *user_id*'s tree (correlated)."""
        from .folder import FoldersRelation

        return (
            select(FoldersRelation.folder_parent_id)
            .where(
                FoldersRelation.foreign_id == self.model.id,
                FoldersRelation.user_id == user_id,
                FoldersRelation.folder_parent_id.isnot(None),
            )
            .limit(1)
            .scalar_subquery()
        )

    def personal_expression(self):
        """Count the folder relations of each row.

        Exactly one relation means personal (TRUE), more than one means shared
        (FALSE), none leaves the value NULL.
        """
        from .folder import FoldersRelation

        relations = func.count()
        personal = type_coerce(
            case(
                (relations == 1, true()),
                (relations > 1, false()),
            ),
            Boolean,
        )
        return (
            select(personal)
            .where(FoldersRelation.foreign_id == self.model.id)
            .scalar_subquery()
        )

    def format_results(self, statement: Select, user_id: str) -> Select:
        """Attach ``folder_parent_id`` and ``personal`` to the entities selected by *statement*."""
        return statement.options(
            with_expression(getattr(self.model, self.FOLDER_PARENT_ID_PROPERTY), self.folder_parent_expression(user_id)),
            with_expression(getattr(self.model, self.PERSONAL_PROPERTY), self.personal_expression()),
        ).execution_options(populate_existing=True)

    def find_folder_parent_id(self, statement: Select, options: Dict[str, Any]) -> Select:
        """Finder entry point; *options* must hold ``user_id``."""
        return self.format_results(statement, options["user_id"])

    # ------------------------------------------------------------------
    # Save hook
    # ------------------------------------------------------------------

    def handle_after_save(self, session: Session, entity: Any, is_new: bool) -> None:
        for when in self.events.get(EVENT_AFTER_SAVE, ()):
            if when not in _WHEN_VALUES:
                raise ValueError(
                    f'When should be one of "always", "new" or "existing". The passed value "{when}" is invalid'
                )
            if when == WHEN_ALWAYS or (when == WHEN_NEW and is_new) or (when == WHEN_EXISTING and not is_new):
                # The creator's tree is the reference for a freshly saved item.
                folder_parent_id = get_item_folder_parent_id_in_user_tree(session, entity.created_by, entity.id)
                personal = is_item_personal(session, entity.id)
                set_committed_value(entity, self.PERSONAL_PROPERTY, personal)
                set_committed_value(entity, self.FOLDER_PARENT_ID_PROPERTY, folder_parent_id)
                logger.debug(
                    "Decorated saved %s", self.model.__name__,
                    extra={"entity_id": entity.id, "personal": personal, "folder_parent_id": folder_parent_id},
                )


# ---------------------------------------------------------------------------
# Relation lookups used by the save hook and the services
# ---------------------------------------------------------------------------

def get_item_folder_parent_id_in_user_tree(session: Session, user_id: str, foreign_id: str) -> Optional[str]:
    from .folder import FoldersRelation

    return session.execute(
        select(FoldersRelation.folder_parent_id).where(
            FoldersRelation.user_id == user_id,
            FoldersRelation.foreign_id == foreign_id,
        )
    ).scalar_one_or_none()


def is_item_personal(session: Session, foreign_id: str) -> bool:
    from .folder import FoldersRelation

    count = session.execute(
        select(func.count()).select_from(FoldersRelation).where(FoldersRelation.foreign_id == foreign_id)
    ).scalar_one()
    return count == 1


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def unset_personal_property_if_null(entity: Dict[str, Any]) -> Dict[str, Any]:
    """Drop ``personal: null`` from a serialized entity when folders are enabled.

    Older clients reject a null personal flag.
    """
    if not settings.folders_enabled:
        return entity
    if FolderizableBehavior.PERSONAL_PROPERTY in entity and entity[FolderizableBehavior.PERSONAL_PROPERTY] is None:
        del entity[FolderizableBehavior.PERSONAL_PROPERTY]
    return entity


def unset_personal_property_if_null_on_result_set(entities: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [unset_personal_property_if_null(entity) for entity in entities]


# ---------------------------------------------------------------------------
# Session hooks
# ---------------------------------------------------------------------------

@event.listens_for(Session, "do_orm_execute")
def _find_index_before(orm_execute_state) -> None:
    """Decorate selects carrying the ``folder_parent_user_id`` execution option."""
    if not orm_execute_state.is_select:
        return
    if orm_execute_state.is_column_load or orm_execute_state.is_relationship_load:
        return
    user_id = orm_execute_state.execution_options.get(FIND_OPTION)
    if user_id is None:
        return

    for mapper in orm_execute_state.all_mappers:
        behavior = FolderizableBehavior.for_model(mapper.class_)
        if behavior is None or EVENT_FIND_INDEX_BEFORE not in behavior.events:
            continue
        orm_execute_state.statement = behavior.format_results(orm_execute_state.statement, user_id)
        orm_execute_state.update_execution_options(populate_existing=True)
        return


@event.listens_for(Session, "before_flush")
def _collect_saved_entities(session: Session, flush_context, instances) -> None:
    saved = session.info.setdefault(_SAVED_KEY, [])
    for entity in session.new:
        if FolderizableBehavior.for_model(type(entity)) is not None:
            saved.append((entity, True))
    for entity in session.dirty:
        if FolderizableBehavior.for_model(type(entity)) is not None and session.is_modified(entity):
            saved.append((entity, False))


@event.listens_for(Session, "after_flush_postexec")
def _after_save(session: Session, flush_context) -> None:
    saved = session.info.pop(_SAVED_KEY, [])
    for entity, is_new in saved:
        if entity in session.deleted:
            continue
        behavior = FolderizableBehavior.for_model(type(entity))
        behavior.handle_after_save(session, entity, is_new)


@event.listens_for(Session, "after_soft_rollback")
def _forget_saved_entities(session: Session, previous_transaction) -> None:
    session.info.pop(_SAVED_KEY, None)
