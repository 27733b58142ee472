"""
Change tracking for sessions.

A session factory configured with track_changes() calls the model's
notifier once after every commit that created, updated or deleted rows of
that model, whether through the unit of work, DML statements or the
legacy bulk methods of TrackedSession.

Models that define validate() are checked on every write path: the unit
of work runs it from mapper events, everything else is covered here.
"""
import logging
from typing import Callable, Iterable, List, Optional

from sqlalchemy import event, inspect, select
from sqlalchemy.orm import Mapper, Session, object_session, sessionmaker

logger = logging.getLogger(__name__)

NOTIFIERS_KEY = "change_notifiers"
PENDING_KEY = "pending_update_notifiers"
REJECTED_KEY = "rejected_write"


def track_changes(factory: sessionmaker, model, notify: Callable[[], None]) -> None:
    """
    Call notify after each commit of the factory's sessions that changed rows of model.

    Args:
        factory: Session factory to configure
        model: Mapped class to watch
        notify: No-argument callable
    """
    info = dict(factory.kw.get("info") or {})
    notifiers = dict(info.get(NOTIFIERS_KEY) or {})
    notifiers[model] = notify
    info[NOTIFIERS_KEY] = notifiers
    factory.configure(info=info)
    logger.debug(f"Tracking changes to {model.__name__}")


def _mark_changed(session: Session, model) -> None:
    notify = (session.info.get(NOTIFIERS_KEY) or {}).get(model)
    if notify is None:
        return

    pending = session.info.setdefault(PENDING_KEY, [])
    if notify not in pending:
        pending.append(notify)


def _reject(session: Session, error: Exception) -> None:
    # The statement already ran; keep the transaction from committing
    session.info[REJECTED_KEY] = error
    raise error


def _validate_rows(model, rows: Iterable[dict]) -> None:
    if not hasattr(model, "validate"):
        return
    for row in rows:
        model(**row).validate()


def _column_keys(mapper: Mapper) -> List[str]:
    return list(mapper.column_attrs.keys())


def _load_rows(session: Session, mapper: Mapper, ids) -> List[dict]:
    ids = list(ids)
    if not ids:
        return []

    model = mapper.class_
    columns = [getattr(model, key) for key in _column_keys(mapper)]
    result = session.execute(select(*columns).where(mapper.primary_key[0].in_(ids)))
    return [dict(row._mapping) for row in result]


def _statement_rows(statement, mapper: Mapper, dialect) -> List[dict]:
    """Values of an INSERT built with .values(), one dict per row."""
    keys = set(_column_keys(mapper))
    rows = {}
    for name, value in statement.compile(dialect=dialect).params.items():
        # Multi-row VALUES names the binds of the second row on "<column>_m1"
        column, _, index = name.rpartition("_m")
        if column in keys and index.isdigit():
            rows.setdefault(int(index), {})[column] = value
        elif name in keys:
            rows.setdefault(0, {})[name] = value
    return [rows[index] for index in sorted(rows)]


def _target_ids(orm_execute_state, mapper: Mapper) -> list:
    primary_key = mapper.primary_key[0]
    parameters = orm_execute_state.parameters
    if isinstance(parameters, list):
        return [row[primary_key.key] for row in parameters if primary_key.key in row]

    query = select(primary_key)
    where = orm_execute_state.statement.whereclause
    if where is not None:
        query = query.where(where)
    return list(orm_execute_state.session.scalars(query))


class TrackedSession(Session):
    """
    Session whose legacy bulk methods validate and report changes.
    """

    def bulk_save_objects(self, objects, *args, **kwargs):
        objects = list(objects)
        for obj in objects:
            if hasattr(obj, "validate"):
                obj.validate()

        super().bulk_save_objects(objects, *args, **kwargs)

        for model in {type(obj) for obj in objects}:
            _mark_changed(self, model)

    def bulk_insert_mappings(self, mapper, mappings, *args, **kwargs):
        mappings = list(mappings)
        model = inspect(mapper).class_
        _validate_rows(model, mappings)

        super().bulk_insert_mappings(mapper, mappings, *args, **kwargs)
        _mark_changed(self, model)

    def bulk_update_mappings(self, mapper, mappings):
        mappings = list(mappings)
        mapper = inspect(mapper)
        model = mapper.class_

        if hasattr(model, "validate"):
            key = mapper.primary_key[0].key
            current = {row[key]: row for row in _load_rows(self, mapper, [m[key] for m in mappings])}
            _validate_rows(model, [{**current.get(m[key], {}), **m} for m in mappings])

        super().bulk_update_mappings(mapper, mappings)
        _mark_changed(self, model)


def _after_flush_change(mapper, connection, target):
    session = object_session(target)
    if session is not None:
        _mark_changed(session, mapper.class_)


for _event_name in ("after_insert", "after_update", "after_delete"):
    event.listen(Mapper, _event_name, _after_flush_change)


@event.listens_for(Session, "do_orm_execute")
def _track_statements(orm_execute_state):
    if not (orm_execute_state.is_insert or orm_execute_state.is_update or orm_execute_state.is_delete):
        return None

    mapper: Optional[Mapper] = orm_execute_state.bind_mapper
    if mapper is None:
        return None

    session = orm_execute_state.session
    model = mapper.class_
    result = None

    if orm_execute_state.is_insert and hasattr(model, "validate"):
        parameters = orm_execute_state.parameters
        if parameters:
            rows = parameters if isinstance(parameters, list) else [parameters]
        else:
            rows = _statement_rows(orm_execute_state.statement, mapper, session.get_bind(mapper=mapper).dialect)
        _validate_rows(model, rows)

    elif orm_execute_state.is_update and hasattr(model, "validate"):
        ids = _target_ids(orm_execute_state, mapper)
        result = orm_execute_state.invoke_statement()
        try:
            _validate_rows(model, _load_rows(session, mapper, ids))
        except ValueError as e:
            _reject(session, e)

    _mark_changed(session, model)
    return result


@event.listens_for(Session, "before_commit")
def _refuse_rejected_commit(session):
    error = session.info.get(REJECTED_KEY)
    if error is not None:
        raise error


@event.listens_for(Session, "after_commit")
def _notify_after_commit(session):
    pending = session.info.pop(PENDING_KEY, [])
    for notify in pending:
        try:
            notify()
        except Exception:
            logger.exception("Update notification failed after commit")


@event.listens_for(Session, "after_rollback")
def _discard_on_rollback(session):
    session.info.pop(PENDING_KEY, None)
    session.info.pop(REJECTED_KEY, None)
