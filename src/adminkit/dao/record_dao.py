# adminkit/dao/record_dao.py

import logging
import datetime
from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import ColumnProperty
from sqlalchemy.sql.selectable import Select

from adminkit.dao.base_dao import BaseDao, ModelType
from adminkit.services.exceptions import FormConfigurationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "on", "yes"}


@dataclass(frozen=True)
class RelationInfo:
    attribute: str
    target: Type[Any]
    multiple: bool
    via_junction: bool


def describe_relation(model_class: Type[Any], attribute: str) -> RelationInfo:
    """Resolves a relationship attribute of a mapped class into its target type and multiplicity."""
    mapper = inspect(model_class)
    if attribute not in mapper.relationships:
        raise FormConfigurationError(
            f'Attribute "{attribute}" of {model_class.__name__} is not a relationship'
        )
    relationship = mapper.relationships[attribute]
    return RelationInfo(
        attribute=attribute,
        target=relationship.mapper.class_,
        multiple=bool(relationship.uselist),
        via_junction=relationship.secondary is not None,
    )


def primary_key_of(instance: Any) -> Any:
    return inspect(type(instance)).primary_key_from_instance(instance)[0]


class RecordDao(BaseDao[ModelType]):
    """
    Active-record style operations the admin forms need on top of BaseDao:
    loading a submitted payload into a model, saving, relation link/unlink,
    and a transaction primitive that nests when a request transaction is already open.
    """

    def __init__(self, model_class: Type[ModelType], db_session: AsyncSession):
        super().__init__(model_class, db_session)

    @property
    def short_name(self) -> str:
        return self.model.__name__

    # ==============================================================================
    # 1. 标量属性 (Scalar attributes)
    # ==============================================================================

    def column_attributes(self) -> Dict[str, ColumnProperty]:
        mapper = inspect(self.model)
        pk_keys = {mapper.get_property_by_column(column).key for column in mapper.primary_key}
        return {prop.key: prop for prop in mapper.column_attrs if prop.key not in pk_keys}

    def load_attributes(
        self, instance: ModelType, values: Mapping[str, Any], safe: Iterable[str]
    ) -> Dict[str, str]:
        """
        Assigns submitted values of the `safe` column attributes to the instance.
        Returns conversion errors keyed by attribute; attributes with errors are left unchanged.
        """
        columns = self.column_attributes()
        errors: Dict[str, str] = {}
        for name in safe:
            if name not in values or name not in columns:
                continue
            try:
                setattr(instance, name, self._coerce(columns[name], values[name]))
            except (TypeError, ValueError, InvalidOperation):
                errors[name] = f"Invalid value for {name}."
        return errors

    def _coerce(self, prop: ColumnProperty, value: Any) -> Any:
        try:
            python_type = prop.columns[0].type.python_type
        except NotImplementedError:
            return value
        if isinstance(value, list):
            value = value[-1] if value else None
        if not isinstance(value, str) or python_type is str:
            return value
        if value == "":
            return None
        if python_type is bool:
            return value.lower() in _TRUE_VALUES
        if python_type is datetime.datetime:
            return datetime.datetime.fromisoformat(value)
        if python_type is datetime.date:
            return datetime.date.fromisoformat(value)
        if python_type in (int, float, Decimal):
            return python_type(value)
        return value

    async def save(self, instance: ModelType) -> ModelType:
        self.db_session.add(instance)
        await self.db_session.flush()
        return instance

    # ==============================================================================
    # 2. 关联 (Relations)
    # ==============================================================================

    async def get_related(self, instance: ModelType, relation: RelationInfo) -> Any:
        # lazy load 只能在 greenlet 中执行
        related = await self.db_session.run_sync(lambda _: getattr(instance, relation.attribute))
        if relation.multiple:
            return list(related or [])
        return related

    async def related_ids(self, instance: ModelType, relation: RelationInfo) -> List[str]:
        related = await self.get_related(instance, relation)
        if relation.multiple:
            return [str(primary_key_of(item)) for item in related]
        return [] if related is None else [str(primary_key_of(related))]

    async def find_related(self, relation: RelationInfo, pk_value: Any) -> Optional[Any]:
        return await BaseDao(relation.target, self.db_session).get_by_pk(pk_value)

    def choices_query(self, relation: RelationInfo) -> Select:
        return BaseDao(relation.target, self.db_session).ordered_query()

    async def index_by_pk(self, query: Select, label_attribute: str) -> Dict[str, str]:
        executed = await self.db_session.execute(query)
        return {
            str(primary_key_of(record)): str(getattr(record, label_attribute))
            for record in executed.scalars().all()
        }

    async def link(self, instance: ModelType, relation: RelationInfo, target: Any) -> None:
        def _link(_session):
            if relation.multiple:
                collection = getattr(instance, relation.attribute)
                if target not in collection:
                    collection.append(target)
            else:
                setattr(instance, relation.attribute, target)

        self.db_session.add(instance)
        await self.db_session.run_sync(_link)
        await self.db_session.flush()
        logger.debug("Linked %s.%s -> %s", self.short_name, relation.attribute, primary_key_of(target))

    async def unlink(
        self, instance: ModelType, relation: RelationInfo, target: Any, delete: bool = False
    ) -> None:
        """
        Removes the association between instance and target.
        Junction rows are always deleted; with `delete` a directly referencing target record is deleted too.
        """
        def _unlink(session):
            if relation.multiple:
                collection = getattr(instance, relation.attribute)
                if target in collection:
                    collection.remove(target)
            else:
                setattr(instance, relation.attribute, None)
            if delete and not relation.via_junction:
                session.delete(target)

        await self.db_session.run_sync(_unlink)
        await self.db_session.flush()
        logger.debug("Unlinked %s.%s -> %s", self.short_name, relation.attribute, primary_key_of(target))

    # ==============================================================================
    # 3. 事务 (Transactions)
    # ==============================================================================

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        All-or-nothing scope. Uses a SAVEPOINT when the session already runs a transaction
        (e.g. the request scope opened by get_db), a top-level transaction otherwise.
        """
        if self.db_session.in_transaction():
            held = self._hold_pending_changes()
            async with self.db_session.begin_nested():
                for instance, values in held:
                    for key, value in values.items():
                        setattr(instance, key, value)
                yield self.db_session
        else:
            async with self.db_session.begin():
                yield self.db_session

    def _hold_pending_changes(self) -> List[Tuple[Any, Dict[str, Any]]]:
        """
        begin_nested() flushes before emitting SAVEPOINT. Changed column values are taken
        off the dirty instances here and re-applied inside the savepoint, so a rollback
        to the savepoint undoes them too.
        """
        held = []
        for instance in list(self.db_session.dirty):
            state = inspect(instance)
            changed = {
                prop.key: getattr(instance, prop.key)
                for prop in state.mapper.column_attrs
                if state.attrs[prop.key].history.has_changes()
            }
            if changed:
                # expire 丢弃未提交的修改, 不发出 SQL
                self.db_session.expire(instance, list(changed))
                held.append((instance, changed))
        return held
