from typing import Type, TypeVar, Generic, Any, Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import inspect, and_, select
from sqlalchemy.sql.selectable import Select

ModelType = TypeVar("ModelType", bound=Any)

class BaseDao(Generic[ModelType]):
    def __init__(self, model_class: Type[ModelType], db_session: AsyncSession):
        self.model: Type[ModelType] = model_class
        self.db_session: AsyncSession = db_session
        primary_keys = inspect(model_class).primary_key
        if not primary_keys:
            raise ValueError(f"Model {model_class.__name__} does not have a primary key.")
        self.pk_column = primary_keys[0]
        self.pk: str = primary_keys[0].key

    # ==============================================================================
    # 1. 实体/对象方法 (Object Methods)
    # ==============================================================================

    async def get_by_pk(
        self,
        pk_value: Any,
        options: Optional[List[Any]] = None
    ) -> Optional[ModelType]:
        pk_value = self.coerce_pk(pk_value)
        if pk_value is None:
            return None
        stmt = self._quick_query(where={self.pk: pk_value}, options=options)
        executed = await self.db_session.execute(stmt)
        return executed.scalars().first()

    async def delete(self, instance: ModelType, auto_flush: bool = True) -> None:
        await self.db_session.delete(instance)
        if auto_flush:
            await self.db_session.flush()

    def coerce_pk(self, pk_value: Any) -> Any:
        """
        表单和 URL 提交的主键都是字符串, 按主键列的 python 类型转换.
        Returns None for empty or unconvertible values.
        """
        if pk_value is None or pk_value == "":
            return None
        try:
            python_type = self.pk_column.type.python_type
        except NotImplementedError:
            return pk_value
        if isinstance(pk_value, python_type):
            return pk_value
        try:
            return python_type(pk_value)
        except (TypeError, ValueError):
            return None

    def ordered_query(self) -> Select:
        """All records, in primary key order."""
        return self._quick_query(order=list(inspect(self.model).primary_key))

    # ==============================================================================
    # 2. 查询构建辅助方法 (Query Building Helpers)
    # ==============================================================================

    def _quick_query(
        self,
        stmt: Optional[Select] = None,
        where: Optional[dict | list] = None,
        options: Optional[List[Any]] = None,
        order: Optional[list] = None,
    ) -> Select:
        if stmt is None:
            stmt = select(self.model)

        if where is not None:
            stmt = self._where(stmt, where)

        if options is not None:
            stmt = stmt.options(*options)

        if order is not None:
            stmt = stmt.order_by(*order)

        return stmt

    def _where(self, stmt: Select, where: dict | list) -> Select:
        if isinstance(where, dict):
            conditions = [getattr(self.model, field) == value for field, value in where.items()]
            if len(conditions) > 1:
                return stmt.filter(and_(*conditions))
            return stmt.filter(*conditions)
        return stmt.filter(*where)
