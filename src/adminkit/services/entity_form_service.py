# adminkit/services/entity_form_service.py

import logging
from typing import Any, Mapping, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from adminkit.core.context import AppContext
from adminkit.dao.record_dao import RecordDao
from adminkit.entities.entity import Entity
from adminkit.forms.form import Form
from adminkit.services.exceptions import FormPersistenceError, NotFoundError

logger = logging.getLogger(__name__)


class EntityFormService:
    def __init__(self, context: AppContext):
        self.context = context
        self.db = context.db
        self.registry = context.registry

    def get_entity(self, slug: str) -> Entity:
        return self.registry.get(slug)

    def build_form(self, entity: Entity, model: Any, action: str = "") -> Form:
        """Instantiates the entity's form class for the given model."""
        config = entity.form()
        return config.form_class(
            model=model,
            fields=config.fields,
            dao=RecordDao(entity.model(), self.db),
            render_save_button=config.render_save_button,
            action=action,
        )

    async def get_record(self, entity: Entity, pk: Any) -> Any:
        model = await RecordDao(entity.model(), self.db).get_by_pk(pk)
        if model is None:
            raise NotFoundError(f"{entity.labels()[0]} '{pk}' not found.")
        return model

    async def _get_or_create(self, entity: Entity, pk: Optional[Any]) -> Any:
        if pk is None:
            return entity.model()()
        return await self.get_record(entity, pk)

    # --- Public ---
    async def render(self, slug: str, pk: Optional[Any] = None, action: str = "") -> str:
        """渲染创建 (pk 为空) 或更新表单"""
        entity = self.get_entity(slug)
        model = await self._get_or_create(entity, pk)
        return await self.build_form(entity, model, action).render()

    async def submit(
        self, slug: str, data: Mapping[str, Any], pk: Optional[Any] = None, action: str = ""
    ) -> Tuple[Form, bool]:
        """
        Loads the submitted data, runs pressed button actions and saves the model.
        Returns the form (for re-rendering with errors) and whether the model was saved.
        """
        entity = self.get_entity(slug)
        model = await self._get_or_create(entity, pk)
        if pk is None:
            success_event, fail_event = Entity.EVENT_CREATE_SUCCESS, Entity.EVENT_CREATE_FAIL
        else:
            success_event, fail_event = Entity.EVENT_UPDATE_SUCCESS, Entity.EVENT_UPDATE_FAIL

        form = self.build_form(entity, model, action)
        try:
            form.load(data)
            await form.run_actions(data)
            saved = await form.save_model()
        except Exception:
            await entity.trigger(fail_event, model)
            raise

        await entity.trigger(success_event if saved else fail_event, model)
        return form, saved

    async def delete(self, slug: str, pk: Any) -> None:
        entity = self.get_entity(slug)
        model = await self.get_record(entity, pk)
        dao = RecordDao(entity.model(), self.db)
        try:
            async with dao.transaction():
                await dao.delete(model)
        except SQLAlchemyError as e:
            logger.error("Deleting %s '%s' failed", dao.short_name, pk, exc_info=True)
            await entity.trigger(Entity.EVENT_DELETE_FAIL, model)
            raise FormPersistenceError(f"Failed to delete {dao.short_name}: {e}") from e
        await entity.trigger(Entity.EVENT_DELETE_SUCCESS, model)
