# adminkit/entities/entity.py

import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple

import inflection
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy import inspect as sa_inspect, select

from adminkit.core.config import settings
from adminkit.dao.record_dao import describe_relation
from adminkit.entities.attributes import EntityAttribute
from adminkit.forms.form import Form
from adminkit.forms.nodes import FieldNode, GroupNode, RelationSpec, LINKED_FORMAT
from adminkit.services.exceptions import FormConfigurationError

logger = logging.getLogger(__name__)


class FormConfig(BaseModel):
    """What an entity's create and update pages are built from."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    form_class: Any = Form
    render_save_button: bool = True
    fields: Any = Field(default_factory=list)


class Entity:
    """
    Binds a model class to its admin configuration: displayable attributes,
    labels, url slug and form layout.

    .. code-block:: python

        class PostEntity(Entity):
            @classmethod
            def model(cls):
                return Post

            @classmethod
            def attributes(cls):
                return [
                    "id",
                    "title",
                    "body:html",
                    {"attribute": "tags", "format": ("model", {"label_attribute": "name"})},
                ]
    """

    # Triggers after new model creation
    EVENT_CREATE_SUCCESS = "entity_create_success"
    EVENT_CREATE_FAIL = "entity_create_fail"
    # Triggers after model updated
    EVENT_UPDATE_SUCCESS = "entity_update_success"
    EVENT_UPDATE_FAIL = "entity_update_fail"
    # Triggers after model deleted
    EVENT_DELETE_SUCCESS = "entity_delete_success"
    EVENT_DELETE_FAIL = "entity_delete_fail"

    id: str | None = None

    # format token => widget name, anything else renders with `default_widget`
    format_map: Dict[str, str] = {
        "html": "textarea",
        LINKED_FORMAT: "select",
    }
    default_widget: str = "input"

    def __init__(self):
        if self.id is None:
            self.id = self.slug()
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)

    @classmethod
    def attributes(cls) -> List[Any]:
        """
        List of the model's attributes used for list, view, create and update pages.
        See EntityAttribute for the accepted declarations.
        """
        return []

    @classmethod
    def get_attributes(cls) -> List[EntityAttribute]:
        try:
            return [
                attribute if isinstance(attribute, EntityAttribute) else EntityAttribute.model_validate(attribute)
                for attribute in cls.attributes()
            ]
        except ValidationError as e:
            raise FormConfigurationError(f"Invalid attributes of {cls.__name__}: {e}") from e

    @classmethod
    def labels(cls) -> Tuple[str, str]:
        """Single and plural form of the model name, e.g. ("User", "Users")."""
        name = cls.short_name()
        return name, inflection.pluralize(name)

    @classmethod
    def short_name(cls) -> str:
        return cls.model().__name__

    @classmethod
    def slug(cls) -> str:
        """Url token of the entity, matches [\\w-]+."""
        return inflection.parameterize(cls.short_name())

    @classmethod
    def model(cls) -> type:
        """The model class, must be overridden."""
        raise FormConfigurationError("Entity must have model name")

    def form(self) -> FormConfig:
        """
        Configuration of the create and update form. The default is a single
        wrapped column with one field per editable attribute and a save button.
        """
        return FormConfig(
            form_class=Form,
            render_save_button=True,
            fields=GroupNode(wrapper=settings.ADMIN_COLUMN_WRAPPER, items=self.items()),
        )

    def items(self) -> List[FieldNode]:
        model_class = self.model()
        items = []
        for attribute in self.get_attributes():
            if not attribute.editable:
                continue
            if not hasattr(model_class, attribute.attribute):
                raise FormConfigurationError(
                    f'{model_class.__name__} has no attribute "{attribute.attribute}"'
                )
            item = {
                "attribute": attribute.attribute,
                "widget": self.format_map.get(attribute.format, self.default_widget),
                "format": attribute.format,
                "label": attribute.label,
                "visible": attribute.visible,
                "hint": attribute.options.get("hint"),
                "items": attribute.options.get("items"),
            }
            if attribute.format == LINKED_FORMAT:
                relation = describe_relation(model_class, attribute.attribute)
                item["relation"] = RelationSpec(
                    target=relation.target,
                    label_attribute=attribute.options.get("label_attribute", "id"),
                    query=select(relation.target).order_by(*sa_inspect(relation.target).primary_key),
                    multiple=relation.multiple,
                )
            items.append(FieldNode(**item))
        return items

    # ==============================================================================
    # 事件 (Events)
    # ==============================================================================

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        self._handlers[event].append(handler)

    async def trigger(self, event: str, model: Any) -> None:
        handlers = self._handlers.get(event, [])
        if handlers:
            logger.debug("Triggering %s on %s (%d handlers)", event, self.id, len(handlers))
        for handler in handlers:
            result = handler(model)
            if inspect.isawaitable(result):
                await result
