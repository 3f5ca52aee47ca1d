# adminkit/forms/form.py

import inspect
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional

import inflection
from markupsafe import Markup
from sqlalchemy.exc import SQLAlchemyError

from adminkit.core.config import settings
from adminkit.dao.record_dao import RecordDao, RelationInfo, describe_relation, primary_key_of
from adminkit.forms.actions import CallbackAction, MethodAction
from adminkit.forms.nodes import (
    BaseNode, ButtonNode, FieldNode, FieldTree, GroupNode, RelationSpec,
    ITEMS_PLACEHOLDER, parse_field_tree, iter_nodes
)
from adminkit.forms.templates import render_template
from adminkit.forms.widgets import Button, get_widget
from adminkit.services.exceptions import (
    FormConfigurationError, FormPersistenceError, RelatedRecordNotFoundError
)

logger = logging.getLogger(__name__)

SAVE_BUTTON_ID = "save"


class Form:
    """
    Renders a form with the configured fields and layout, and handles its submission.

    .. code-block:: python

        # two columns form
        form = Form(
            model=post,
            dao=RecordDao(Post, db),
            fields=[
                GroupNode(wrapper='<div class="col-md-8">{items}</div>', items=[
                    FieldNode(attribute="title"),
                    FieldNode(attribute="author", widget="select", format="model",
                              relation=RelationSpec(target=User, label_attribute="name")),
                    FieldNode(attribute="content", widget="textarea", format="html"),
                ]),
                GroupNode(wrapper='<div class="col-md-4">{items}</div>', items=[
                    FieldNode(attribute="tags", widget="select", format="model"),
                    ButtonNode(id="publish", label="Publish", action=lambda model: model.publish()),
                ]),
            ],
        )
        html = await form.render()

    Submitting:

    .. code-block:: python

        form.load(payload)
        await form.run_actions(payload)
        await form.save_model()
    """

    def __init__(
        self,
        model: Any,
        fields: Any,
        dao: RecordDao,
        form_name: Optional[str] = None,
        render_save_button: bool = True,
        id: Optional[str] = None,
        action: str = "",
        method: Optional[str] = None,
    ):
        self.model = model
        self.dao = dao
        self.fields: FieldTree = parse_field_tree(fields)
        self.form_name = form_name
        self.render_save_button = render_save_button
        self.id = id or settings.ADMIN_FORM_ID
        self.action = action
        self.method = method or settings.ADMIN_FORM_METHOD

        # relation binding state: attribute => raw submitted value(s)
        self.linked_fields: Dict[str, Any] = {}
        self.errors: Dict[str, str] = {}
        self._choices: Dict[str, Dict[str, str]] = {}
        self._relation_values: Dict[str, List[str]] = {}

        self.init()

    def init(self) -> None:
        for node in iter_nodes(self.fields):
            if isinstance(node, FieldNode):
                get_widget(node.widget)
                if node.is_linked:
                    info = self._relation(node)
                    if node.relation is None:
                        node.relation = RelationSpec(target=info.target, multiple=info.multiple)
                    elif node.relation.multiple is None:
                        node.relation.multiple = info.multiple

        if self.render_save_button:
            save_button = ButtonNode(
                id=SAVE_BUTTON_ID,
                label=settings.ADMIN_SAVE_LABEL,
                options={"class": settings.ADMIN_SAVE_BUTTON_CLASS},
            )
            if isinstance(self.fields, GroupNode):
                self.fields = self.fields.model_copy(update={"items": [*self.fields.items, save_button]})
            elif isinstance(self.fields, list):
                self.fields = [*self.fields, save_button]
            else:
                self.fields = [self.fields, save_button]

    # ==============================================================================
    # 1. 渲染 (Rendering)
    # ==============================================================================

    @property
    def scope(self) -> str:
        return self.dao.short_name if self.form_name is None else self.form_name

    def input_name(self, attribute: str) -> str:
        return f"{self.scope}[{attribute}]" if self.scope else attribute

    def input_id(self, attribute: str) -> str:
        return f"{self.scope.lower()}-{attribute}" if self.scope else attribute

    async def prepare(self) -> None:
        """Loads candidate records and current links of the relation fields."""
        for node in self.get_linked_fields():
            relation = node.relation
            if node.items is None and node.attribute not in self._choices:
                query = relation.query
                if query is None:
                    query = self.dao.choices_query(self._relation(node))
                self._choices[node.attribute] = await self.dao.index_by_pk(query, relation.label_attribute)
            self._relation_values[node.attribute] = await self.dao.related_ids(
                self.model, self._relation(node)
            )

    async def render(self) -> str:
        await self.prepare()
        body = self.render_form(self.fields)
        return render_template(
            "form.html", id=self.id, action=self.action, method=self.method, body=Markup(body)
        )

    def render_form(self, fields: Any) -> str:
        """
        Renders a field tree node or a list of nodes.

        Hidden nodes render to an empty string. Groups substitute their rendered
        children into the wrapper's `{items}` placeholder.
        """
        if isinstance(fields, (list, tuple)):
            return "".join(self.render_form(item) for item in fields if isinstance(item, BaseNode))
        if not isinstance(fields, BaseNode):
            raise FormConfigurationError('Parameter "fields" must be a node or a list of nodes')
        if not fields.visible:
            return ""

        if isinstance(fields, ButtonNode):
            return self._render_button(fields)
        if isinstance(fields, FieldNode):
            return self._render_field(fields)
        if isinstance(fields, GroupNode):
            items = self.render_form(fields.items)
            if fields.wrapper is not None:
                items = fields.wrapper.replace(ITEMS_PLACEHOLDER, items)
            return items
        raise FormConfigurationError(f"Unsupported field tree node: {type(fields).__name__}")

    def _render_button(self, node: ButtonNode) -> str:
        attrs = {"name": node.id, "type": "submit", "value": node.label}
        attrs.update(node.options)
        return Button(label=node.label, attrs=attrs).render()

    def _render_field(self, node: FieldNode) -> str:
        if not node.attribute:
            raise FormConfigurationError('Layout\'s field config must have "attribute" property')
        widget_class = get_widget(node.widget)
        widget = widget_class(
            node,
            name=self.input_name(node.attribute),
            input_id=self.input_id(node.attribute),
            value=self.value_of(node),
            choices=node.items if node.items is not None else self._choices.get(node.attribute),
        )
        return render_template(
            "field.html",
            input_id=self.input_id(node.attribute),
            label=node.label or inflection.humanize(node.attribute),
            input=Markup(widget.render()),
            hint=node.hint,
            error=self.errors.get(node.attribute),
        )

    def value_of(self, node: FieldNode) -> Any:
        if node.is_linked:
            if node.attribute in self.linked_fields:
                return self.linked_fields[node.attribute]
            return self._relation_values.get(node.attribute)
        return getattr(self.model, node.attribute, None)

    # ==============================================================================
    # 2. 按钮动作 (Actions)
    # ==============================================================================

    def get_actions(self, tree: Any = None) -> Dict[str, CallbackAction | MethodAction]:
        """Returns registered actions indexed by button id. Later buttons win on id collisions."""
        actions: Dict[str, CallbackAction | MethodAction] = {}
        for node in iter_nodes(self.fields if tree is None else tree):
            if isinstance(node, ButtonNode) and node.id and node.action is not None:
                if node.id in actions:
                    logger.warning("Duplicate action button id '%s' in %s form, the last one wins", node.id, self.scope)
                actions[node.id] = node.action
        return actions

    async def run_actions(self, data: Mapping[str, Any]) -> List[str]:
        """
        Runs the action of every button whose id is present in the submitted data.
        Returns the ids of the triggered actions.
        """
        triggered = []
        for action_id, action in self.get_actions().items():
            if data.get(action_id) is None:
                continue
            logger.info("Running action '%s' on %s", action_id, self.dao.short_name)
            result = action.resolve(self.model)()
            if inspect.isawaitable(result):
                await result
            triggered.append(action_id)
        return triggered

    # ==============================================================================
    # 3. 加载与保存 (Load & save)
    # ==============================================================================

    def _visible_nodes(self, tree: Any) -> Iterator[BaseNode]:
        if isinstance(tree, (list, tuple)):
            for item in tree:
                yield from self._visible_nodes(item)
        elif isinstance(tree, BaseNode) and tree.visible:
            yield tree
            if isinstance(tree, GroupNode):
                yield from self._visible_nodes(tree.items)

    def get_linked_fields(self) -> List[FieldNode]:
        return [
            node for node in self._visible_nodes(self.fields)
            if isinstance(node, FieldNode) and node.is_linked
        ]

    def safe_attributes(self) -> List[str]:
        return [
            node.attribute for node in self._visible_nodes(self.fields)
            if isinstance(node, FieldNode) and not node.is_linked
        ]

    def _relation(self, node: FieldNode) -> RelationInfo:
        return describe_relation(type(self.model), node.attribute)

    def load(self, data: Mapping[str, Any], form_name: Optional[str] = None) -> bool:
        """
        Loads submitted data into the form. Relation values are captured first into
        the binding state, then the model's scalar attributes are assigned.
        """
        self.load_linked(data, form_name)

        scope = self.scope if form_name is None else form_name
        if scope == "":
            values = data
        elif isinstance(data.get(scope), Mapping):
            values = data[scope]
        else:
            return False
        if not values:
            return False

        self.errors.update(self.dao.load_attributes(self.model, values, self.safe_attributes()))
        return True

    def load_linked(self, data: Mapping[str, Any], form_name: Optional[str] = None) -> None:
        scope = self.scope if form_name is None else form_name
        if scope != "" and isinstance(data.get(scope), Mapping):
            data = data[scope]
        for node in self.get_linked_fields():
            if node.attribute in data:
                self.linked_fields[node.attribute] = data[node.attribute]

    async def save_model(self) -> bool:
        """
        Synchronizes the relation fields and saves the model in a single transaction.
        Returns False without touching the database when loading reported errors.
        """
        if self.errors:
            logger.info("Not saving %s, form has errors: %s", self.dao.short_name, self.errors)
            return False
        try:
            async with self.dao.transaction():
                for node in self.get_linked_fields():
                    await self.save_linked_model(node)
                await self.dao.save(self.model)
        except SQLAlchemyError as e:
            logger.error("Saving %s failed, transaction rolled back", self.dao.short_name, exc_info=True)
            raise FormPersistenceError(f"Failed to save {self.dao.short_name}: {e}") from e
        return True

    async def save_linked_model(self, node: FieldNode) -> None:
        if node.attribute not in self.linked_fields:
            return
        relation = self._relation(node)
        submitted = self.linked_fields[node.attribute]

        if relation.multiple:
            old_models = {
                str(primary_key_of(item)): item
                for item in await self.dao.get_related(self.model, relation)
            }
            new_ids = _normalize_ids(submitted)

            to_link = [pk for pk in new_ids if pk not in old_models]
            to_unlink = [pk for pk in old_models if pk not in new_ids]

            for pk in to_link:
                await self.dao.link(self.model, relation, await self._find_related(relation, pk))
            for pk in to_unlink:
                await self.dao.unlink(self.model, relation, old_models[pk], delete=True)
            return

        value = _normalize_single(submitted)
        current = await self.dao.get_related(self.model, relation)
        if value is None and current is None:
            return
        if current is not None and value == str(primary_key_of(current)):
            return

        if value is not None:
            await self.dao.link(self.model, relation, await self._find_related(relation, value))
        else:
            await self.dao.unlink(self.model, relation, current)

    async def _find_related(self, relation: RelationInfo, pk: str) -> Any:
        target = await self.dao.find_related(relation, pk)
        if target is None:
            raise RelatedRecordNotFoundError(
                f'{relation.target.__name__} with id "{pk}" not found for {self.dao.short_name}.{relation.attribute}'
            )
        return target


def _normalize_ids(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple, set)):
        value = [value]
    ids: List[str] = []
    for item in value:
        if item in (None, ""):
            continue
        if str(item) not in ids:
            ids.append(str(item))
    return ids


def _normalize_single(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    if value in (None, ""):
        return None
    return str(value)
