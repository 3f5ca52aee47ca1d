# adminkit/forms/widgets.py

from typing import Any, Dict, FrozenSet, Optional, Type, TYPE_CHECKING

from adminkit.forms.templates import render_template
from adminkit.services.exceptions import WidgetNotFoundError

if TYPE_CHECKING:
    from adminkit.forms.nodes import FieldNode

# --- 控件注册表 ---
_widgets_registry: Dict[str, Type["Widget"]] = {}

def register_widget(name: str):
    """一个装饰器, 把控件类注册到注册表中, 字段节点通过 `widget` 名称引用它."""
    def decorator(cls: Type["Widget"]):
        _widgets_registry[name] = cls
        return cls
    return decorator

def get_widget(name: str) -> Type["Widget"]:
    widget_class = _widgets_registry.get(name)
    if not widget_class:
        raise WidgetNotFoundError(
            f"No widget registered under '{name}'. "
            f"Available widgets: {list(_widgets_registry.keys())}"
        )
    return widget_class


class Widget:
    """
    Renders the input element of one model-bound field.

    Widgets receive everything already resolved by the form: the input name and id,
    the current value, and for choice widgets the available choices.
    """
    template_name: str = ""
    # node options consumed by the widget itself, not rendered as html attributes
    reserved_options: FrozenSet[str] = frozenset()

    def __init__(
        self,
        node: "FieldNode",
        name: str,
        input_id: str,
        value: Any = None,
        choices: Optional[Dict[str, str]] = None,
    ):
        self.node = node
        self.name = name
        self.input_id = input_id
        self.value = value
        self.choices = choices or {}

    def attributes(self) -> Dict[str, Any]:
        attrs = {"id": self.input_id, "class": "form-control", "name": self.name}
        attrs.update({k: v for k, v in self.node.options.items() if k not in self.reserved_options})
        return attrs

    def context(self) -> Dict[str, Any]:
        return {"attrs": self.attributes(), "value": "" if self.value is None else self.value}

    def render(self) -> str:
        return render_template(self.template_name, **self.context())


@register_widget("input")
class Input(Widget):
    template_name = "widgets/input.html"

    # format token => html input type
    type_map = {
        "email": "email",
        "url": "url",
        "date": "date",
        "datetime": "datetime-local",
        "time": "time",
        "integer": "number",
        "decimal": "number",
        "number": "number",
        "password": "password",
        "boolean": "checkbox",
    }

    @property
    def input_type(self) -> str:
        return self.type_map.get(self.node.format, "text")

    def attributes(self) -> Dict[str, Any]:
        attrs = super().attributes()
        attrs.setdefault("type", self.input_type)
        if attrs["type"] == "checkbox":
            attrs["class"] = self.node.options.get("class")
            attrs["value"] = "1"
            attrs["checked"] = "checked" if self.value else None
        elif attrs["type"] != "password":
            attrs.setdefault("value", self._format_value())
        return attrs

    def _format_value(self) -> str:
        if self.value is None:
            return ""
        if hasattr(self.value, "isoformat"):
            return self.value.isoformat()
        return str(self.value)

    def render(self) -> str:
        if self.input_type == "checkbox":
            return render_template("widgets/checkbox.html", name=self.name, attrs=self.attributes())
        return super().render()


@register_widget("textarea")
class Textarea(Widget):
    template_name = "widgets/textarea.html"

    def attributes(self) -> Dict[str, Any]:
        attrs = super().attributes()
        attrs.setdefault("rows", 6)
        return attrs


@register_widget("select")
class Select(Widget):
    """Dropdown of static choices or, for relation fields, of the candidate records."""
    template_name = "widgets/select.html"
    reserved_options = frozenset({"prompt", "multiple"})

    @property
    def multiple(self) -> bool:
        relation = self.node.relation
        return bool(relation.multiple) if relation else bool(self.node.options.get("multiple"))

    def attributes(self) -> Dict[str, Any]:
        attrs = super().attributes()
        if self.multiple:
            attrs["name"] = f"{self.name}[]"
            attrs["multiple"] = "multiple"
        return attrs

    def selected(self) -> set:
        value = self.value
        if value is None or value == "":
            return set()
        if isinstance(value, (list, tuple, set)):
            return {str(v) for v in value if v not in (None, "")}
        return {str(value)}

    def context(self) -> Dict[str, Any]:
        return {
            "attrs": self.attributes(),
            "multiple": self.multiple,
            "unselect_name": self.name,
            "prompt": self.node.options.get("prompt", ""),
            "choices": self.choices,
            "selected": self.selected(),
        }


class Button:
    """Submit control. Not bound to a model attribute."""
    template_name = "widgets/button.html"

    def __init__(self, label: str, attrs: Dict[str, Any], tag: str = "input"):
        self.label = label
        self.attrs = attrs
        self.tag = tag

    def render(self) -> str:
        return render_template(self.template_name, tag=self.tag, attrs=self.attrs, label=self.label)
