# adminkit/forms/templates.py

from jinja2 import DictLoader, Environment, StrictUndefined, select_autoescape

# Bootstrap 3 markup, the admin panel's default theme
TEMPLATES = {
    "form.html": (
        '<form id="{{ id }}" action="{{ action }}" method="{{ method }}">'
        "{{ body }}"
        "</form>"
    ),
    "field.html": (
        '<div class="form-group field-{{ input_id }}{% if error %} has-error{% endif %}">'
        '{% if label %}<label class="control-label" for="{{ input_id }}">{{ label }}</label>{% endif %}'
        "{{ input }}"
        '{% if hint %}<div class="hint-block">{{ hint }}</div>{% endif %}'
        '<div class="help-block">{{ error or "" }}</div>'
        "</div>"
    ),
    "widgets/input.html": "<input{{ attrs|xmlattr }}>",
    "widgets/checkbox.html": (
        '<input type="hidden" name="{{ name }}" value="0">'
        "<input{{ attrs|xmlattr }}>"
    ),
    "widgets/textarea.html": "<textarea{{ attrs|xmlattr }}>{{ value }}</textarea>",
    "widgets/select.html": (
        '{% if multiple %}<input type="hidden" name="{{ unselect_name }}" value="">{% endif %}'
        "<select{{ attrs|xmlattr }}>"
        '{% if not multiple %}<option value="">{{ prompt }}</option>{% endif %}'
        "{% for value, text in choices.items() %}"
        '<option value="{{ value }}"{% if value in selected %} selected{% endif %}>{{ text }}</option>'
        "{% endfor %}"
        "</select>"
    ),
    "widgets/button.html": (
        "{% if tag == 'input' %}<input{{ attrs|xmlattr }}>"
        "{% else %}<{{ tag }}{{ attrs|xmlattr }}>{{ label }}</{{ tag }}>{% endif %}"
    ),
}

environment = Environment(
    loader=DictLoader(TEMPLATES),
    autoescape=select_autoescape(default=True, default_for_string=True),
    undefined=StrictUndefined,
)


def render_template(template_name: str, /, **context) -> str:
    return environment.get_template(template_name).render(**context)
