# tests/utils/test_form_data.py

import pytest

from adminkit.utils.form_data import split_key, parse_form_body


@pytest.mark.parametrize("key, expected", [
    ("title", ["title"]),
    ("Post[title]", ["Post", "title"]),
    ("Post[tags][]", ["Post", "tags", ""]),
    ("Post[meta][seo][title]", ["Post", "meta", "seo", "title"]),
    ("[title]", ["[title]"]),
    ("Post[title", ["Post[title"]),
    ("Post[title]x", ["Post[title]x"]),
])
def test_split_key(key, expected):
    assert split_key(key) == expected


def test_parse_scoped_body_with_buttons():
    body = parse_form_body([
        ("Post[title]", "Hello"),
        ("Post[author]", "2"),
        ("publish", "Publish"),
    ])

    assert body == {"Post": {"title": "Hello", "author": "2"}, "publish": "Publish"}


def test_trailing_brackets_collect_a_list():
    body = parse_form_body([
        ("Post[tags]", ""),
        ("Post[tags][]", "2"),
        ("Post[tags][]", "4"),
    ])

    # 多选前面的隐藏输入被列表覆盖
    assert body == {"Post": {"tags": ["2", "4"]}}


def test_unselect_value_survives_when_nothing_is_selected():
    body = parse_form_body([("Post[tags]", ""), ("Post[title]", "Hello")])

    assert body == {"Post": {"tags": "", "title": "Hello"}}


def test_last_scalar_wins():
    body = parse_form_body([("Post[published]", "0"), ("Post[published]", "1")])

    assert body == {"Post": {"published": "1"}}


def test_unscoped_list():
    assert parse_form_body([("ids[]", "1"), ("ids[]", "2")]) == {"ids": ["1", "2"]}
