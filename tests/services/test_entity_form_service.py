# tests/services/test_entity_form_service.py

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adminkit.core.context import AppContext
from adminkit.entities import Entity, AdminRegistry
from adminkit.services.entity_form_service import EntityFormService
from adminkit.services.exceptions import NotFoundError, RelatedRecordNotFoundError
from adminkit.forms import ButtonNode
from tests.admin import PostEntity, linked_tag_ids
from tests.models import Post

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(db_session: AsyncSession, registry: AdminRegistry) -> EntityFormService:
    return EntityFormService(AppContext(db=db_session, registry=registry))


async def test_render_create_form(service: EntityFormService, seeded):
    html = await service.render("post", action="/admin/manage/post/create")

    assert '<form id="admin-form" action="/admin/manage/post/create" method="post">' in html
    assert html.count('<div class="col-md-8">') == 1
    assert 'name="Post[title]"' in html
    assert 'name="Post[tags][]"' in html
    # 候选标签按主键排序, 新建时没有选中项
    assert '<option value="1">python</option><option value="2">sqlalchemy</option>' in html
    assert 'name="Post[id]"' not in html


async def test_render_update_form_shows_current_values(service: EntityFormService, seeded):
    html = await service.render("post", pk="1")

    assert 'value="Hello"' in html
    assert '<option value="1" selected>Ann</option>' in html
    assert '<option value="3" selected>fastapi</option>' in html


async def test_unknown_slug_and_record(service: EntityFormService, seeded):
    with pytest.raises(NotFoundError, match="Entity 'page' not found"):
        await service.render("page")
    with pytest.raises(NotFoundError, match="Post '42' not found"):
        await service.render("post", pk="42")
    with pytest.raises(NotFoundError):
        await service.render("post", pk="not-a-number")


async def test_submit_create_fires_success_event(service: EntityFormService, registry, seeded, db_session, mocker):
    # 1. 设置
    on_success, on_fail = mocker.Mock(), mocker.Mock()
    entity = registry.get("post")
    entity.on(Entity.EVENT_CREATE_SUCCESS, on_success)
    entity.on(Entity.EVENT_CREATE_FAIL, on_fail)

    # 2. 执行
    form, saved = await service.submit("post", {"Post": {"title": "Second", "tags": ["4"], "author": "2"}, "save": "Save"})

    # 3. 断言
    assert saved is True
    on_success.assert_called_once_with(form.model)
    on_fail.assert_not_called()
    assert await linked_tag_ids(db_session, form.model.id) == {4}


async def test_submit_update_with_invalid_value_fires_fail_event(service: EntityFormService, registry, seeded, mocker):
    on_fail = mocker.Mock()
    registry.get("post").on(Entity.EVENT_UPDATE_FAIL, on_fail)

    form, saved = await service.submit("post", {"Post": {"views": "lots"}}, pk="1")

    assert saved is False
    assert form.errors == {"views": "Invalid value for views."}
    on_fail.assert_called_once_with(form.model)


class PublishablePostEntity(PostEntity):
    def form(self):
        config = super().form()
        config.fields.items.append(ButtonNode(id="publish", label="Publish", action="publish"))
        return config


async def test_submit_runs_button_actions_before_saving(db_session, seeded):
    registry = AdminRegistry()
    registry.register(PublishablePostEntity)
    service = EntityFormService(AppContext(db=db_session, registry=registry))

    form, saved = await service.submit("post", {"Post": {"title": "Live"}, "publish": "Publish"}, pk="1")

    assert saved is True
    assert 'name="publish"' in form.render_form(form.fields)
    executed = await db_session.execute(select(Post.published, Post.title).where(Post.id == 1))
    assert executed.one() == (True, "Live")


async def test_submit_failure_fires_fail_event_and_reraises(service: EntityFormService, registry, seeded, db_session, mocker):
    on_fail = mocker.Mock()
    registry.get("post").on(Entity.EVENT_UPDATE_FAIL, on_fail)

    with pytest.raises(RelatedRecordNotFoundError):
        await service.submit("post", {"Post": {"tags": ["999"]}}, pk="1")

    on_fail.assert_called_once()
    assert await linked_tag_ids(db_session) == {1, 2, 3}


async def test_delete_fires_events(service: EntityFormService, registry, seeded, db_session, mocker):
    on_delete = mocker.AsyncMock()
    registry.get("post").on(Entity.EVENT_DELETE_SUCCESS, on_delete)

    await service.delete("post", "1")

    on_delete.assert_awaited_once()
    assert (await db_session.execute(select(Post))).scalars().all() == []
    assert await linked_tag_ids(db_session) == set()
