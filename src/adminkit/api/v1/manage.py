# adminkit/api/v1/manage.py

from typing import Any, Dict, List
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from adminkit.core.context import AppContext
from adminkit.api.dependencies.context import ContextDep
from adminkit.api.dependencies.body import FormBodyDep
from adminkit.dao.record_dao import primary_key_of
from adminkit.entities.entity import Entity
from adminkit.schemas.common import JsonResponse, MsgResponse
from adminkit.schemas.entity_schemas import EntityRead, EntityAttributeRead
from adminkit.services.entity_form_service import EntityFormService
from adminkit.services.exceptions import NotFoundError

router = APIRouter()

def _entity_read(entity: Entity) -> EntityRead:
    label, plural_label = entity.labels()
    return EntityRead(
        id=entity.id,
        slug=entity.slug(),
        label=label,
        plural_label=plural_label,
        attributes=[
            EntityAttributeRead(
                attribute=a.attribute,
                format=a.format,
                label=a.label or a.attribute,
                visible=a.visible,
                editable=a.editable,
            )
            for a in entity.get_attributes()
        ],
    )

@router.get("", response_model=JsonResponse[List[EntityRead]], summary="List Managed Entities")
async def list_entities(context: AppContext = ContextDep):
    return JsonResponse(data=[_entity_read(entity) for entity in context.registry.all()])

@router.get("/{slug}/create", response_class=HTMLResponse, summary="Render Create Form")
async def create_form(slug: str, request: Request, context: AppContext = ContextDep):
    try:
        service = EntityFormService(context)
        return HTMLResponse(await service.render(slug, action=request.url.path))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/{slug}/create", response_class=HTMLResponse, summary="Submit Create Form")
async def create(
    slug: str,
    request: Request,
    data: Dict[str, Any] = FormBodyDep,
    context: AppContext = ContextDep
):
    try:
        service = EntityFormService(context)
        form, saved = await service.submit(slug, data, action=request.url.path)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not saved:
        return HTMLResponse(await form.render(), status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)
    url = request.url_for("update_form", slug=slug, pk=str(primary_key_of(form.model)))
    return RedirectResponse(url=str(url), status_code=status.HTTP_303_SEE_OTHER)

@router.get("/{slug}/{pk}/update", response_class=HTMLResponse, summary="Render Update Form")
async def update_form(slug: str, pk: str, request: Request, context: AppContext = ContextDep):
    try:
        service = EntityFormService(context)
        return HTMLResponse(await service.render(slug, pk=pk, action=request.url.path))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/{slug}/{pk}/update", response_class=HTMLResponse, summary="Submit Update Form")
async def update(
    slug: str,
    pk: str,
    request: Request,
    data: Dict[str, Any] = FormBodyDep,
    context: AppContext = ContextDep
):
    try:
        service = EntityFormService(context)
        form, saved = await service.submit(slug, data, pk=pk, action=request.url.path)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not saved:
        return HTMLResponse(await form.render(), status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)
    return RedirectResponse(url=str(request.url), status_code=status.HTTP_303_SEE_OTHER)

@router.post("/{slug}/{pk}/delete", response_model=MsgResponse, summary="Delete Record")
async def delete(slug: str, pk: str, context: AppContext = ContextDep):
    try:
        service = EntityFormService(context)
        await service.delete(slug, pk)
        return MsgResponse(msg="Record deleted successfully.")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
