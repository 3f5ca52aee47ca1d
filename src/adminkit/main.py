# adminkit/main.py

import logging
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from adminkit.core.config import settings
from adminkit.api.router import router
from adminkit.entities.registry import AdminRegistry, registry as default_registry
from adminkit.services.exceptions import ServiceException, NotFoundError, FormConfigurationError

logger = logging.getLogger(__name__)

def create_app(registry: Optional[AdminRegistry] = None) -> FastAPI:
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(title="adminkit")
    app.state.admin_registry = registry or default_registry
    app.include_router(router)

    @app.exception_handler(NotFoundError)
    async def not_found_exception_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"status": status.HTTP_404_NOT_FOUND, "msg": exc.message, "data": None},
        )

    @app.exception_handler(FormConfigurationError)
    async def configuration_exception_handler(request: Request, exc: FormConfigurationError):
        # 开发者配置错误, 不应出现在生产环境
        logger.error("Admin configuration error: %s", exc.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": status.HTTP_500_INTERNAL_SERVER_ERROR, "msg": exc.message, "data": None},
        )

    @app.exception_handler(ServiceException)
    async def service_exception_handler(request: Request, exc: ServiceException):
        # 处理所有来自服务层的、可预期的业务逻辑错误
        logger.warning("Service error: %s", exc.message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": status.HTTP_400_BAD_REQUEST, "msg": exc.message, "data": None},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # 重写 FastAPI 默认的 HTTPException 处理器，以匹配我们的响应格式
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": exc.status_code, "msg": exc.detail, "data": None},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": status.HTTP_500_INTERNAL_SERVER_ERROR, "msg": "Internal Server Error", "data": None},
        )

    return app

app = create_app()
