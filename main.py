"""
FastAPI应用主入口
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from api.routes import volume as volume_routes
from api.middleware import RequestIDMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging
from infrastructure.external.storage import (
    StorageError,
    get_volume_config,
    init_volume,
)


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    app.state.volume = None

    # 初始化卷；配置缺失时仍启动，以便通过 /volume/buckets 完成设置
    try:
        volume = await init_volume()
        app.state.volume = volume
        config = get_volume_config()
        logger.info(
            "volume_initialized",
            store_type=config.type,
            bucket=config.bucket,
            cdn=bool(config.cf_distribution_id),
        )
        if await volume.health_check():
            logger.info("volume_health_check_passed")
    except StorageError as exc:
        logger.error("volume_init_failed", error=str(exc))

    yield

    app.state.volume = None
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="对象存储卷：将 S3 桶作为资源文件系统挂载，并在变更后失效 CDN 缓存",
)

# 添加中间件（注意顺序：从下往上执行）
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册全局异常处理器
register_exception_handlers(app)

# 注册路由
app.include_router(volume_routes.router, prefix=settings.API_PREFIX)


@app.get("/", tags=["Root"])
async def root():
    """API根路径"""
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs",
        }
    )


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """健康检查端点"""
    volume = getattr(request.app.state, "volume", None)
    volume_ok = bool(volume is not None and await volume.health_check())
    return success_response(
        data={"status": "healthy", "volume": "ok" if volume_ok else "unavailable"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
