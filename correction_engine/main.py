from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from correction_engine.api.v1 import corrections, patterns
from correction_engine.core.config import PatternStoreBackend, get_settings
from correction_engine.core.errors import BaseApplicationError
from correction_engine.core.logging import LogEvent, configure_logging, get_logger
from correction_engine.core.middleware import application_error_handler, error_handler
from correction_engine.db import dispose_engine, init_db
from correction_engine.services import ServiceFactory

settings = get_settings()

# 配置结构化日志
configure_logging(settings.log_level, settings.json_logs)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info(
        LogEvent.APP_STARTED,
        version=settings.version,
        store=settings.pattern_store_backend.value,
        api_prefix=settings.api_v1_prefix,
        generation_configured=settings.has_generation_credentials,
    )

    try:
        if settings.pattern_store_backend == PatternStoreBackend.SQL:
            await init_db()
        yield
    finally:
        await ServiceFactory.shutdown()
        await dispose_engine()
        logger.info(LogEvent.APP_STOPPED)


app = FastAPI(
    title=settings.project_name,
    version=settings.version,
    openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# 中间件配置 - 安全的 CORS 设置
origins = settings.get_cors_origins()
# 浏览器规范：当 allow_origins 为 "*" 时，不能允许 credentials
allow_credentials = settings.cors_allow_credentials and origins != ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 错误处理
app.add_exception_handler(BaseApplicationError, application_error_handler)
app.add_exception_handler(Exception, error_handler)

# API routers
app.include_router(patterns.router)
app.include_router(corrections.router)

# Prometheus监控
Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """根路径"""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs",
        "api_prefix": settings.api_v1_prefix,
        "store": settings.pattern_store_backend.value,
    }


@app.get(f"{settings.api_v1_prefix}")
async def api_root():
    """API根路径"""
    return {
        "version": "v1",
        "endpoints": {
            "patterns": f"{settings.api_v1_prefix}/patterns",
            "corrections": f"{settings.api_v1_prefix}/corrections",
        }
    }
