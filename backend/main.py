"""
File Blog System - 主入口
基于文件存储的博客内容管理后端

- 文章、分类、标签、用户全部以 JSON / Markdown 文件保存
- JWT 认证与 Admin / Author 角色控制
- 请求日志、安全响应头中间件
- 标准化错误处理
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from core.config import get_settings
from core.content import init_content, POSTS
from core.bootstrap import init_admin_user
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from core.errors import ErrorCode, register_exception_handlers

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# 减少第三方库的日志输出
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("watchfiles.main").setLevel(logging.WARNING)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # ==================== 启动阶段 ====================
    current_settings = get_settings()
    logger.info(f"🚀 正在启动 {current_settings.app_name} v{current_settings.app_version}...")

    # 1. 初始化内容目录
    content = init_content()

    # 2. 初始化默认管理员账户（没有任何用户时）
    try:
        admin_result = await init_admin_user(content)
        if admin_result.get("created"):
            logger.warning(f"⚠️ 已创建默认管理员: {admin_result['username']}")
            logger.warning("   请尽快登录并修改密码！")
    except Exception as e:
        logger.error(f"❌ 初始化管理员失败: {e}")

    logger.info(f"🎉 {current_settings.app_name} 启动完成! 访问: http://localhost:8000")

    yield

    # ==================== 关闭阶段 ====================
    logger.info("👋 系统已关闭")


# ==================== 创建应用 ====================
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="基于文件存储的博客内容管理系统",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


# ==================== 中间件配置（顺序重要，后添加的先执行） ====================

# 1. CORS 跨域配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制为具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

# 2. 安全响应头中间件
app.add_middleware(SecurityHeadersMiddleware)

# 3. 请求日志中间件
app.add_middleware(
    RequestLoggingMiddleware,
    skip_paths=["/health", "/api/docs", "/api/redoc", "/api/openapi.json", "/content/"],
    slow_request_threshold=1.0  # 超过1秒的请求记录为慢请求
)


# ==================== 异常处理器 ====================
register_exception_handlers(app)

# 全局未捕获异常处理
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常捕获"""
    logger.error(f"未处理异常: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "code": ErrorCode.INTERNAL_ERROR,
            "message": "服务器内部错误，请稍后重试",
            "data": None
        }
    )


# ==================== 注册路由 ====================
from routers import auth, user, site, health
from modules.blog.blog_router import router as blog_router

app.include_router(auth.router)
app.include_router(user.router)
app.include_router(site.router)
app.include_router(blog_router)
app.include_router(health.router)


# ==================== 静态文件配置 ====================
# 只公开文章目录（文章附带的图片等资源），用户资料不对外暴露
app.mount(
    f"/content/{POSTS}",
    StaticFiles(directory=settings.content_root / POSTS, check_dir=False),
    name="content_posts"
)


# ==================== 根路由 ====================
@app.get("/", include_in_schema=False)
async def root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/api/docs"
    }


@app.get("/api", include_in_schema=False)
async def api_info():
    """API 信息"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/api/docs",
        "health": "/health",
        "endpoints": [
            "/api/auth",
            "/api/users",
            "/api/site",
            "/api/posts",
            "/api/categories",
            "/api/tags"
        ]
    }


# ==================== 启动入口 ====================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
