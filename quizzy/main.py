import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quizzy import config
from quizzy.db.database import init_db
from quizzy.errors import register_error_handlers
from quizzy.routes import auth, blogs
from quizzy.security import BlogHeadersMiddleware, RequestLogMiddleware, get_axiom_client

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield
    await get_axiom_client().aclose()


app = FastAPI(
    title="Quizzy Blog API",
    description="Articles for Quizzy learners",
    lifespan=lifespan,
)

app.state.limiter = auth.limiter
register_error_handlers(app)

# Middleware
app.add_middleware(BlogHeadersMiddleware, enable_hsts=config.IS_PRODUCTION)
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routes
app.include_router(auth.router)
app.include_router(blogs.router)


@app.get("/api/health", tags=["health"])
async def health():
    return {"status": "ok"}
