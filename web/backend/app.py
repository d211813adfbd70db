import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.assistant import Elite65Assistant
from core.logger import get_logger
from core.store import InMemoryStore
from web.backend.routers import chat, workspace

logger = get_logger("api")


def create_app(store: InMemoryStore = None) -> FastAPI:
    app = FastAPI(title="Elite65 Assistant API", version="0.1")

    raw_origins = os.getenv("ELITE65_ALLOWED_ORIGINS", "*")
    allow_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    allow_credentials = "*" not in allow_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # one store and one session registry per app instance
    app.state.store = store or InMemoryStore()
    app.state.assistant = Elite65Assistant(app.state.store)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": "Elite65"}

    app.include_router(chat.router, prefix="/api/v1/chat", tags=["chat"])
    app.include_router(workspace.router, prefix="/api/v1/workspace", tags=["workspace"])

    logger.info("Elite65 API ready (origins: %s)", ", ".join(allow_origins))
    return app


app = create_app()
