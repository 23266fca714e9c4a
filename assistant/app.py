from __future__ import annotations

from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, cors_origins
from .routes import router


def create_app(settings: Optional[Settings] = None,
               generate: Optional[Callable] = None,
               collaborator_factory: Optional[Callable] = None) -> FastAPI:
  app = FastAPI(title="Voice Command Assistant")
  app.state.settings = settings or Settings.from_env()
  app.state.generate = generate
  app.state.collaborator_factory = collaborator_factory
  if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
  app.include_router(router)
  return app
