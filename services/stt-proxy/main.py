"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from ddtrace import patch_all
from fastapi import FastAPI
from sqlmodel import SQLModel

from dependencies import engine, http_client
from routes import health_router, transcription_router

patch_all()


@asynccontextmanager
async def lifespan(app: FastAPI):
    SQLModel.metadata.create_all(engine)
    yield
    http_client.close()


app = FastAPI(title="Speech-to-Text Proxy", lifespan=lifespan)
app.include_router(health_router)
app.include_router(transcription_router)
