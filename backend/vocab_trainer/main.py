import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vocab_trainer.api import analysis, generation, health, history, vlm
from vocab_trainer.core.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.app_name,
    description="AI-generated vocabulary quizzes with practice history",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.client_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(vlm.router)
app.include_router(generation.router)
app.include_router(analysis.router)
app.include_router(history.router)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "docs": "/docs",
        "health": "/health",
    }
