import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mapscript.api.routes import router
from mapscript.config import CORS_ORIGINS, LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="MapScript Compiler",
    version="0.1.0",
)

# Middleware first, routes after
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
