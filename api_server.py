from __future__ import annotations  # FastAPI server exposing the interview command center

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from api.schemas import HealthResp


logger = logging.getLogger(__name__)

app = FastAPI(title="Interview Command Center API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"]
)
app.include_router(router)


@app.get("/healthz", response_model=HealthResp)
def healthz() -> HealthResp:  # Liveness probe
    return HealthResp()
