# apiprobe/main.py
import os
from typing import List, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .router import router

load_dotenv()


def cors_origins(raw: Optional[str] = None) -> List[str]:
    """Origins allowed to call the API from a browser, from APIPROBE_CORS_ORIGINS (comma separated)."""
    if raw is None:
        raw = os.getenv("APIPROBE_CORS_ORIGINS", "")
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app() -> FastAPI:
    app = FastAPI(
        title="API Probe",
        description="Start API endpoint security scans in the background and fetch per-endpoint risk scores.",
        version="0.1.0",
    )
    origins = cors_origins()
    # no browser front end ships with the service; cross-origin access is opt-in
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("apiprobe.main:app", host="127.0.0.1", port=8000)
