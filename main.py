from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from core.config_loader import settings
from core.logging_config import configure_logging

from user.router import user_router
from workplace.router import workplace_router
from shift.router import shift_router
from exchange.router import exchange_router
from report.router import report_router, stats_router
import models_bootstrap

configure_logging()

openapi_tags = [
    {
        "name": "Shifts",
        "description": "Shift scheduling without double-booking",
    },
    {
        "name": "Exchange requests",
        "description": "Shift swaps and pickups between workers",
    },
    {
        "name": "Reports",
        "description": "Monthly worked-hours snapshots",
    },
    {
        "name": "Health Checks",
        "description": "Application health checks",
    }
]

app = FastAPI(title="Shiftdesk", openapi_tags=openapi_tags)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            str(origin).strip("/") for origin in settings.BACKEND_CORS_ORIGINS
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(user_router, prefix="/api")
app.include_router(workplace_router, prefix="/api")
app.include_router(shift_router, prefix="/api")
app.include_router(exchange_router, prefix="/api")
app.include_router(report_router, prefix="/api")
app.include_router(stats_router, prefix="/api")


@app.get("/health", tags=['Health Checks'])
def read_root():
    return {"health": "true"}
