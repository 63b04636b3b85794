import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from core.config_loader import settings
from core.errors import PortalError

from auth.routes.auth_router import auth_router
from user.router import user_router
from thanks.router import thanks_router, stats_router, thanks_admin_router
from approval.router import approval_router
from ranking.router import ranking_router
from hierarchy.router import hierarchy_router
import models_bootstrap

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

openapi_tags = [
    {
        "name": "Thanks",
        "description": "Send thanks and move them through approval",
    },
    {
        "name": "Organization",
        "description": "Manager assignment, bulk updates, imports and deletion",
    },
    {
        "name": "Health Checks",
        "description": "Application health checks",
    }
]

app = FastAPI(title="Thanks Portal", openapi_tags=openapi_tags)

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            str(origin).strip("/") for origin in settings.cors_origins
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Domain errors carry their kind and the offending ids
@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    body = {**exc.context, "code": exc.code, "detail": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(body), headers=exc.headers)

app.include_router(auth_router, prefix="/api")
app.include_router(user_router, prefix="/api")
app.include_router(hierarchy_router, prefix="/api")
app.include_router(thanks_router, prefix="/api")
app.include_router(stats_router, prefix="/api")
app.include_router(thanks_admin_router, prefix="/api")
app.include_router(approval_router, prefix="/api")
app.include_router(ranking_router, prefix="/api")



@app.get("/health", tags=['Health Checks'])
def read_root():
    return {"health": "true"}
