from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import settings, configure_logging
from core import api as action_log_api
from affiliates import api as affiliates_api
from documents import api as documents_api
from payments import api as payments_api

configure_logging(settings.log_level)

app = FastAPI(
    title="Translation Portal API",
    description="Document translation orders, authenticator review, payments and the affiliate program",
    version="1.0.0",
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents_api.router)
app.include_router(documents_api.authenticator_router)
app.include_router(documents_api.admin_router)
app.include_router(payments_api.router)
app.include_router(payments_api.admin_router)
app.include_router(affiliates_api.router)
app.include_router(affiliates_api.admin_router)
app.include_router(action_log_api.router)


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "translation-portal", "env": settings.env}


handler = Mangum(app)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
