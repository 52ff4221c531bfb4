from fastapi import FastAPI

from gstdesk.api.routes import api_router
from gstdesk.api.v1 import v1_router
from gstdesk.config.settings import settings
from gstdesk.core.logging_config import setup_logging

setup_logging(settings.LOG_LEVEL)

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)

app.include_router(api_router)
app.include_router(v1_router)
