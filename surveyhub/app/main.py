# app/main.py
import os
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from surveyhub.app.core.config import settings
from surveyhub.app.core.errors import SurveyError, handle_request_validation_error, handle_survey_error
from surveyhub.db.session import engine
from surveyhub.db import Base
from surveyhub.app.routers import surveys

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)

# cover images written by the image store are served from here
os.makedirs(settings.PUBLIC_DIR, exist_ok=True)
app.mount("/public", StaticFiles(directory=settings.PUBLIC_DIR), name="public")

app.add_exception_handler(SurveyError, handle_survey_error)
app.add_exception_handler(RequestValidationError, handle_request_validation_error)
app.include_router(surveys.router)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)


@app.get("/health")
def health():
    return {"status": "ok"}
