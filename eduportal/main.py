import logging

from fastapi import FastAPI

from eduportal.core.logging_middleware import LoggingMiddleware
from eduportal.db.init_db import init_db
from eduportal.routers.grading import router as grading_router

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="EduPortal")

# Middleware
app.add_middleware(LoggingMiddleware)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


app.include_router(grading_router, prefix="/faculty", tags=["grading"])
