# hotel/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from hotel.config import settings
from hotel.database import engine, Base
from hotel.handlers import register_exception_handlers
from hotel import models  # noqa: F401  registers the tables on Base.metadata

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create the database tables
if settings.STORAGE_BACKEND == "sql":
    Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Hotel Management System",
    description="Rooms, reservations, payments and the people behind them",
    version="1.0.0"
)

# CORS Middleware (Adjust as needed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Adjust for specific domains in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Translate internal fault categories into HTTP responses
register_exception_handlers(app)

logger.info("Hotel backend started with the %s storage backend", settings.STORAGE_BACKEND)


@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the Hotel Management System"}
