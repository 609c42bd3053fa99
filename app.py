"""Main FastAPI application entry point for the LeafGuard auth service."""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from config.database import database
from api.routers.auth import router as auth_router
from services.account_service import AccountService
from services.email_service import create_email_service
from services.google_oauth_service import create_google_oauth_client
from services.user_directory import MongoUserDirectory


def build_account_service() -> AccountService:
    """Wire the auth flows to MongoDB, Google and SMTP using application settings."""
    return AccountService(
        directory=MongoUserDirectory(database.get_users_collection()),
        google_client=create_google_oauth_client(),
        email_service=create_email_service(),
        origins=settings.client_origins(),
        expose_reset_token=settings.EXPOSE_RESET_TOKEN
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    await database.connect()
    print(f"Connected to MongoDB: {settings.DATABASE_NAME}")
    app.state.account_service = build_account_service()
    await app.state.account_service.directory.create_indexes()
    print("User indexes created")
    yield
    await database.disconnect()
    print("Disconnected from MongoDB")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Account authentication: signup, login, Google login and password reset",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)


@app.get("/")
async def root():
    return "Server is working!"


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    db_healthy = await database.health_check()
    return {
        "status": "healthy" if db_healthy else "unhealthy",
        "database": "connected" if db_healthy else "disconnected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG
    )
