"""
ASGI entry point for deployment, e.g. `uvicorn wsgi:application`
"""
from app.config import settings
from app.main import app

application = app


if __name__ == "__main__":
    import uvicorn

    # Import string so --reload can re-import the app in development
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
