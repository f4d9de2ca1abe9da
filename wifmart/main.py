from fastapi import FastAPI
import uvicorn

from wifmart.core.config import settings
from wifmart.core.exceptions import register_exception_handlers
from wifmart.core.logger import setup_logging
from wifmart.routers import admin as admin_router
from wifmart.routers import hire_requests as hire_requests_router
from wifmart.routers import notifications as notifications_router
from wifmart.routers import reviews as reviews_router
from wifmart.routers import subscriptions as subscriptions_router
from wifmart.routers import users as users_router

setup_logging()

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, debug=settings.DEBUG)

register_exception_handlers(app)

app.include_router(users_router.router)
app.include_router(hire_requests_router.router)
app.include_router(reviews_router.router)
app.include_router(subscriptions_router.router)
app.include_router(notifications_router.router)
app.include_router(admin_router.router)


@app.get("/")
async def root():
    return {"message": "Welcome to Wifmart"}


def main():
    """Run the FastAPI application."""
    uvicorn.run(
        "wifmart.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
