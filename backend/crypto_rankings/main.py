from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crypto_rankings.api.routes import router
from crypto_rankings.config.settings import settings
from crypto_rankings.logging_setup import setup_logging


def create_app() -> FastAPI:
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Crypto Rankings API",
        description="Serves the latest LunarCrush ranking snapshot.",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Authorization", "Accept"],
        max_age=12 * 60 * 60,
    )
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
