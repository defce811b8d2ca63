import uvicorn
from fastapi import FastAPI

from app.api.errors import add_exception_handlers
from app.api.routes import router
from app.config.settings import Settings
from app.logging.logger import Log
from app.processor.processor import build_pipeline
from app.storage.credentials import CredentialProvider
from app.worker.audit_runner import AuditRunner


def create_app(
    settings: Settings | None = None,
    runner: AuditRunner | None = None,
    credentials: CredentialProvider | None = None,
) -> FastAPI:
    """Build the HTTP app: settings -> credentials -> pipeline -> routes."""
    settings = settings or Settings()
    Log.configure(settings.log_level)

    if credentials is None:
        credentials = CredentialProvider.from_settings(settings)
    if runner is None:
        runner = AuditRunner(
            build_pipeline(settings, credentials),
            max_concurrent=settings.max_concurrent_audits,
        )

    app = FastAPI(title="SEO Audit Bot", version="0.1.0")
    app.state.audit_runner = runner
    app.state.credentials_configured = credentials.configured
    add_exception_handlers(app)
    app.include_router(router)
    return app


def main() -> None:
    """Entry point: load settings -> build app -> serve."""
    settings = Settings()
    app = create_app(settings)
    Log.info(f"Audit bot running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
