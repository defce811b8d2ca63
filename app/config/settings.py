from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 3000
    max_concurrent_audits: int = 2

    audit_tool_url: str = "https://www.thehoth.com/seo-audit-tool/"
    site_field_selector: str = 'input[name="domain"]'
    name_field_selector: str = 'input[name="first_name"]'
    email_field_selector: str = 'input[name="email"]'
    submit_selector: str = 'input[type="submit"]'

    browser_type: str = "chromium"
    browser_headless: bool = True
    browser_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )
    navigation_timeout_seconds: int = 60
    submit_timeout_seconds: int = 90
    field_timeout_seconds: int = 5

    downloads_root: str = "downloads"
    download_poll_interval_seconds: float = 2.0
    download_timeout_seconds: float = 120.0
    download_require_stable_size: bool = False
    report_extension: str = ".pdf"

    google_application_credentials_base64: str = ""
    google_application_credentials_file: str = ""
    google_drive_scopes: list[str] = ["https://www.googleapis.com/auth/drive.file"]
    google_drive_folder_id: str = ""
    shareable_link_template: str = "https://drive.google.com/file/d/{file_id}/view"
