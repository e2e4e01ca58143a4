from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    anthropic_api_key: str
    llm_model: str = "claude-sonnet-4-20250514"
    storage_api_url: str
    storage_api_key: str = ""
    log_level: str = "INFO"

    # Quality gates
    fetch_min_html_chars: int = 1000
    ocr_min_text_chars: int = 100
    ocr_max_pages: int = 15

    # Browser rendering (seconds)
    navigation_timeout: float = 30.0
    render_settle_delay: float = 2.0

    # Rate limiting between sequential requests (seconds)
    detail_page_delay: float = 1.0
    download_delay: float = 1.0

    max_detail_links: int = 10
    max_content_chars: int = 50_000
    max_retries: int = 3
