"""
Pipeline configuration management.

This module handles configuration from environment variables using Pydantic Settings.
"""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Pipeline configuration from environment variables.

    All settings can be overridden via environment variables with the same name.
    List values are given as JSON (e.g. HIGHLIGHT_LANGUAGES='["python","sql"]').
    """

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Attachment URL resolution (storage collaborator default route)
    attachment_url_template: str = "/api/attachments/{id}"

    # Syntax highlighting grammars loaded into the registry at startup
    highlight_languages: List[str] = [
        "python",
        "javascript",
        "typescript",
        "json",
        "bash",
        "sql",
        "html",
        "css",
        "yaml",
    ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


# Global settings instance
settings = Settings()
