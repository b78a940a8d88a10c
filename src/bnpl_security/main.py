"""Run the service with uvicorn."""

import uvicorn

from .config import LoggingConfig, get_app_settings


def main() -> None:
    settings = get_app_settings()
    LoggingConfig.configure(settings)
    uvicorn.run(
        "bnpl_security.api.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_config=None,
    )


if __name__ == "__main__":
    main()
