"""
MCP Simple Datetime - Web (streamable HTTP) variant.

Serves the same tools as the stdio variant. Timers are persisted to the
configured state file, so every worker sharing that file sees the same
timers.
"""
from ..config import get_settings
from ..logger import configure_logging
from ..server import app


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, log_path=settings.log_file)
    app.run(
        transport="streamable-http",
        host=settings.http_host,
        port=settings.http_port,
        stateless_http=True,
    )


if __name__ == "__main__":
    main()
