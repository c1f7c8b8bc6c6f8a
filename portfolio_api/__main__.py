"""Run the API locally: python -m portfolio_api"""

import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("portfolio_api.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
