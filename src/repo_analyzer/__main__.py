"""Run the API with uvicorn: ``python -m repo_analyzer``."""

import uvicorn

from repo_analyzer.core.config import settings


def main() -> None:
    # log_config=None keeps the handlers installed by setup_logging
    uvicorn.run("repo_analyzer.main:app", host="0.0.0.0", port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
