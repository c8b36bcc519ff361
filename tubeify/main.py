"""Entry: start API server."""
import logging
import uvicorn

from tubeify.config import API_HOST, API_PORT


def run(reload: bool = False) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    uvicorn.run(
        "tubeify.api.app:app",
        host=API_HOST,
        port=API_PORT,
        reload=reload,
    )


if __name__ == "__main__":
    run(reload=True)
