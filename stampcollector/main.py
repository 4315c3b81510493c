"""Entry: serve the StampCollector API (scan, collection, status) with uvicorn."""
import logging
import uvicorn

from stampcollector.config import API_HOST, API_PORT

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    uvicorn.run(
        "stampcollector.api.app:app",
        host=API_HOST,
        port=API_PORT,
        reload=True,
    )
