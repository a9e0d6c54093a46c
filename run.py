import logging

import uvicorn
from personaut.config import settings

if __name__ == "__main__":
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Start the API server
    print(f"Starting API server on {settings.API_HOST}:{settings.API_PORT}...")
    uvicorn.run(
        "personaut.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )
