import os
import uvicorn
from voke.config import settings


def main():
    """Serve the API: `python -m voke.api` or the `voke-api` script."""
    uvicorn.run(
        "voke.api.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
