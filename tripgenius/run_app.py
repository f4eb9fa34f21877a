import argparse
import os

import uvicorn
from dotenv import load_dotenv


def main(argv=None):
    load_dotenv()
    parser = argparse.ArgumentParser(prog="tripgenius-server", description="Run the TripGenius web planner")
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args(argv)

    uvicorn.run(
        "tripgenius.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
