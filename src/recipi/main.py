import argparse
import logging

import uvicorn

from .config import CONFIG


def main():
    parser = argparse.ArgumentParser(description="Run the Recipi API server.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=CONFIG.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "recipi.app:app", host=args.host, port=args.port, reload=args.reload
    )


if __name__ == "__main__":
    main()
