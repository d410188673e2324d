"""
Run the API server: python -m ith_monitor
"""

import logging

import uvicorn

from ith_monitor.core.config import settings


def main():
    logging.basicConfig(level=logging.INFO)
    uvicorn.run("ith_monitor.api.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
