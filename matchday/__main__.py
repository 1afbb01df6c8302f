import uvicorn

from matchday.core.config import settings


def main():
    uvicorn.run(
        "matchday.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
