import uvicorn

from chatrelay.core.config import settings


def main() -> None:
    uvicorn.run("chatrelay.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
