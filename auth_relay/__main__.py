import uvicorn

from auth_relay.core.config import settings


def main() -> None:
    uvicorn.run("auth_relay.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
