import uvicorn

from botbridge.config import get_settings
from botbridge.main import create_app


def main() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings=settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
