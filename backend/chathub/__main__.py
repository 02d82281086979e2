import uvicorn

from .config import settings

if __name__ == "__main__":
    uvicorn.run("chathub.main:app", host=settings.host, port=settings.port)
