"""Default response headers middleware."""

from robyn import Response

from app.core.settings import settings as st
from app.middlewares.base import BaseMiddleware


class DefaultHeadersMiddleware(BaseMiddleware):
    """Adds fixed headers, like X-Engine, to every response."""

    def __init__(self, headers: dict[str, str] | None = None, endpoints: list[str] | None = None) -> None:
        super().__init__(endpoints)
        self.headers = headers if headers is not None else {"x-engine": st.ENGINE_NAME}

    def after(self, response: Response) -> Response:
        for name, value in self.headers.items():
            response.headers.set(name, value)
        return response
