"""slim-jpg-web - picture optimization demo powered by Robyn."""

from robyn import Robyn

from app.api.health import router as health_router
from app.api.pages import router as pages_router
from app.core.errors import handle_exception
from app.core.lifespan import create_lifespan
from app.core.logger import LogIcon, logger
from app.core.settings import settings as st
from app.events.optimizer import OptimizerEvent
from app.events.process_pool import ProcessPoolEvent
from app.middlewares.base import MiddlewareHandler
from app.middlewares.headers import DefaultHeadersMiddleware

app = Robyn(__file__)

# Lifespan events, the optimizer runs inside the process pool
lifespan = create_lifespan(app)
lifespan.register(ProcessPoolEvent).register(OptimizerEvent)

app.startup_handler(lifespan.startup)
app.shutdown_handler(lifespan.shutdown)

app.exception(handle_exception)

# Routers
app.include_router(pages_router)
app.include_router(health_router)

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(DefaultHeadersMiddleware({"x-engine": st.ENGINE_NAME}))


def main() -> None:
    logger.info("Starting server", icon=LogIcon.START, service=st.API_NAME, url=st.api_url, environment=st.ENVIRONMENT)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
