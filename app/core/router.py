"""Router with multipart injection, response conversion, compression and access logging."""

import inspect
import time
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
from asgi_correlation_id import correlation_id
from pydantic import BaseModel
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod

from app.core.compression import compress_response
from app.core.errors import UploadTooLargeError, handle_exception
from app.core.logger import LogIcon, logger
from app.core.settings import settings as st
from app.models.core import BodyType, HtmlPage
from app.services.multipart import MultipartBody


def parse_endpoint_signature(sig: inspect.Signature) -> dict[str, BodyType]:
    """Find the handler parameters that receive a decoded request body."""
    parsed: dict[str, BodyType] = {}

    for name, param in sig.parameters.items():
        match param.annotation:
            case type() as annotation if issubclass(annotation, MultipartBody):
                parsed[name] = BodyType.MULTIPART

    return parsed


def request_body(request: Request) -> bytes:
    """Raw request body, whether Robyn handed it over as text or bytes."""
    raw = request.body
    if raw is None:
        return b""
    if isinstance(raw, str):
        return raw.encode("utf-8")
    return bytes(raw)


def parse_request_body(
    body_config: dict[str, BodyType],
    request: Request,
    kwargs: dict[str, Any],
) -> None:
    """Inject decoded bodies into handler kwargs. Raises UploadError subclasses."""
    for param_name, body_type in body_config.items():
        match body_type:
            case BodyType.MULTIPART:
                body = request_body(request)
                if len(body) > st.MAX_UPLOAD_SIZE:
                    raise UploadTooLargeError(f"body exceeds {st.MAX_UPLOAD_SIZE} bytes")
                kwargs[param_name] = MultipartBody(body, request.headers.get("content-type"))


def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case HtmlPage():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "text/html; charset=utf-8"},
                description=str(result),
            )
        case BaseModel():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=result.model_dump_json(indent=4),
            )
        case dict():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=orjson.dumps(result).decode(),
            )
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "text/plain; charset=utf-8"},
                description=str(result),
            )


def head_response(response: Response) -> Response:
    """Same status and headers as the GET response, without a body."""
    response.description = ""
    return response


def request_path(request: Request) -> str:
    url = getattr(request, "url", None)
    return getattr(url, "path", "") or ""


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
    HttpMethod.TRACE,
    HttpMethod.CONNECT,
)


def _create_method_wrapper(original_method: Callable, method_name: str) -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, **kwargs) -> Callable:
        decorator = original_method(*args, **kwargs)

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            body_config = parse_endpoint_signature(sig)
            has_request_param = "request" in sig.parameters

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                started = time.perf_counter()
                correlation_id.set(uuid.uuid4().hex)
                try:
                    parse_request_body(body_config, request, h_kwargs)

                    # Pass request to handler only if it declared it
                    if has_request_param:
                        h_kwargs["request"] = request

                    response = parse_response(await handler(**h_kwargs))
                except Exception as ex:
                    response = handle_exception(ex)
                else:
                    response = compress_response(response, request.headers.get("accept-encoding"))

                if method_name == "head":
                    response = head_response(response)

                logger.info(
                    "Request handled",
                    icon=LogIcon.NETWORK,
                    method=method_name.upper(),
                    path=request_path(request),
                    status=response.status_code,
                    elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
                )
                return response

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            for name, param in sig.parameters.items():
                if name == "request" or name in body_config:
                    continue
                new_params.append(param)

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """Enhanced SubRouter with multipart injection, response conversion and compression."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with parsing logic."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, method_name)
                setattr(self, method_name, wrapped_method)
