"""Optional OpenTelemetry instrumentation for ytoai.

Call ``ytoai.instrument()`` once at startup to enable tracing.
Requires ``opentelemetry-api`` to be installed; the models
work identically without it.
"""

import importlib.util
import logging
from contextlib import asynccontextmanager

from ytoai.constants import PROVIDER_NAME

logger = logging.getLogger(__name__)

_tracer = None


def instrument(*, tracer_name: str = "ytoai") -> None:
    """Enable OpenTelemetry tracing for all model calls.

    Call once at startup, after configuring your TracerProvider.
    Requires ``opentelemetry-api``: ``pip install ytoai[otel]``

    Example::

        from opentelemetry import trace
        from opentelemetry.sdk.trace import TracerProvider

        trace.set_tracer_provider(TracerProvider())

        import ytoai
        ytoai.instrument()

    See also:
        - `GenAI Semantic Conventions <https://opentelemetry.io/docs/specs/semconv/gen-ai/>`_

    Args:
        tracer_name: Name passed to ``trace.get_tracer()``.

    Raises:
        ImportError: If ``opentelemetry-api`` is not installed.
    """
    global _tracer
    if importlib.util.find_spec("opentelemetry.trace") is None:
        raise ImportError(
            "opentelemetry-api is required for instrumentation. "
            "Install it with: pip install ytoai[otel]"
        )
    from opentelemetry import trace
    _tracer = trace.get_tracer(tracer_name)
    if isinstance(_tracer, trace.NoOpTracer):
        logger.info(
            "No TracerProvider configured, spans will be "
            "discarded. Set up a TracerProvider to export "
            "traces."
        )
    else:
        logger.info("ytoai instrumentation enabled")


def uninstrument() -> None:
    """Disable OpenTelemetry tracing.

    Subsequent operations will not emit spans.
    """
    global _tracer
    _tracer = None


def _request_attributes(operation: str, model: str | None, **params) -> dict:
    attributes = {
        "gen_ai.operation.name": operation,
        "gen_ai.provider.name": PROVIDER_NAME,
        "gen_ai.request.model": model or "",
    }
    for key, value in params.items():
        if value is not None:
            attributes[f"gen_ai.request.{key}"] = value
    return attributes


@asynccontextmanager
async def model_span(operation: str, model: str | None, **params):
    """Wrap a model call in a ``<operation> <model>`` client span.

    Keyword arguments with a value become ``gen_ai.request.*`` attributes.
    """
    if _tracer is None:
        yield None
        return
    from opentelemetry.trace import SpanKind

    with _tracer.start_as_current_span(
        f"{operation} {model or ''}".strip(),
        kind=SpanKind.CLIENT,
        attributes=_request_attributes(operation, model, **params),
    ) as span:
        yield span


def chat_span(model: str | None, **params):
    """Wrap a chat call (single-shot or streamed) in a ``chat`` span."""
    return model_span("chat", model, **params)


def embedding_span(model: str | None, **params):
    return model_span("embeddings", model, **params)


def image_span(model: str | None, **params):
    return model_span("image", model, **params)


def record_usage(
    span, usage, response_model: str | None = None
):
    """Set token-usage and response-model attributes on a span.

    ``usage`` is a :class:`ytoai.model.Usage`.
    """
    if span is None or usage is None:
        return
    span.set_attribute(
        "gen_ai.usage.input_tokens", usage.prompt_tokens,
    )
    span.set_attribute(
        "gen_ai.usage.output_tokens", usage.generation_tokens,
    )
    if response_model:
        span.set_attribute(
            "gen_ai.response.model", response_model
        )


def record_finish_reasons(span, finish_reasons: list[str]) -> None:
    if span is None or not finish_reasons:
        return
    span.set_attribute(
        "gen_ai.response.finish_reasons", finish_reasons
    )


def record_error(span, exception: BaseException) -> None:
    """Record an exception and set ERROR status on a span.

    Sets ``error.type`` per GenAI semantic conventions.
    No-ops when *span* is ``None`` (tracing disabled).
    """
    if span is None:
        return
    from opentelemetry.trace import StatusCode

    span.set_status(StatusCode.ERROR, str(exception))
    span.record_exception(exception)
    span.set_attribute(
        "error.type", type(exception).__qualname__
    )
