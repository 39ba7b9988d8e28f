import logging
from contextlib import contextmanager
from typing import Dict, Optional

from opentelemetry.trace import Tracer

from app.utils import mask_url, redact_url

logger = logging.getLogger("uvicorn.error")


@contextmanager
def traced_request(
    tracer: Tracer,
    operation: str,
    target_url: Optional[str],
    start_message: str,
    extra_attrs: Optional[Dict] = None,
):
    """Context manager to create a span, set common attributes, and log a start message."""
    with tracer.start_as_current_span(operation) as span:
        if target_url:
            span.set_attribute("proxy.target_url", redact_url(target_url))
        if extra_attrs:
            for k, v in extra_attrs.items():
                span.set_attribute(k, v)
        logger.info(mask_url(start_message, target_url))
        yield span
