# noqa: D104 - package initialization
from .logging import configure_structured_logging  # noqa: F401
from .metrics import (  # noqa: F401
    metrics_blueprint,
    record_generation,
    record_publish,
    record_token_refresh,
    record_upstream_failure,
)
from .tracing import init_tracing  # noqa: F401
