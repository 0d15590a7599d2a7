from nyc_shootings.shared.config import Settings, get_config, reload_config
from nyc_shootings.shared.errors import IngestionError, ParseError, PipelineError, SchemaError
from nyc_shootings.shared.logging_setup import configure_logging

__all__ = [
    "get_config",
    "reload_config",
    "Settings",
    "configure_logging",
    "PipelineError",
    "SchemaError",
    "ParseError",
    "IngestionError",
]
