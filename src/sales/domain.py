"""Domain initialization and configuration."""

from protean.domain import Domain

from sales.utils import settings
from sales.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
sales = Domain(name="sales")

# An explicit database URL wins over the domain.toml of the active environment
if settings.DATABASE_URL:
    sales.config["databases"]["default"] = {
        "provider": "postgresql" if settings.DATABASE_URL.startswith("postgresql") else "sqlite",
        "database_uri": settings.DATABASE_URL,
    }
