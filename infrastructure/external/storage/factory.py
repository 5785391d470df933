"""Volume factory with registry pattern."""
from typing import Callable, Awaitable
import importlib

from core.logging_config import get_logger
from .config import VolumeConfig, StoreType
from .exceptions import ConfigurationError
from .volume import S3Volume

logger = get_logger(__name__)

# Volume builder type
VolumeBuilder = Callable[[VolumeConfig], Awaitable[S3Volume]]

# Registry of volume builders per store type
_builder_registry: dict[StoreType, VolumeBuilder] = {}


def register_builder(
    store_type: StoreType,
    builder: VolumeBuilder
) -> None:
    """Register a volume builder.

    Args:
        store_type: Type of object store backing the volume
        builder: Async function to build the volume
    """
    _builder_registry[store_type] = builder
    logger.info("Registered volume builder", store_type=getattr(store_type, "value", store_type))


async def create_volume(config: VolumeConfig) -> S3Volume:
    """Create a volume from its configuration.

    Args:
        config: Volume configuration

    Returns:
        Configured volume

    Raises:
        ConfigurationError: If the config is incomplete, the store type is
            not registered, or building fails
    """
    config.ensure_valid()

    if config.type not in _builder_registry:
        # Try to auto-register built-in builders
        _auto_register_builders()

        if config.type not in _builder_registry:
            raise ConfigurationError(
                f"Volume store '{config.type}' not registered. "
                f"Available: {sorted(getattr(t, 'value', t) for t in _builder_registry)}"
            )

    builder = _builder_registry[config.type]

    try:
        volume = await builder(config)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(
            "Failed to create volume",
            store_type=config.type,
            error=str(e)
        )
        raise ConfigurationError(
            f"Failed to create volume for store '{config.type}': {e}"
        ) from e

    logger.info(
        "Created volume",
        store_type=config.type,
        bucket=config.bucket,
        subfolder=config.subfolder or None
    )
    return volume


def _auto_register_builders() -> None:
    """Auto-register built-in volume builders."""
    builders = [
        (StoreType.S3, "infrastructure.external.storage.providers.s3", "build_s3_volume"),
        (StoreType.MEMORY, "infrastructure.external.storage.providers.memory", "build_memory_volume"),
    ]

    for store_type, module_path, builder_name in builders:
        if store_type in _builder_registry:
            continue

        try:
            module = importlib.import_module(module_path)
            builder = getattr(module, builder_name)
            register_builder(store_type, builder)
        except (ImportError, AttributeError) as e:
            logger.debug("Volume store not available", store_type=getattr(store_type, "value", store_type), error=str(e))
