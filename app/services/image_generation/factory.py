"""
Factory for creating image generation providers based on configuration.
"""
import logging

from app.services.image_generation.base import ImageGenerationProvider
from app.services.image_generation.providers.fal import FalProvider

logger = logging.getLogger(__name__)


class ImageProviderFactory:
    """Factory for creating image generation providers."""

    PROVIDERS: dict[str, type[ImageGenerationProvider]] = {
        "fal": FalProvider,
    }

    @classmethod
    def create(cls, provider_name: str, config: dict) -> ImageGenerationProvider:
        """
        Create provider instance by name.

        Args:
            provider_name: Name of provider (fal)
            config: Provider-specific configuration dict

        Returns:
            Initialized provider instance

        Raises:
            ValueError: If provider name is unknown
        """
        provider_class = cls.PROVIDERS.get(provider_name.lower())

        if not provider_class:
            available = ", ".join(cls.PROVIDERS.keys())
            raise ValueError(
                f"Unknown provider: {provider_name}. "
                f"Available providers: {available}"
            )

        logger.info(f"Creating image provider: {provider_name}")
        provider = provider_class(config)

        if not provider.is_available():
            logger.warning(f"Provider {provider_name} created but not fully configured")

        return provider

    @classmethod
    def create_from_settings(cls, settings) -> ImageGenerationProvider:
        """Create provider from application settings."""
        provider_name = settings.image_provider

        if provider_name == "fal":
            config = {
                "api_key": settings.fal_key,
                "queue_url": settings.fal_queue_url,
                "text_to_image_model": settings.fal_text_to_image_model,
                "edit_model": settings.fal_image_edit_model,
                "timeout": settings.fal_timeout,
                "poll_interval": settings.fal_poll_interval,
            }
        else:
            raise ValueError(f"Provider {provider_name} not supported in settings")

        return cls.create(provider_name, config)
