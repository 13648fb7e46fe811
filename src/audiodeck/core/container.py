"""Dependency injection container for the audiodeck application."""

from dependency_injector import containers, providers

from audiodeck.audio.devices import AudioDeviceService
from audiodeck.audio.mixer import SoundDeviceMixer
from audiodeck.audio.service import AudioService
from audiodeck.config import AudioDeckConfig, ConfigManager
from audiodeck.scenes.service import ScenesService
from audiodeck.sources.service import SourcesService
from audiodeck.system.path_resolver import PathResolver


def get_config(path_resolver: PathResolver) -> AudioDeckConfig:
    """Load configuration through a ConfigManager bound to the resolver."""
    return ConfigManager(path_resolver).load()


class Container(containers.DeclarativeContainer):
    """Application dependency injection container.

    Services are singletons: the sources service, scenes service and audio
    service share state for the life of the process.
    """

    path_resolver = providers.Singleton(PathResolver)

    config = providers.Singleton(
        get_config,
        path_resolver=path_resolver,
    )

    sources_service = providers.Singleton(SourcesService)
    scenes_service = providers.Singleton(ScenesService)
    audio_device_service = providers.Singleton(AudioDeviceService)

    mixer = providers.Singleton(
        SoundDeviceMixer,
        meter_config=config.provided.meter,
        mute_lookup=sources_service.provided.is_muted,
    )

    audio_service = providers.Singleton(
        AudioService,
        sources_service=sources_service,
        scenes_service=scenes_service,
        mixer=mixer,
        heartbeat_period_ms=config.provided.heartbeat_period_ms,
    )
