import itertools
import threading
import time
from collections.abc import Callable, Hashable
from pathlib import Path

import pytest

from audiodeck.audio.models import VolmeterSample
from audiodeck.audio.service import AudioService
from audiodeck.config import AudioDeckConfig, ConfigManager
from audiodeck.scenes.service import ScenesService
from audiodeck.sources.models import AudioInput, Source
from audiodeck.sources.service import SourcesService
from audiodeck.system.path_resolver import PathResolver


class FakeFader:
    """Fader adapter storing each field as written."""

    def __init__(self, db: float = 0.0, deflection: float = 1.0, mul: float = 1.0) -> None:
        self.db = db
        self.deflection = deflection
        self.mul = mul
        self.audio_input: AudioInput | None = None
        self.detached = False
        self.fail_attach = False

    def attach(self, audio_input: AudioInput) -> None:
        if self.fail_attach:
            raise OSError("input unavailable")
        self.audio_input = audio_input

    def detach(self) -> None:
        self.detached = True


class FakeVolmeter:
    """Meter adapter whose samples are pushed by the test."""

    def __init__(self) -> None:
        self.callbacks: dict[int, Callable[[VolmeterSample], None]] = {}
        self.audio_input: AudioInput | None = None
        self.detached = False
        self.fail_attach = False
        self._tokens = itertools.count(1)

    def attach(self, audio_input: AudioInput) -> None:
        if self.fail_attach:
            raise OSError("input unavailable")
        self.audio_input = audio_input

    def detach(self) -> None:
        self.detached = True

    def add_callback(self, callback: Callable[[VolmeterSample], None]) -> Hashable:
        token = next(self._tokens)
        self.callbacks[token] = callback
        return token

    def remove_callback(self, token: Hashable) -> None:
        self.callbacks.pop(token, None)  # type: ignore[call-overload]

    def emit(self, sample: VolmeterSample) -> None:
        for callback in list(self.callbacks.values()):
            callback(sample)


class EagerVolmeter(FakeVolmeter):
    """Meter delivering a sample before add_callback returns."""

    sample = VolmeterSample(level=0.5, magnitude=0.5, peak=0.5, muted=False)

    def add_callback(self, callback: Callable[[VolmeterSample], None]) -> Hashable:
        token = super().add_callback(callback)
        callback(self.sample)
        return token


class StreamingVolmeter(FakeVolmeter):
    """Meter delivering samples from its own thread for as long as a callback is registered."""

    sample = VolmeterSample(level=0.5, magnitude=0.5, peak=0.5, muted=False)

    def add_callback(self, callback: Callable[[VolmeterSample], None]) -> Hashable:
        token = super().add_callback(callback)
        threading.Thread(target=self._stream, args=(token,), daemon=True).start()
        return token

    def _stream(self, token: Hashable) -> None:
        while True:
            callback = self.callbacks.get(token)  # type: ignore[call-overload]
            if callback is None:
                return
            callback(self.sample)
            time.sleep(0.001)

class FakeMixer:
    """Mixer engine handing out fake adapters and remembering them per source."""

    def __init__(self) -> None:
        self.faders: dict[str, list[FakeFader]] = {}
        self.volmeters: dict[str, list[FakeVolmeter]] = {}
        self.initial_fader: dict[str, float] = {"db": -6.7, "deflection": 0.8, "mul": 0.46}
        self.fail_fader_attach: set[str] = set()
        self.fail_volmeter_attach: set[str] = set()
        self.fail_create: set[str] = set()
        self.volmeter_factory: Callable[[], FakeVolmeter] = FakeVolmeter

    def create_fader(self, source_id: str) -> FakeFader:
        if source_id in self.fail_create:
            raise RuntimeError("engine refused fader")
        fader = FakeFader(**self.initial_fader)
        fader.fail_attach = source_id in self.fail_fader_attach
        self.faders.setdefault(source_id, []).append(fader)
        return fader

    def create_volmeter(self, source_id: str) -> FakeVolmeter:
        volmeter = self.volmeter_factory()
        volmeter.fail_attach = source_id in self.fail_volmeter_attach
        self.volmeters.setdefault(source_id, []).append(volmeter)
        return volmeter

    def fader(self, source_id: str) -> FakeFader:
        return self.faders[source_id][-1]

    def volmeter(self, source_id: str) -> FakeVolmeter:
        return self.volmeters[source_id][-1]


@pytest.fixture
def path_resolver(tmp_path: Path) -> PathResolver:
    """Provide a PathResolver writing its config under a temporary directory."""
    resolver = PathResolver()
    resolver.config_dir = tmp_path / "config"
    resolver.get_config_path = lambda: tmp_path / "config" / "audiodeck.yaml"
    return resolver


@pytest.fixture
def test_config(path_resolver: PathResolver) -> AudioDeckConfig:
    """Should load test configuration from a temporary config file."""
    return ConfigManager(path_resolver).load()


@pytest.fixture
def sources_service() -> SourcesService:
    return SourcesService()


@pytest.fixture
def scenes_service() -> ScenesService:
    return ScenesService()


@pytest.fixture
def mixer() -> FakeMixer:
    return FakeMixer()


@pytest.fixture
def audio_service(sources_service, scenes_service, mixer):
    """Provide a started AudioService wired to fake adapters.

    The heartbeat period is long enough that no tick fires during a test.
    """
    service = AudioService(sources_service, scenes_service, mixer, heartbeat_period_ms=60_000)
    service.start()
    yield service
    service.stop()


@pytest.fixture
def eager_volmeter_class() -> type[FakeVolmeter]:
    return EagerVolmeter


@pytest.fixture
def streaming_volmeter_class() -> type[FakeVolmeter]:
    return StreamingVolmeter


@pytest.fixture
def source_factory():
    """Create Source instances with sensible defaults."""

    def _create(source_id: str = "src1", **overrides: object) -> Source:
        values: dict[str, object] = {"name": f"{source_id} name", "audio": True}
        values.update(overrides)
        return Source(source_id=source_id, **values)  # type: ignore[arg-type]

    return _create
