from __future__ import annotations

import pytest

from discord_jukebox.application.interfaces.voice_adapter import (
    StreamFinishedCallback,
    StreamHandle,
    VoiceAdapter,
)
from discord_jukebox.domain.shared.exceptions import StreamOpenError

GUILD_ID = 111111111111111111
CHANNEL_ID = 222222222222222222


# ============================================================================
# Fakes
# ============================================================================


class FakeVoiceAdapter(VoiceAdapter):
    """In-memory voice sink.

    Records every stream it is asked to play and keeps the completion
    callback of the one currently bound, so tests can finish it by hand.
    Stopping a stream fires its callback the way discord.py's ``after`` does.
    """

    def __init__(self) -> None:
        self.failing_urls: set[str] = set()
        self.refuse_play = False
        self.connect_result = True
        self.played: list[str] = []
        self.opened: list[str] = []
        self.connected: dict[int, int] = {}
        self.disconnect_calls: list[int] = []
        self.callbacks: dict[int, StreamFinishedCallback] = {}
        self.paused: set[int] = set()
        self.fire_on_stop = True

    # --- helpers for tests ---

    def bound_count(self, guild_id: int) -> int:
        return 1 if guild_id in self.callbacks else 0

    async def finish(self, guild_id: int, error: Exception | None = None) -> None:
        """Simulate the current stream ending on its own."""
        callback = self.callbacks.pop(guild_id)
        self.paused.discard(guild_id)
        await callback(error)

    # --- VoiceAdapter ---

    async def connect(self, guild_id: int, channel_id: int) -> bool:
        self.connected[guild_id] = channel_id
        return self.connect_result

    async def ensure_connected(self, guild_id: int, channel_id: int) -> bool:
        return await self.connect(guild_id, channel_id)

    async def disconnect(self, guild_id: int) -> bool:
        self.disconnect_calls.append(guild_id)
        self.connected.pop(guild_id, None)
        return True

    async def open_stream(self, url: str) -> StreamHandle:
        self.opened.append(url)
        if url in self.failing_urls:
            raise StreamOpenError(url)
        return StreamHandle(url=url, stream_url=f"{url}#media")

    async def play(
        self,
        guild_id: int,
        stream: StreamHandle,
        *,
        on_finished: StreamFinishedCallback,
    ) -> bool:
        if self.refuse_play:
            return False
        assert guild_id not in self.callbacks, "two streams bound to one voice sink"
        self.callbacks[guild_id] = on_finished
        self.played.append(stream.url)
        return True

    async def stop_current(self, guild_id: int) -> bool:
        callback = self.callbacks.pop(guild_id, None)
        if callback is None:
            return False
        self.paused.discard(guild_id)
        if self.fire_on_stop:
            await callback(None)
        return True

    async def pause(self, guild_id: int) -> bool:
        if guild_id in self.callbacks and guild_id not in self.paused:
            self.paused.add(guild_id)
            return True
        return False

    async def resume(self, guild_id: int) -> bool:
        if guild_id in self.paused:
            self.paused.discard(guild_id)
            return True
        return False

    def is_connected(self, guild_id: int) -> bool:
        return guild_id in self.connected

    def is_rendering(self, guild_id: int) -> bool:
        return guild_id in self.callbacks and guild_id not in self.paused

    def is_paused(self, guild_id: int) -> bool:
        return guild_id in self.paused


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


def make_track(name: str, requested_by: str = "alice"):
    from discord_jukebox.domain.music.entities import Track

    return Track(
        title=f"Song {name}",
        url=f"https://www.youtube.com/watch?v={name}",
        thumbnail=f"https://i.ytimg.com/vi/{name}/hq.jpg",
        requested_by=requested_by,
        source_label="YouTube",
    )


@pytest.fixture
def sample_track():
    return make_track("A")


@pytest.fixture
def track_factory():
    return make_track


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def session_store():
    from discord_jukebox.infrastructure.persistence.session_store import InMemorySessionStore

    return InMemorySessionStore()


@pytest.fixture
def voice_adapter():
    return FakeVoiceAdapter()


@pytest.fixture
def playback_service(session_store, voice_adapter):
    from discord_jukebox.application.services.playback_service import (
        PlaybackApplicationService,
    )

    return PlaybackApplicationService(session_store=session_store, voice_adapter=voice_adapter)
