"""Playback Application Service - the per-guild queue and playback state machine."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ...domain.music.entities import Track
from ...domain.music.services import QueueSelectionPolicy
from ...domain.shared.exceptions import StreamOpenError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from .queue_models import EnqueueResult, QueueInfo

if TYPE_CHECKING:
    from ...domain.music.repository import SessionStore
    from ..interfaces.voice_adapter import StreamFinishedCallback, StreamHandle, VoiceAdapter

logger = logging.getLogger(__name__)

TrackCallback = Callable[[DiscordSnowflake, Track], Awaitable[None]]

DEFAULT_QUEUE_DISPLAY_LIMIT = 15


class PlaybackApplicationService:
    """Owns every transition of a guild session.

    A session is either idle or playing exactly one track. ``advance`` is the
    only way into the playing state and refuses to run while a track is
    playing, so two streams are never bound to one voice sink. Natural
    completion and forced skips both end in ``handle_track_end``.

    Sessions are fetched from the store again after every await; work that
    belongs to a session which was stopped or replaced in the meantime is
    dropped.
    """

    def __init__(
        self,
        *,
        session_store: SessionStore,
        voice_adapter: VoiceAdapter,
        selection_policy: QueueSelectionPolicy | None = None,
    ) -> None:
        self._store = session_store
        self._voice_adapter = voice_adapter
        self._policy = selection_policy or QueueSelectionPolicy()

        self._on_track_started: TrackCallback | None = None
        self._on_track_failed: TrackCallback | None = None
        self._on_track_finished: TrackCallback | None = None

    def set_track_started_callback(self, callback: TrackCallback) -> None:
        self._on_track_started = callback

    def set_track_failed_callback(self, callback: TrackCallback) -> None:
        self._on_track_failed = callback

    def set_track_finished_callback(self, callback: TrackCallback) -> None:
        self._on_track_finished = callback

    # === Voice ===

    async def connect(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> bool:
        """Join (or move to) the caller's voice channel.

        A handshake that does not become ready in time is a soft failure:
        it is logged by the adapter and playback proceeds regardless. The
        session is left alone; ``enqueue`` records the channel once a track
        is actually committed.
        """
        return await self._voice_adapter.ensure_connected(guild_id, channel_id)

    async def _rejoin(self, guild_id: DiscordSnowflake) -> None:
        session = self._store.get(guild_id)
        if session is None or session.voice_channel_id is None:
            return
        if not self._voice_adapter.is_connected(guild_id):
            logger.info(LogTemplates.VOICE_REJOINING, session.voice_channel_id, guild_id)
            await self._voice_adapter.ensure_connected(guild_id, session.voice_channel_id)

    # === Queue ===

    async def enqueue(
        self,
        guild_id: DiscordSnowflake,
        track: Track,
        *,
        voice_channel_id: DiscordSnowflake | None = None,
    ) -> EnqueueResult:
        session = self._store.get_or_create(guild_id)
        if voice_channel_id is not None:
            session.voice_channel_id = voice_channel_id

        position = session.enqueue(track)
        logger.info(LogTemplates.QUEUE_ENQUEUED, track.title, position, guild_id)

        return EnqueueResult(
            track=track,
            position=position,
            queue_length=session.queue_length,
            should_start=session.is_idle,
        )

    async def get_queue(
        self, guild_id: DiscordSnowflake, limit: int = DEFAULT_QUEUE_DISPLAY_LIMIT
    ) -> QueueInfo:
        session = self._store.get(guild_id)
        if session is None:
            return QueueInfo(current_track=None, upcoming_tracks=[], total_length=0)

        return QueueInfo(
            current_track=session.current_track,
            upcoming_tracks=list(session.queue[:limit]),
            total_length=session.queue_length,
            loop_enabled=session.loop_enabled,
            shuffle_enabled=session.shuffle_enabled,
        )

    # === State machine ===

    async def advance(self, guild_id: DiscordSnowflake) -> Track | None:
        """Start the next queued track if the session is idle.

        Tracks whose stream cannot be opened are dropped (never re-queued)
        and the next one is tried, so the loop ends once the queue is empty.

        Returns:
            The track that started playing, or None.
        """
        await self._rejoin(guild_id)

        while True:
            session = self._store.get(guild_id)
            if session is None:
                return None

            if session.is_playing:
                logger.debug(LogTemplates.PLAYBACK_ALREADY_PLAYING, guild_id)
                return None

            track = self._policy.pick_next(session)
            if track is None:
                logger.info(LogTemplates.QUEUE_EMPTY, guild_id)
                return None

            session_id = session.session_id
            generation = session.begin_track(track)

            stream = await self._open_stream(guild_id, track)
            if stream is None:
                if not self._release_failed(guild_id, session_id, generation):
                    return None
                await self._notify(self._on_track_failed, guild_id, track)
                continue

            if not self._is_current(guild_id, session_id, generation):
                logger.info(LogTemplates.PLAYBACK_SESSION_CHANGED, guild_id, track.title)
                stream.cleanup()
                return None

            try:
                started = await self._voice_adapter.play(
                    guild_id,
                    stream,
                    on_finished=self._completion_handler(guild_id, session_id, generation),
                )
            except Exception:
                logger.exception(LogTemplates.PLAYBACK_SINK_ERROR, track.title, guild_id)
                started = False

            if not started:
                logger.warning(LogTemplates.PLAYBACK_SINK_REJECTED, track.title, guild_id)
                stream.cleanup()
                if not self._release_failed(guild_id, session_id, generation):
                    return None
                await self._notify(self._on_track_failed, guild_id, track)
                continue

            logger.info(LogTemplates.PLAYBACK_STARTED, track.title, guild_id)
            await self._notify(self._on_track_started, guild_id, track)
            return track

    async def handle_track_end(
        self, guild_id: DiscordSnowflake, session_id: str, generation: int
    ) -> None:
        """The single "track ended" transition.

        Re-queues the finished track at the tail when loop is enabled, returns
        the session to idle, then advances. Notices for a stream that is no
        longer current are ignored.
        """
        if not self._is_current(guild_id, session_id, generation):
            logger.debug(LogTemplates.PLAYBACK_STALE_COMPLETION, guild_id, generation)
            return

        session = self._store.get(guild_id)
        assert session is not None

        finished = session.finish_track()
        if finished is not None:
            logger.info(LogTemplates.TRACK_FINISHED, finished.title, guild_id)
            if session.loop_enabled:
                session.enqueue(finished)
                logger.debug(LogTemplates.TRACK_LOOPED, finished.title, guild_id)
            await self._notify(self._on_track_finished, guild_id, finished)

        await self.advance(guild_id)

    def _completion_handler(
        self, guild_id: DiscordSnowflake, session_id: str, generation: int
    ) -> StreamFinishedCallback:
        async def on_finished(error: Exception | None) -> None:
            if error is not None:
                logger.warning(LogTemplates.STREAM_ENDED, guild_id, error)
            await self.handle_track_end(guild_id, session_id, generation)

        return on_finished

    # === Controls ===

    async def skip(self, guild_id: DiscordSnowflake) -> Track | None:
        """Force the current track to end through the normal completion path.

        Returns:
            The skipped track, or None when nothing was playing.
        """
        session = self._store.get(guild_id)
        if session is None:
            return None

        if not session.is_playing:
            if session.queue:
                await self.advance(guild_id)
            return None

        track = session.current_track
        session_id = session.session_id
        generation = session.generation

        stopped = await self._voice_adapter.stop_current(guild_id)
        if track is not None:
            logger.info(LogTemplates.TRACK_SKIPPED, track.title, guild_id)

        # A stopped stream reports completion through its own callback.
        if not stopped:
            await self.handle_track_end(guild_id, session_id, generation)

        return track

    async def toggle_loop(self, guild_id: DiscordSnowflake) -> bool:
        session = self._store.get_or_create(guild_id)
        enabled = session.toggle_loop()
        logger.info(LogTemplates.SESSION_FLAG_TOGGLED, "loop", enabled, guild_id)
        return enabled

    async def toggle_shuffle(self, guild_id: DiscordSnowflake) -> bool:
        session = self._store.get_or_create(guild_id)
        enabled = session.toggle_shuffle()
        logger.info(LogTemplates.SESSION_FLAG_TOGGLED, "shuffle", enabled, guild_id)
        return enabled

    async def pause_toggle(self, guild_id: DiscordSnowflake) -> bool | None:
        """Pause if rendering, otherwise resume.

        Returns:
            True if now paused, False if resumed, None if there was nothing to toggle.
        """
        if self._voice_adapter.is_rendering(guild_id):
            return True if await self._voice_adapter.pause(guild_id) else None

        if self._voice_adapter.is_paused(guild_id):
            return False if await self._voice_adapter.resume(guild_id) else None

        return None

    async def stop(self, guild_id: DiscordSnowflake) -> bool:
        """Tear down the guild's session and release the voice sink.

        The session leaves the store before the stream is stopped, so the
        completion notice of the stopped stream finds nothing to act on.

        Returns:
            True if a session existed.
        """
        session = self._store.remove(guild_id)
        if session is not None:
            cleared = session.clear_queue()
            session.finish_track()
            logger.info(LogTemplates.QUEUE_CLEARED, cleared, guild_id)

        await self._voice_adapter.stop_current(guild_id)
        await self._voice_adapter.disconnect(guild_id)
        logger.info(LogTemplates.PLAYBACK_STOPPED, guild_id)
        return session is not None

    # === Helpers ===

    async def _open_stream(self, guild_id: DiscordSnowflake, track: Track) -> StreamHandle | None:
        """Open ``track``'s stream; any failure counts as an unplayable track."""
        try:
            return await self._voice_adapter.open_stream(track.url)
        except StreamOpenError as exc:
            logger.warning(LogTemplates.STREAM_OPEN_FAILED, track.title, guild_id, exc)
        except Exception:
            logger.exception(LogTemplates.STREAM_OPEN_UNEXPECTED, track.title, guild_id)
        return None

    def _is_current(self, guild_id: DiscordSnowflake, session_id: str, generation: int) -> bool:
        session = self._store.get(guild_id)
        return (
            session is not None
            and session.session_id == session_id
            and session.is_current(generation)
        )

    def _release_failed(self, guild_id: DiscordSnowflake, session_id: str, generation: int) -> bool:
        """Return a session to idle after its popped track failed to start.

        Returns False when the session was stopped or replaced meanwhile.
        """
        if not self._is_current(guild_id, session_id, generation):
            return False
        session = self._store.get(guild_id)
        assert session is not None
        session.finish_track()
        return True

    async def _notify(
        self, callback: TrackCallback | None, guild_id: DiscordSnowflake, track: Track
    ) -> None:
        if callback is None:
            return
        try:
            await callback(guild_id, track)
        except Exception as exc:
            logger.warning(LogTemplates.PLAYBACK_NOTIFY_FAILED, guild_id, exc)
