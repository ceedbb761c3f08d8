"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Settings Validation Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Audio/Stream Errors
    NO_STREAM_URL = "No stream URL found for {url}"
    FFMPEG_SPAWN_FAILED = "FFmpeg could not open {url}: {error}"

    # Authentication/Security Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Voice Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_CONNECT_DEGRADED = "Voice connect degraded in guild %s: %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_NOT_CONNECTED = "Not connected to voice in guild %s"
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"
    VOICE_REJOINING = "Rejoining voice channel %s in guild %s"
    VOICE_HANDSHAKE_PENDING = "Voice handshake still pending in guild %s"
    VOICE_HANDSHAKE_LATE_READY = "Late voice handshake finished for channel %s in guild %s"
    VOICE_HANDSHAKE_LATE_FAILED = "Voice handshake for channel %s in guild %s failed: %r"

    # Stream Operations
    STREAM_OPENED = "Opened stream for '%s'"
    STREAM_OPEN_FAILED = "Failed to open stream for '%s' in guild %s: %s"
    STREAM_OPEN_UNEXPECTED = "Unexpected error opening stream for '%s' in guild %s"
    STREAM_HELD = "Voice not ready in guild %s, holding '%s' until the handshake finishes"
    STREAM_ENDED = "Stream ended in guild %s (error: %s)"
    STREAM_CALLBACK_ERROR = "Error in stream completion handler for guild %s: %s"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_ALREADY_PLAYING = "Already playing in guild %s, not advancing"
    PLAYBACK_SINK_REJECTED = "Voice sink refused to play '%s' in guild %s"
    PLAYBACK_SINK_ERROR = "Voice sink failed to play '%s' in guild %s"
    PLAYBACK_SESSION_CHANGED = "Session for guild %s changed while opening '%s', dropping stream"
    PLAYBACK_STALE_COMPLETION = "Ignoring stale completion notice for guild %s (generation %s)"
    PLAYBACK_NOTIFY_FAILED = "Playback notification handler failed for guild %s: %r"

    # Track Operations
    TRACK_FINISHED = "Track finished: %s in guild %s"
    TRACK_SKIPPED = "Skipped track: %s in guild %s"
    TRACK_LOOPED = "Re-queued '%s' in guild %s (loop enabled)"

    # Queue Operations
    QUEUE_EMPTY = "Queue empty in guild %s"
    QUEUE_ENQUEUED = "Enqueued track '%s' at position %s in guild %s"
    QUEUE_CLEARED = "Cleared %s tracks from queue in guild %s"
    QUEUE_PICKED = "Picked queue index %s of %s in guild %s (shuffle=%s)"

    # Session Operations
    SESSION_CREATED = "Created playback session %s for guild %s"
    SESSION_REMOVED = "Removed playback session %s for guild %s"
    SESSION_FLAG_TOGGLED = "Toggled %s to %s in guild %s"
    SESSIONS_DROPPED = "Dropped %s live sessions on shutdown"

    # Resolution
    RESOLVE_AGGREGATOR = "Resolving aggregator link '%s'"
    RESOLVE_URL = "Resolving URL '%s'"
    RESOLVE_SEARCH = "Searching for '%s' (limit=%s)"
    RESOLVE_DIRECT_FALLBACK = "No extractor recognised '%s', treating as direct stream"
    RESOLVE_NO_RESULTS = "No results for '%s'"
    PROVIDER_FAILED = "Provider call '%s' failed for '%s': %r"

    # yt-dlp Operations
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info for %s"
    YTDLP_FAILED_SEARCH = "Search failed for '%s'"
    YTDLP_GENERIC_EXTRACTOR = "Only the generic extractor matched %s"

    # Spotify Operations
    SPOTIFY_ENABLED = "Spotify client initialized"
    SPOTIFY_DISABLED = "Spotify credentials not set; Spotify links will not resolve"
    SPOTIFY_LOOKUP_FAILED = "Spotify lookup failed for %s: %r"
    SPOTIFY_EMPTY_COLLECTION = "Spotify %s %s has no tracks"

    # Interaction Delivery
    INTERACTION_DELIVERY_FAILED = "Interaction delivery '%s' failed: %r"
    ANNOUNCE_CHANNEL_MISSING = "No announce channel for guild %s"

    # Commands
    COMMAND_PLAY_FAILED = "Error in play command for query '%s'"
    SELECTION_TIMED_OUT = "Selection timed out for user %s in guild %s"
    SELECTION_MADE = "User %s picked '%s' in guild %s"

    # Bot Lifecycle
    BOT_STARTING = "Starting Discord Jukebox ({environment})"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown exceeded %ss"
    BOT_READY = "Bot ready as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_VOICE_DISCONNECT_FAILED = "Failed to disconnect voice client: %r"

    # Cogs
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"

    # Command Sync
    BOT_SYNCED_GUILD = "Synced %s commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Synced %s commands globally"
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync commands globally: %s"
    BOT_SYNC_ON_STARTUP_FAILED = "Failed to sync commands on startup: %s"

    # Error Handling
    BOT_SLASH_COMMAND_ERROR = "Slash command error in '%s'"


class DiscordUIMessages:
    """User-facing Discord messages.

    Naming: STATE_* describe a condition, ACTION_* confirm an operation,
    ERROR_* report a failure, EMBED_* and BUTTON_* label UI elements.
    """

    # Progress
    PROGRESS_PROCESSING_LINK = "🔗 Processing link…"
    PROGRESS_SEARCHING = "🔍 Searching…"

    # Errors
    ERROR_INTERNAL = "❌ Something went wrong while handling that command."
    ERROR_NO_RESULTS = "❌ No results for **{query}**."
    ERROR_LINK_UNPLAYABLE = "❌ Couldn't get anything playable from that link."
    ERROR_SELECTION_TIMEOUT = "⌛ Time's up. Use `/play` again to pick a song."
    ERROR_STREAM_SKIPPED = "⚠️ Couldn't play **{title}** (skipping)."
    ERROR_NOT_YOUR_MENU = "Only the person who searched can pick from this menu."
    ERROR_WRONG_GUILD = "These controls belong to another server."

    # Actions
    ACTION_SKIPPED = "⏭️ Skipped **{title}**."
    ACTION_STOPPED = "⏹️ Stopped playback and cleared the queue."
    ACTION_STOPPED_BY = "⏹️ Stopped by {user}."
    ACTION_PAUSED = "⏸️ Paused."
    ACTION_RESUMED = "▶️ Resumed."
    ACTION_LOOP = "🔁 Loop: **{state}**"
    ACTION_SHUFFLE = "🔀 Shuffle: **{state}**"
    ACTION_PICKED = "✅ Picked **{title}**."
    ACTION_STARTED = "▶️ Started **{title}**."

    # States
    STATE_NOTHING_PLAYING = "Nothing is playing."
    STATE_QUEUE_EMPTY = "Queue is empty."
    STATE_SERVER_ONLY = "This command can only be used in a server."
    STATE_NEED_TO_BE_IN_VOICE = "You need to be in a voice channel first."
    STATE_VERIFY_VOICE_FAILED = "Could not verify your voice state."

    # Embeds
    EMBED_NOW_PLAYING = "🎵 Now Playing"
    EMBED_ADDED_TO_QUEUE = "➕ Added to queue"
    EMBED_QUEUE = "📋 Queue ({total} tracks)"
    EMBED_PICK_A_SONG = "🔍 Pick a song"
    EMBED_FIELD_REQUESTED_BY = "Requested by"
    EMBED_FIELD_SOURCE = "Source"
    EMBED_FIELD_POSITION = "Position"
    EMBED_FIELD_UP_NEXT = "Up next"
    EMBED_QUEUE_LINE = "{index}. {title} (by {requested_by})"
    EMBED_QUEUE_MORE = "…and {count} more"
    EMBED_PICK_FOOTER = "Choose within {seconds} seconds."

    # Buttons / menus
    BUTTON_TOGGLE = "⏯️"
    BUTTON_SKIP = "⏭️"
    BUTTON_STOP = "⏹️"
    BUTTON_LOOP = "🔁 {state}"
    BUTTON_SHUFFLE = "🔀 {state}"
    SELECT_PLACEHOLDER = "Choose a song"
    SELECT_OPTION_LABEL = "{index}. {title}"

    STATE_ON = "ON"
    STATE_OFF = "OFF"
