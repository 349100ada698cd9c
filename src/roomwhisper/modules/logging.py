from loguru import logger
from roomwhisper.modules.config import Config

# Configure loguru
logger.remove()  # Remove default handler

# Add console output
logger.add(
    sink=lambda msg: print(msg, end=""),
    format="<level>{time:HH:mm:ss}</level> | {message}",
    colorize=True,
    level="INFO",
)

# Add file output with rotation
logger.add(
    Config.LOG_FILE,
    rotation="10 MB",  # Rotate when file reaches 10MB
    retention="1 week",  # Keep logs for 1 week
    compression="zip",  # Compress rotated logs
    format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
    level="INFO",
)


# Function to log realtime events
def log_ws_event(direction, event):
    event_type = event.get("type", "Unknown")
    event_emojis = {
        "session.update": "🛠️",
        "session.created": "🔌",
        "session.updated": "🔄",
        "input_audio_buffer.speech_started": "🗣️",
        "input_audio_buffer.speech_stopped": "🤫",
        "input_audio_buffer.committed": "📨",
        "conversation.item.create": "📥",
        "conversation.item.created": "📤",
        "response.create": "➡️",
        "response.created": "📝",
        "response.output_item.added": "➕",
        "response.output_item.done": "✅",
        "response.text.done": "📝",
        "response.audio.done": "🔇",
        "response.done": "✔️",
        "response.cancel": "⛔",
        "rate_limits.updated": "⏳",
        "error": "❌",
    }
    emoji = event_emojis.get(event_type, "❓")
    icon = "⬆️ - Out" if direction == "Outgoing" else "⬇️ - In"
    logger.info(f"{emoji} {icon} {event_type}")


def log_error(message):
    logger.error(message)


def log_info(message):
    logger.info(message)


def log_warning(message):
    logger.warning(message)
