import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    REALTIME_API_URL = os.getenv("REALTIME_API_URL", "wss://api.openai.com/v1/realtime?model=gpt-4o-realtime-preview")
    LOG_FILE = os.getenv("ROOMWHISPER_LOG_FILE", "roomwhisper.log")

    DEFAULT_TEMPERATURE = "0.8"
    DEFAULT_MODALITIES = "text_and_audio"
    AUDIO_FORMAT = "pcm16"
    SAMPLE_RATE = 24000
    NUM_CHANNELS = 1

    OPENING_PROMPT = "Please begin the interaction with the user in a manner consistent with your instructions."
    INSTRUCTIONS_CHANGED_PROMPT = (
        "Your instructions have changed. Please acknowledge this in a manner "
        "consistent with your new instructions. Do not explicitly mention the change in instructions."
    )

    RESPONSE_INCOMPLETE_NOTE = "🚫 response incomplete"
    RESPONSE_FAILED_NOTE = "⚠️ response failed"
