from roomwhisper.modules.audio_bridge import AudioBridge
from roomwhisper.modules.config import Config
from roomwhisper.modules.logging import log_error, log_info
from roomwhisper.modules.realtime_session import RealtimeSession
from roomwhisper.modules.session_config import parse_participant_metadata, resolve_session_config


class SessionLauncher:
    """Starts the realtime conversation for a participant who joined the room."""

    def __init__(self, realtime_api_url=Config.REALTIME_API_URL):
        self.realtime_api_url = realtime_api_url
        self.audio_bridge = None

    async def launch(self, room, participant) -> RealtimeSession:
        """Configure a session from the participant's metadata and open the conversation.

        Returns as soon as the opening turn and response request are queued;
        the model's reply arrives through the session's events. Malformed
        metadata or a missing API key raise before anything is connected.
        """
        config = resolve_session_config(parse_participant_metadata(participant.metadata))
        log_info(f"Starting realtime session for {participant.identity} with config: {config}")

        api_key = config.credential or Config.OPENAI_API_KEY
        if not api_key:
            raise ValueError("No OpenAI API key in participant metadata or OPENAI_API_KEY")

        session = RealtimeSession(api_key, self.realtime_api_url)
        await session.start(config.to_session_payload())

        bridge = None
        try:
            bridge = AudioBridge(room, session)
            await bridge.publish()
            bridge.listen_to(participant)
        except BaseException:
            log_error(f"Could not bind audio for {participant.identity}, closing the realtime session")
            try:
                if bridge is not None:
                    await bridge.close()
            finally:
                await session.aclose()
            raise
        self.audio_bridge = bridge

        session.create_conversation_item(Config.OPENING_PROMPT)
        session.create_response()
        return session
