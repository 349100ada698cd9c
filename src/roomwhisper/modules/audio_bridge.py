import asyncio
from livekit import rtc
from roomwhisper.modules.config import Config
from roomwhisper.modules.logging import logger

BYTES_PER_SAMPLE = 2  # pcm16


class AudioBridge:
    """Moves PCM16 audio between the room and the realtime session.

    The assistant's voice goes out on a local track published with the
    microphone source; the bound participant's microphone is streamed
    into the session's input buffer.

    Audio deltas are only queued here. A separate playout task feeds
    the audio source, so the session's event dispatch never waits on
    playback and a barge-in is seen as soon as it arrives.
    """

    def __init__(self, room, session):
        self.room = room
        self.session = session
        self.source = rtc.AudioSource(Config.SAMPLE_RATE, Config.NUM_CHANNELS)
        self.track = None
        self._pending = b""
        self._playout: asyncio.Queue = asyncio.Queue()
        self._playout_task = None
        self._forward_tasks = []

    async def publish(self):
        """Publish the assistant's audio track"""
        self.track = rtc.LocalAudioTrack.create_audio_track("assistant-voice", self.source)
        options = rtc.TrackPublishOptions(source=rtc.TrackSource.SOURCE_MICROPHONE)
        await self.room.local_participant.publish_track(self.track, options)
        self.start_playout()
        self.session.on("audio_delta", self.handle_audio_delta)
        self.session.on("speech_started", self.handle_speech_started)
        logger.info("Published assistant audio track")

    def start_playout(self):
        if self._playout_task is None:
            self._playout_task = asyncio.create_task(self._playout_loop(), name="assistant-playout")

    async def _playout_loop(self):
        while True:
            frame = await self._playout.get()
            try:
                await self.source.capture_frame(frame)
            finally:
                self._playout.task_done()

    def listen_to(self, participant):
        """Forward the participant's audio, now and on later subscriptions"""
        for publication in participant.track_publications.values():
            if publication.track is not None and publication.kind == rtc.TrackKind.KIND_AUDIO:
                self._start_forwarding(publication.track)

        def on_track_subscribed(track, publication, remote_participant):
            if remote_participant.identity == participant.identity and track.kind == rtc.TrackKind.KIND_AUDIO:
                self._start_forwarding(track)

        self.room.on("track_subscribed", on_track_subscribed)

    def _start_forwarding(self, track):
        self._forward_tasks.append(asyncio.create_task(self._forward(track)))

    async def _forward(self, track):
        stream = rtc.AudioStream(track, sample_rate=Config.SAMPLE_RATE, num_channels=Config.NUM_CHANNELS)
        logger.info(f"Forwarding audio track {track.sid} to the realtime session")
        try:
            async for event in stream:
                self.session.append_audio(event.frame.data.tobytes())
        finally:
            await stream.aclose()

    def handle_audio_delta(self, chunk: bytes):
        """Queue an audio chunk from the assistant response for playout"""
        data = self._pending + chunk
        frame_size = BYTES_PER_SAMPLE * Config.NUM_CHANNELS
        usable = len(data) - len(data) % frame_size
        self._pending = data[usable:]
        if not usable:
            return
        frame = rtc.AudioFrame(
            data=data[:usable],
            sample_rate=Config.SAMPLE_RATE,
            num_channels=Config.NUM_CHANNELS,
            samples_per_channel=usable // frame_size,
        )
        self._playout.put_nowait(frame)

    def handle_speech_started(self):
        # user barge-in: drop whatever assistant audio is still queued
        self._pending = b""
        dropped = 0
        while not self._playout.empty():
            self._playout.get_nowait()
            self._playout.task_done()
            dropped += 1
        self.source.clear_queue()
        if dropped:
            logger.info(f"Barge-in, dropped {dropped} queued audio frames")

    async def close(self):
        """Stop playout and forwarding, then release the audio source"""
        tasks, self._forward_tasks = self._forward_tasks, []
        if self._playout_task is not None:
            tasks.append(self._playout_task)
            self._playout_task = None
        for task in tasks:
            task.cancel()
        try:
            for task in tasks:
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        finally:
            await self.source.aclose()
