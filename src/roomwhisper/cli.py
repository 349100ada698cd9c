from livekit import agents

from roomwhisper.core.launcher import SessionLauncher
from roomwhisper.core.reconfiguration import ReconfigurationHandler
from roomwhisper.core.response_monitor import ResponseStatusMonitor
from roomwhisper.modules.logging import log_info


async def entrypoint(ctx: agents.JobContext):
    log_info("Connecting to room...")
    await ctx.connect()
    log_info(f"Connected to room {ctx.room.name}")

    log_info("Waiting for participant...")
    participant = await ctx.wait_for_participant()
    log_info(f"Participant {participant.identity} joined")

    launcher = SessionLauncher()
    session = await launcher.launch(ctx.room, participant)

    ReconfigurationHandler(participant, session).attach(ctx.room)
    ResponseStatusMonitor(ctx.room).attach(session)

    async def shutdown():
        await launcher.audio_bridge.close()
        await session.aclose()

    ctx.add_shutdown_callback(shutdown)
    log_info("Realtime assistant started")


def main():
    log_info("Starting room assistant worker.")
    agents.cli.run_app(agents.WorkerOptions(entrypoint_fnc=entrypoint))


if __name__ == "__main__":
    main()
