import asyncio
import signal
import sys

from dotenv import load_dotenv

from runtime.version import as_string
from services.leaderboard.server import LeaderboardServer, SharedBoard
from shared.config.leaderboard import load_leaderboard_config
from shared.logging.logger import get_logger
from shared.storage.device_store import DeviceStore
from shared.storage.paths import SERVER_STATE_DIR, get_state_path

log = get_logger("core.app", runtime="server")


async def main(stop_event: asyncio.Event):
    # --------------------------------------------------
    # ENV + CONFIG
    # --------------------------------------------------
    load_dotenv()
    log.info("Environment variables loaded")
    log.info(f"{as_string()} booting")

    config = load_leaderboard_config()

    # --------------------------------------------------
    # SHARED BOARD + HTTP SERVER
    # --------------------------------------------------
    state_dir = get_state_path(SERVER_STATE_DIR, config.storage.state_dir)
    board = SharedBoard(DeviceStore(state_dir))
    server = LeaderboardServer(config.server, board)
    server.start()

    # --------------------------------------------------
    # BLOCK UNTIL SHUTDOWN SIGNAL
    # --------------------------------------------------
    await stop_event.wait()

    log.info("Shutdown initiated")

    try:
        server.stop()
    except Exception as e:
        log.warning(f"Server shutdown error ignored: {e}")

    log.info("Leaderboard server stopped")


# ----------------------------------------------------------------------
# SIGNAL HANDLING (WINDOWS-SAFE)
# ----------------------------------------------------------------------

def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop,
    stop_event: asyncio.Event,
):
    """
    Windows-safe Ctrl+C handler.
    Uses signal.signal + asyncio.Event to unwind cleanly.
    """

    def _handler(signum, frame):
        loop.call_soon_threadsafe(stop_event.set)

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except (ValueError, OSError) as e:
        log.warning(f"Signal handlers not installed: {e}")


# ----------------------------------------------------------------------
# ENTRYPOINT
# ----------------------------------------------------------------------

def run():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    stop_event = asyncio.Event()
    _install_signal_handlers(loop, stop_event)

    try:
        loop.run_until_complete(main(stop_event))

    except KeyboardInterrupt:
        log.info("KeyboardInterrupt received; shutdown initiated")

    finally:
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()

        if pending:
            loop.run_until_complete(
                asyncio.gather(*pending, return_exceptions=True)
            )

        loop.run_until_complete(loop.shutdown_asyncgens())
        asyncio.set_event_loop(None)
        loop.close()


if __name__ == "__main__":
    run()
    sys.exit(0)
