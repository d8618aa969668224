"""mjbot entry point - starts the NapCat WebSocket server and the notify webhook."""

import asyncio
import contextlib
import logging

import uvicorn

from mjbot.config import get_config_path, load_config
from mjbot.image_utils import ImageFetcher
from mjbot.log import setup_logging
from mjbot.napcat_server import NapCatServer
from mjbot.relay import NotificationRelay
from mjbot.resolver import DestinationResolver
from mjbot.router import CommandRouter
from mjbot.sensitive import SensitiveFilter
from mjbot.session import BotSession
from mjbot.task_client import TaskClient
from mjbot.webhook import create_app

logger = logging.getLogger("mjbot.main")


async def main() -> None:
    """Wire the router and relay to NapCat and the MJ proxy, then serve forever."""
    # Load configuration
    config_path = get_config_path()
    config = load_config(config_path)

    # Initialize logging
    setup_logging(config.logging)
    logger.info("mjbot starting up (config: %s)", config_path)

    # Captured once; older messages are replays after a reconnect
    session = BotSession()
    sensitive = SensitiveFilter.from_file(config.sensitive.words_file)

    task_client = TaskClient(
        base_url=config.mj.endpoint,
        notify_hook=config.mj.notify_hook,
        timeout=config.mj.timeout,
    )
    logger.info("MJ proxy endpoint: %s", config.mj.endpoint)
    if not config.mj.notify_hook:
        logger.warning("mj.notify_hook is empty; task progress will not be reported")

    server = NapCatServer(
        host=config.server.host,
        port=config.server.port,
        session=session,
        access_token=config.server.access_token,
    )

    router = CommandRouter(
        submit_fn=task_client.submit,
        sensitive=sensitive,
        send_fn=server.send_message,
        session=session,
        image_download_timeout=config.image.inbound_timeout,
    )
    server.set_message_handler(router.route)

    relay = NotificationRelay(
        resolver=DestinationResolver(server.send_api),
        send_fn=server.send_message,
        image_fetcher=ImageFetcher(
            http_proxy=config.image.http_proxy,
            images_path=config.image.images_path,
            timeout_seconds=config.image.download_timeout,
        ),
    )
    webhook = uvicorn.Server(
        uvicorn.Config(
            create_app(relay),
            host=config.webhook.host,
            port=config.webhook.port,
            log_config=None,
        )
    )
    logger.info("Notify webhook listening on %s:%d", config.webhook.host, config.webhook.port)

    ws_task = asyncio.create_task(server.start())
    try:
        # uvicorn owns signal handling; its exit ends the bot
        await webhook.serve()
    finally:
        ws_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await ws_task
        await task_client.close()
        logger.info("mjbot shut down.")


if __name__ == "__main__":
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main())
