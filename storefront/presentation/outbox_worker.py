import asyncio
import logging

from storefront.database import AsyncSessionLocal
from storefront.infrastructure.unit_of_work import UnitOfWork
from storefront.infrastructure.kafka_producer import KafkaChangeFeedPublisher
from storefront.application.process_outbox import ProcessOutboxEventsUseCase
from storefront.config import settings

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


async def outbox_worker(
    use_case: ProcessOutboxEventsUseCase,
    poll_interval: float = 1.0,
    error_delay: float = 10.0,
):
    """Worker публикации change feed (обновление админки и уведомлений в реальном времени)"""
    logger.info("Outbox worker запущен")

    while True:
        try:
            processed = await use_case(limit=20)
            if processed:
                logger.info(f"Опубликовано {processed} outbox events")
            await asyncio.sleep(poll_interval)

        except Exception as e:
            logger.error(f"Ошибка в outbox worker: {e}", exc_info=True)
            await asyncio.sleep(error_delay)


async def main():
    publisher = KafkaChangeFeedPublisher(settings.KAFKA_BOOTSTRAP_SERVERS, settings.KAFKA_CHANGES_TOPIC)
    await publisher.start()
    try:
        use_case = ProcessOutboxEventsUseCase(unit_of_work=UnitOfWork(AsyncSessionLocal), publisher=publisher)
        await outbox_worker(use_case)
    finally:
        await publisher.stop()


if __name__ == "__main__":
    asyncio.run(main())
