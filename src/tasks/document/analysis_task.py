"""Document analysis background task"""

from src.services.document_processor import document_processor
from src.tasks.taskiq_setup import broker
from src.utils.logger import logger


@broker.task
async def process_document(doc_id: str) -> dict:
    """Run the fan-out analysis for a freshly uploaded document"""
    logger.info("Starting document analysis", doc_id=doc_id)
    await document_processor.process(doc_id)
    return {"doc_id": doc_id}
