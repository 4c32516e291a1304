"""
Per-message processing pipeline.

    RECEIVED -> SPAM_RECORDED                       (no template)
    RECEIVED -> AUDITED -> EXTRACTING -> EXTRACT_FAILED
    RECEIVED -> AUDITED -> EXTRACTING -> PERSIST_TRANSACTION -> NOTIFY -> DONE

Exactly one audit record (spam or raw transaction email) is written per
message before extraction starts. Storage failures after the audit step are
logged and do not stop the pipeline: a notification is still sent when the
transaction could not be saved.
"""
from core.db import Database
from core.exceptions import ExtractionError, PersistenceError
from core.extraction import DEFAULT_MATCH_TIMEOUT, extract_transaction
from core.logger import setup_logger
from core.schema import (
    InboundMessage,
    PipelineState,
    RawTransactionEmail,
    UnclassifiedMessage,
)
from core.templates import TemplateRegistry
from services.notifier import NotificationForwarder

logger = setup_logger(__name__)


class MessagePipeline:
    """
    Runs classify -> audit -> extract -> persist -> notify for one message.

    Holds read-only collaborators only, so one instance serves all
    concurrent messages.
    """

    def __init__(
        self,
        registry: TemplateRegistry,
        db: Database,
        forwarder: NotificationForwarder,
        match_timeout: float = DEFAULT_MATCH_TIMEOUT,
    ):
        self.registry = registry
        self.db = db
        self.forwarder = forwarder
        self.match_timeout = match_timeout

    def _save(self, record, description: str) -> bool:
        try:
            self.db.save(record)
            return True
        except PersistenceError as e:
            logger.error(f"Failed to save {description}: {e.message} {e.details}")
            return False

    def process(self, message: InboundMessage) -> PipelineState:
        """
        Process one inbound message to a terminal state.

        Never raises: unexpected errors are logged and reported as
        RECEIVED so they stay local to this message.
        """
        try:
            return self._run(message)
        except Exception as e:
            logger.error(
                f"Unexpected error processing message from {message.sender_email}: {e}",
                exc_info=True,
            )
            return PipelineState.RECEIVED

    def _run(self, message: InboundMessage) -> PipelineState:
        sender = message.sender_email
        logger.debug(f"Got email from {message.source_address}, sender {sender}")

        compiled = self.registry.resolve(sender)
        if compiled is None:
            logger.warning(f"Sender {sender} did not match any template. Email will be stored in spam")
            self._save(
                UnclassifiedMessage(
                    body=message.body,
                    source_address=message.source_address,
                    subject=message.subject,
                    sender_email=sender,
                ),
                f"spam mail from {message.source_address}, {sender}",
            )
            return PipelineState.SPAM_RECORDED

        template_name = compiled.template_name
        logger.debug(f"Saving transaction email [server={message.source_address}, sender={sender}]")
        self._save(
            RawTransactionEmail(
                body=message.body,
                source_address=message.source_address,
                subject=message.subject,
                sender_email=sender,
                recipients=",".join(message.recipients),
            ),
            f"mail from [server={message.source_address}, sender={sender}] for template {template_name}",
        )
        # AUDITED -> EXTRACTING

        logger.debug(f"Parsing transaction from {sender} using template {template_name}")
        try:
            transaction = extract_transaction(message.body, compiled, timeout=self.match_timeout)
        except ExtractionError as e:
            logger.error(f"Failed to parse transaction [{template_name}]: {e.message}")
            return PipelineState.EXTRACT_FAILED

        # PERSIST_TRANSACTION
        if not self._save(transaction, f"transaction {transaction.id}"):
            logger.warning(f"Transaction {transaction.id} not stored; notifying anyway")

        # NOTIFY
        record = self.forwarder.notify(transaction, from_email=sender)
        if not record.sent:
            logger.error(f"Failure posting notification for transaction from {sender}. {record.status_text}")

        if not self._save(record, f"notification {record.id}"):
            logger.error(f"Notification outcome was: {record.status_text}")

        return PipelineState.DONE
