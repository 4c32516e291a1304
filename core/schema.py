"""
Pydantic models for templates, inbound messages and persisted records.
Persisted records are create-once: every model here is frozen.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_id() -> str:
    """Random record identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Template(BaseModel):
    """
    Per-sender template describing how to parse one bank's alert format.
    Field aliases follow the YAML configuration keys.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sender_email: str = Field(..., alias="email")
    template_name: str = Field(..., alias="name")
    date_pattern: str = Field(..., alias="datePattern")
    amount_pattern: str = Field(..., alias="amountPattern")
    vendor_reference_id_pattern: str = Field(..., alias="vendorReferenceIdPattern")
    currency_pattern: str = Field(default="", alias="currencyPattern")
    account_number_pattern: str = Field(default="", alias="accountNumberPattern")
    transaction_reference_id_pattern: str = Field(default="", alias="transactionReferenceIdPattern")

    @field_validator("sender_email", "template_name")
    @classmethod
    def validate_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class InboundMessage(BaseModel):
    """One message as handed over by the transport boundary."""
    model_config = ConfigDict(frozen=True)

    source_address: str = ""
    sender_email: str
    recipients: List[str] = Field(default_factory=list)
    subject: str = ""
    body: str = ""


class Transaction(BaseModel):
    """Credit transaction extracted from a bank alert."""
    model_config = ConfigDict(frozen=True)

    table_name: ClassVar[str] = "transactions"

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)
    template_name: str
    date: str
    amount: str
    currency: str = ""
    account_number: str = ""
    vendor_reference_id: str
    transaction_reference_id: str = ""


class NotificationPayload(BaseModel):
    """
    Callback request body. Serialized with the wire field names
    (CreatedAt, TemplateName, ...) via ``to_json``.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    created_at: datetime = Field(default_factory=utc_now, alias="CreatedAt")
    template_name: str = Field(..., alias="TemplateName")
    date: str = Field(..., alias="Date")
    amount: str = Field(..., alias="Amount")
    currency: str = Field(default="", alias="Currency")
    account_number: str = Field(default="", alias="AccountNumber")
    vendor_reference_id: str = Field(..., alias="VendorReferenceId")
    transaction_reference_id: str = Field(default="", alias="TransactionReferenceId")

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "NotificationPayload":
        return cls(
            template_name=transaction.template_name,
            date=transaction.date,
            amount=transaction.amount,
            currency=transaction.currency,
            account_number=transaction.account_number,
            vendor_reference_id=transaction.vendor_reference_id,
            transaction_reference_id=transaction.transaction_reference_id,
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class DeliveryOutcome(BaseModel):
    """Result of a single callback POST."""
    model_config = ConfigDict(frozen=True)

    sent: bool
    status_text: str
    response_text: str = ""


class NotificationRecord(BaseModel):
    """Persisted record of a callback attempt and its outcome."""
    model_config = ConfigDict(frozen=True)

    table_name: ClassVar[str] = "transaction_notifications"

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)
    callback_url: str
    serialized_payload: str
    # True = successfully sent, False = failure sending
    sent: bool = False
    status_text: str = ""
    response_text: str = ""
    from_email: str
    template_name: str


class UnclassifiedMessage(BaseModel):
    """Any message that does not match a template is kept here as spam."""
    model_config = ConfigDict(frozen=True)

    table_name: ClassVar[str] = "spam_mails"

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)
    body: str
    source_address: str
    subject: str
    sender_email: str


class RawTransactionEmail(BaseModel):
    """Audit copy of a message whose sender matched a template."""
    model_config = ConfigDict(frozen=True)

    table_name: ClassVar[str] = "transaction_emails"

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)
    body: str
    source_address: str
    subject: str
    sender_email: str
    # Comma-joined recipient list
    recipients: str


class PipelineState(str, Enum):
    """States of the per-message processing pipeline."""
    RECEIVED = "RECEIVED"
    SPAM_RECORDED = "SPAM_RECORDED"
    AUDITED = "AUDITED"
    EXTRACTING = "EXTRACTING"
    EXTRACT_FAILED = "EXTRACT_FAILED"
    PERSIST_TRANSACTION = "PERSIST_TRANSACTION"
    NOTIFY = "NOTIFY"
    DONE = "DONE"


# Entities created by the pipeline, in migration order
PERSISTED_MODELS = (Transaction, NotificationRecord, UnclassifiedMessage, RawTransactionEmail)
