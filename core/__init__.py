"""
Core modules for the transaction relay.

This package contains:
- config: Application configuration and settings
- db: SQLite persistence for audit records, transactions and notifications
- exceptions: Custom exception classes
- extraction: Template-driven field extraction
- logger: Logging configuration
- recipients: Recipient acceptance for the inbound listener
- schema: Pydantic models for templates and persisted records
- templates: Template loading and sender lookup
"""
